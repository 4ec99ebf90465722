"""
Transports delivering encoded GELF messages to a collector
"""

from .base import Transport
from .http import HttpTransport
from .udp import UdpTransport, split_chunks

__all__ = [
    "Transport",
    "HttpTransport",
    "UdpTransport",
    "split_chunks",
]
