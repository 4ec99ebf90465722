"""
Graylog Client

Builds GELF 1.1 messages from log events and ships them to a Graylog
collector over HTTP(S) or UDP, with asyncio.
"""

__version__ = "1.0.0"

from .client import GraylogClient, create_http_client, create_udp_client
from .config import (
    COMPRESSION_DISABLED,
    GraylogSettings,
    get_default_settings,
    set_default_settings,
)
from .encoding import compress, encode_record, register_json_serializer, should_compress
from .exceptions import ConfigurationError, DeliveryError, EncodingError, GraylogError
from .handler import GraylogHandler
from .levels import SyslogLevel
from .record import (
    FieldProviderRegistry,
    build_exception_record,
    build_record,
    project_exception,
    register_field_provider,
    unregister_field_provider,
)
from .transport import HttpTransport, Transport, UdpTransport

__all__ = [
    # Client
    "GraylogClient",
    "create_http_client",
    "create_udp_client",
    "GraylogHandler",
    # Configuration
    "GraylogSettings",
    "COMPRESSION_DISABLED",
    "get_default_settings",
    "set_default_settings",
    # Records
    "SyslogLevel",
    "FieldProviderRegistry",
    "build_record",
    "build_exception_record",
    "project_exception",
    "register_field_provider",
    "unregister_field_provider",
    # Encoding
    "encode_record",
    "compress",
    "should_compress",
    "register_json_serializer",
    # Transports
    "Transport",
    "HttpTransport",
    "UdpTransport",
    # Errors
    "GraylogError",
    "ConfigurationError",
    "DeliveryError",
    "EncodingError",
]
