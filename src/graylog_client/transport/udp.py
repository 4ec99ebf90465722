"""
GELF over UDP transport with chunked framing
"""

import asyncio
import io
import logging
import os
import struct
from typing import List, Optional

from ..config import GraylogSettings
from ..exceptions import DeliveryError
from .base import Transport

logger = logging.getLogger(__name__)

CHUNK_MAGIC = b"\x1e\x0f"
CHUNK_HEADER_SIZE = 12  # magic (2) + message id (8) + sequence number (1) + count (1)
MAX_CHUNKS = 128


def split_chunks(
    payload: bytes, max_packet_size: int, message_id: Optional[bytes] = None
) -> List[bytes]:
    """
    Split a payload into chunked-GELF datagrams

    Payloads that fit in one packet are returned unchanged as a single
    datagram. Larger payloads become datagrams of at most
    ``max_packet_size`` bytes, each carrying the chunk header.

    Raises:
        DeliveryError: If the payload needs more than 128 chunks
    """
    if len(payload) <= max_packet_size:
        return [payload]

    chunk_size = max_packet_size - CHUNK_HEADER_SIZE
    count = -(-len(payload) // chunk_size)
    if count > MAX_CHUNKS:
        raise DeliveryError(
            f"GELF message of {len(payload)} bytes needs {count} chunks "
            f"(maximum is {MAX_CHUNKS})"
        )

    message_id = message_id or os.urandom(8)
    if len(message_id) != 8:
        raise ValueError("message_id must be exactly 8 bytes")

    return [
        CHUNK_MAGIC
        + message_id
        + struct.pack("!BB", sequence, count)
        + payload[sequence * chunk_size : (sequence + 1) * chunk_size]
        for sequence in range(count)
    ]


class UdpTransport(Transport):
    """
    Sends GELF messages as UDP datagrams, best effort

    Nothing is acknowledged or retried. The datagram endpoint is opened on
    the first send and reused afterwards.
    """

    def __init__(self, settings: GraylogSettings):
        super().__init__(settings)
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._lock = asyncio.Lock()

    async def _get_endpoint(self) -> asyncio.DatagramTransport:
        host = self.settings.require_host()
        async with self._lock:
            if self._transport is None or self._transport.is_closing():
                loop = asyncio.get_running_loop()
                logger.debug(
                    "Opening GELF UDP endpoint for %s:%d", host, self.settings.udp_port
                )
                try:
                    self._transport, _ = await loop.create_datagram_endpoint(
                        asyncio.DatagramProtocol,
                        remote_addr=(host, self.settings.udp_port),
                    )
                except OSError as e:
                    raise DeliveryError(f"Failed to open UDP endpoint: {e}") from e
            return self._transport

    async def send(self, message_body: io.BytesIO) -> None:
        endpoint = await self._get_endpoint()
        payload, _ = self._prepare_payload(message_body)
        datagrams = split_chunks(payload, self.settings.udp_max_packet_size)
        if len(datagrams) > 1:
            logger.debug("Sending GELF message in %d chunks", len(datagrams))

        try:
            for datagram in datagrams:
                endpoint.sendto(datagram)
        except OSError as e:
            raise DeliveryError(f"Failed to transmit log: {e}") from e

    async def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
        self._transport = None
