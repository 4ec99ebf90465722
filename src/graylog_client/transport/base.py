"""
Base class for GELF transports
"""

import io
import logging
from abc import ABC, abstractmethod
from typing import Tuple

from ..config import GraylogSettings
from ..encoding import compress, should_compress

logger = logging.getLogger(__name__)


class Transport(ABC):
    """
    Delivers encoded GELF messages to a collector

    Implementations create their connection lazily on the first send and
    keep it until ``close``.
    """

    def __init__(self, settings: GraylogSettings):
        self.settings = settings

    def _prepare_payload(self, message_body: io.BytesIO) -> Tuple[bytes, bool]:
        """Return the bytes to put on the wire and whether they are gzipped"""
        length = message_body.getbuffer().nbytes
        if not should_compress(length, self.settings.compression_threshold):
            message_body.seek(0)
            return message_body.read(), False

        compressed = compress(message_body, self.settings.compression_level)
        try:
            payload = compressed.getvalue()
        finally:
            compressed.close()
        logger.debug("Compressed GELF message from %d to %d bytes", length, len(payload))
        return payload, True

    @abstractmethod
    async def send(self, message_body: io.BytesIO) -> None:
        """
        Send one encoded message

        Args:
            message_body: Uncompressed UTF-8 JSON, owned by the caller

        Raises:
            ConfigurationError: If the collector host is not configured
            DeliveryError: If the message could not be delivered
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the connection, if one was opened"""
