"""
Graylog client: builds, encodes and ships GELF messages
"""

import logging
from typing import Any, Optional

from .config import GraylogSettings, get_default_settings
from .encoding import encode_record
from .levels import SyslogLevel
from .record import (
    FieldProviderRegistry,
    LogRecord,
    Timestamp,
    build_exception_record,
    build_record,
)
from .transport import HttpTransport, Transport, UdpTransport

logger = logging.getLogger(__name__)


class GraylogClient:
    """
    Sends log events to Graylog through one transport

    The transport is fixed at construction. Several sends may run
    concurrently on one client; each owns its message buffer and their
    arrival order at the collector is not guaranteed. Closing the client
    while sends are still in flight leaves their outcome undefined.
    """

    def __init__(
        self,
        transport: Transport,
        settings: Optional[GraylogSettings] = None,
        registry: Optional[FieldProviderRegistry] = None,
    ):
        self.settings = settings or transport.settings
        self.transport = transport
        self.registry = registry
        self._source_host = self.settings.resolve_source_host()

    @property
    def facility(self) -> Optional[str]:
        return self.settings.facility

    def build(
        self,
        short_message: str,
        full_message: Optional[str] = None,
        data: Any = None,
        exc: Optional[BaseException] = None,
        *,
        created: Optional[Timestamp] = None,
        level: SyslogLevel = SyslogLevel.INFORMATIONAL,
        customer_name: Optional[str] = None,
        log_type: Optional[str] = None,
    ) -> LogRecord:
        """Build the record ``send`` would ship, without sending it"""
        return build_record(
            short_message,
            created,
            level,
            full_message,
            customer_name,
            log_type,
            data,
            exc,
            facility=self.facility,
            source_host=self._source_host,
            registry=self.registry,
        )

    async def send(
        self,
        short_message: str,
        full_message: Optional[str] = None,
        data: Any = None,
        exc: Optional[BaseException] = None,
        *,
        created: Optional[Timestamp] = None,
        level: SyslogLevel = SyslogLevel.INFORMATIONAL,
        customer_name: Optional[str] = None,
        log_type: Optional[str] = None,
    ) -> None:
        """
        Send a message to Graylog

        Args:
            short_message: Short message text (required)
            full_message: Full message text
            data: Additional details: a string, a mapping, a sequence or an
                object exposing its fields
            exc: An exception to log the data of
            created: When the event happened; defaults to now (UTC)
            level: Severity, Informational by default
            customer_name: Optional ``CustomerName`` tag
            log_type: Optional ``LogType`` tag

        Raises:
            ConfigurationError: If no collector host is configured
            EncodingError: If ``data`` cannot be represented in JSON
            DeliveryError: If the collector rejects or never receives it
        """
        record = self.build(
            short_message,
            full_message,
            data,
            exc,
            created=created,
            level=level,
            customer_name=customer_name,
            log_type=log_type,
        )
        await self.send_record(record)

    async def send_exception(
        self, exc: Optional[BaseException], level: SyslogLevel = SyslogLevel.ERROR
    ) -> None:
        """Send an exception, using its own text as the message"""
        if exc is None:
            return
        record = build_exception_record(
            exc, level, facility=self.facility, source_host=self._source_host
        )
        await self.send_record(record)

    async def send_record(self, record: LogRecord) -> None:
        """Encode an already built record and hand it to the transport"""
        message_body = encode_record(record)
        try:
            await self.transport.send(message_body)
        finally:
            message_body.close()

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "GraylogClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_http_client(
    settings: Optional[GraylogSettings] = None, **overrides: Any
) -> GraylogClient:
    """Create a client posting to the GELF HTTP input

    Settings default to ``get_default_settings()``; keyword arguments
    override single fields, e.g. ``create_http_client(host="graylog")``.
    """
    settings = settings or get_default_settings()
    if overrides:
        settings = settings.with_overrides(**overrides)
    return GraylogClient(HttpTransport(settings), settings)


def create_udp_client(
    settings: Optional[GraylogSettings] = None, **overrides: Any
) -> GraylogClient:
    """Create a client sending datagrams to the GELF UDP input"""
    settings = settings or get_default_settings()
    if overrides:
        settings = settings.with_overrides(**overrides)
    return GraylogClient(UdpTransport(settings), settings)
