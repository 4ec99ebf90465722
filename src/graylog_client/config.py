"""
Settings for the Graylog client
"""

import os
import socket
from dataclasses import dataclass, replace
from typing import Any, Optional

from .exceptions import ConfigurationError

DEFAULT_GELF_PORT = 12201
COMPRESSION_DISABLED = -1


@dataclass(frozen=True)
class GraylogSettings:
    """Immutable configuration shared by clients and transports"""

    # Message settings
    facility: Optional[str] = None
    source_host: Optional[str] = None  # defaults to the machine hostname

    # Collector settings
    host: Optional[str] = None
    http_port: int = DEFAULT_GELF_PORT
    http_secure: bool = False  # Graylog's GELF HTTP input has no TLS by default
    udp_port: int = DEFAULT_GELF_PORT
    udp_max_packet_size: int = 512

    # Compression settings
    compression_threshold: int = COMPRESSION_DISABLED  # bytes, -1 disables
    compression_level: int = 6

    # HTTP timeouts (seconds)
    http_timeout: float = 5.0
    http_read_write_timeout: float = 5.0

    def __post_init__(self):
        """Validate configuration values"""
        for name in ("http_port", "udp_port"):
            port = getattr(self, name)
            if not 0 < port < 65536:
                raise ConfigurationError(f"{name} must be between 1 and 65535")
        if self.udp_max_packet_size <= 12:
            raise ConfigurationError("udp_max_packet_size must be larger than 12")
        if self.compression_threshold < COMPRESSION_DISABLED:
            raise ConfigurationError(
                "compression_threshold must be -1 (disabled) or non-negative"
            )
        if not 0 <= self.compression_level <= 9:
            raise ConfigurationError("compression_level must be between 0 and 9")
        if self.http_timeout <= 0 or self.http_read_write_timeout <= 0:
            raise ConfigurationError("HTTP timeouts must be positive")

    @property
    def compression_enabled(self) -> bool:
        return self.compression_threshold != COMPRESSION_DISABLED

    @property
    def http_url(self) -> str:
        """GELF HTTP endpoint of the collector"""
        scheme = "https" if self.http_secure else "http"
        return f"{scheme}://{self.require_host()}:{self.http_port}/gelf"

    def require_host(self) -> str:
        """Return the collector host, failing when none was configured"""
        if not self.host:
            raise ConfigurationError(
                "No Graylog host configured; set GraylogSettings.host or GRAYLOG_HOST"
            )
        return self.host

    def resolve_source_host(self) -> str:
        return self.source_host or socket.gethostname()

    def with_overrides(self, **changes: Any) -> "GraylogSettings":
        """Return a copy with the given fields replaced"""
        return replace(self, **changes)

    @classmethod
    def _parse_bool_env(cls, key: str, default: str = "false") -> bool:
        """Parse boolean from environment variable"""
        return os.getenv(key, default).lower() in ("1", "true", "yes", "on")

    @classmethod
    def from_env(cls) -> "GraylogSettings":
        """Create settings from environment variables"""
        return cls(
            facility=os.getenv("GRAYLOG_FACILITY"),
            source_host=os.getenv("GRAYLOG_SOURCE_HOST"),
            host=os.getenv("GRAYLOG_HOST"),
            http_port=int(os.getenv("GRAYLOG_HTTP_PORT", str(DEFAULT_GELF_PORT))),
            http_secure=cls._parse_bool_env("GRAYLOG_HTTP_SECURE"),
            udp_port=int(os.getenv("GRAYLOG_UDP_PORT", str(DEFAULT_GELF_PORT))),
            udp_max_packet_size=int(os.getenv("GRAYLOG_UDP_MAX_PACKET_SIZE", "512")),
            compression_threshold=int(
                os.getenv("GRAYLOG_COMPRESSION_THRESHOLD", str(COMPRESSION_DISABLED))
            ),
            compression_level=int(os.getenv("GRAYLOG_COMPRESSION_LEVEL", "6")),
            http_timeout=float(os.getenv("GRAYLOG_HTTP_TIMEOUT", "5.0")),
            http_read_write_timeout=float(
                os.getenv("GRAYLOG_HTTP_READ_WRITE_TIMEOUT", "5.0")
            ),
        )


_default_settings: Optional[GraylogSettings] = None


def get_default_settings() -> GraylogSettings:
    """Get the process-wide default settings, reading the environment once"""
    global _default_settings
    if _default_settings is None:
        _default_settings = GraylogSettings.from_env()
    return _default_settings


def set_default_settings(settings: Optional[GraylogSettings]) -> None:
    """Replace the process-wide default settings (None resets to the environment)"""
    global _default_settings
    _default_settings = settings
