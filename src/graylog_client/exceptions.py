"""
Exception hierarchy for the Graylog client
"""

from typing import Optional


class GraylogError(Exception):
    """Base class for all errors raised by graylog_client"""


class ConfigurationError(GraylogError, ValueError):
    """Settings are missing or invalid"""


class DeliveryError(GraylogError):
    """The collector did not accept a message, or could not be reached"""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.reason = reason


class EncodingError(GraylogError):
    """A log record could not be serialized to JSON"""
