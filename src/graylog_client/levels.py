"""
Syslog severity levels used by GELF messages
"""

import logging
from enum import IntEnum


class SyslogLevel(IntEnum):
    """Syslog severities (RFC 5424), most severe first"""

    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFORMATIONAL = 6
    DEBUG = 7

    def __str__(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_logging_level(cls, levelno: int) -> "SyslogLevel":
        """Map a stdlib logging level number onto the closest severity"""
        if levelno >= logging.CRITICAL:
            return cls.CRITICAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFORMATIONAL
        return cls.DEBUG
