"""
JSON encoding and gzip compression of GELF records
"""

import gzip
import io
import json
import shutil
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Callable, Dict, Optional, Type
from uuid import UUID

from .config import COMPRESSION_DISABLED
from .exceptions import EncodingError
from .record import LogRecord


class TypeRegistry:
    """Registry of JSON serializers for types json.dumps cannot handle"""

    def __init__(self):
        self._serializers: Dict[Type, Callable[[Any], Any]] = {}
        self._setup_default_serializers()

    def _setup_default_serializers(self) -> None:
        """Setup built-in serializers for common types"""
        self.register(datetime, self._serialize_datetime)
        self.register(date, lambda d: d.isoformat())
        self.register(time, lambda t: t.isoformat())
        self.register(timedelta, lambda td: td.total_seconds())
        self.register(Decimal, str)
        self.register(UUID, str)
        self.register(PurePath, str)
        # IntEnum and str-based enums are written as their plain value by
        # json itself and never reach this hook
        self.register(Enum, lambda e: e.name)
        self.register(set, self._serialize_set)
        self.register(frozenset, self._serialize_set)
        self.register(bytes, lambda b: b.decode("utf-8", errors="replace"))
        self.register(bytearray, lambda b: bytes(b).decode("utf-8", errors="replace"))

    def register(self, type_class: Type, serializer: Callable[[Any], Any]) -> None:
        """Register a custom serializer for a type"""
        self._serializers[type_class] = serializer

    def get_serializer(self, obj: Any) -> Optional[Callable[[Any], Any]]:
        """Get serializer for an object"""
        for base_type in type(obj).__mro__:
            if base_type in self._serializers:
                return self._serializers[base_type]

        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict

        return None

    @staticmethod
    def _serialize_datetime(dt: datetime) -> str:
        return dt.isoformat() + "Z" if dt.tzinfo is None else dt.isoformat()

    @staticmethod
    def _serialize_set(value: Any) -> list:
        try:
            return sorted(value)
        except TypeError:
            return list(value)


_global_registry = TypeRegistry()


def register_json_serializer(type_class: Type, serializer: Callable[[Any], Any]) -> None:
    """Teach the encoder how to represent an additional type"""
    _global_registry.register(type_class, serializer)


def _default(obj: Any) -> Any:
    serializer = _global_registry.get_serializer(obj)
    if serializer is None:
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
    return serializer(obj)


def encode_record(record: LogRecord) -> io.BytesIO:
    """
    Serialize a record to UTF-8 JSON

    Returns:
        A new buffer positioned at its start

    Raises:
        EncodingError: if a value cannot be represented in JSON
    """
    try:
        text = json.dumps(
            record,
            default=_default,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )
        # Lone surrogates survive dumps but not the UTF-8 step
        raw = text.encode("utf-8")
    except (TypeError, ValueError, RecursionError) as e:
        raise EncodingError(f"Failed to encode log record: {e}") from e

    buffer = io.BytesIO(raw)
    buffer.seek(0)
    return buffer


def should_compress(length: int, threshold: int) -> bool:
    """True when a payload of ``length`` bytes is above the threshold"""
    return threshold != COMPRESSION_DISABLED and length > threshold


def compress(raw: io.BytesIO, compression_level: int = 6) -> io.BytesIO:
    """
    GZIP-compress a buffer into a new buffer

    The input is rewound first and left open; the output is rewound
    after compression.
    """
    raw.seek(0)
    memory = io.BytesIO()
    with gzip.GzipFile(fileobj=memory, mode="wb", compresslevel=compression_level) as gz:
        shutil.copyfileobj(raw, gz)
    memory.seek(0)
    return memory
