"""
GELF record construction

Turns a log event (message, severity, structured data and an optional
exception) into the flat field map sent to Graylog. Nothing in here does
any I/O.
"""

import traceback
from collections.abc import Iterable, Mapping
from dataclasses import fields, is_dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional, Type, Union

from .levels import SyslogLevel

GELF_VERSION = "1.1"
MAX_EXCEPTION_DEPTH = 32

LogRecord = Dict[str, Any]
FieldProvider = Callable[[Any], Mapping]
Timestamp = Union[datetime, int, float]


class FieldProviderRegistry:
    """Registry of callables that expose an object's fields for merging"""

    def __init__(self):
        self._providers: Dict[Type, FieldProvider] = {}

    def register(self, type_class: Type, provider: FieldProvider) -> None:
        """Register a field provider for a type (and its subclasses)"""
        self._providers[type_class] = provider

    def unregister(self, type_class: Type) -> None:
        self._providers.pop(type_class, None)

    def get_provider(self, obj: Any) -> Optional[FieldProvider]:
        """Find the provider for an object, or None when it exposes no fields"""
        for base_type in type(obj).__mro__:
            if base_type in self._providers:
                return self._providers[base_type]

        # Types that describe their own fields
        gelf_fields = getattr(obj, "__gelf_fields__", None)
        if callable(gelf_fields):
            return lambda o: o.__gelf_fields__()

        if is_dataclass(obj) and not isinstance(obj, type):
            return _dataclass_fields

        return None


def _dataclass_fields(obj: Any) -> Dict[str, Any]:
    # One level only: nested dataclasses stay opaque values
    return {f.name: getattr(obj, f.name) for f in fields(obj)}


_global_registry = FieldProviderRegistry()


def register_field_provider(type_class: Type, provider: FieldProvider) -> None:
    """Register a global field provider used when flattening ``data`` objects"""
    _global_registry.register(type_class, provider)


def unregister_field_provider(type_class: Type) -> None:
    _global_registry.unregister(type_class)


def epoch_of(created: Timestamp) -> int:
    """Whole seconds between the Unix epoch and ``created``

    Naive datetimes are taken as local time, like ``datetime.timestamp``.
    """
    if isinstance(created, datetime):
        return int(created.timestamp())
    return int(created)


def _merge_mapping(record: LogRecord, source: Mapping, prefix: str) -> None:
    for key, value in source.items():
        record[f"{prefix}{key}"] = value


def _merge_data(
    record: LogRecord, data: Any, registry: FieldProviderRegistry
) -> None:
    """Classify ``data`` by shape and merge it into the record"""
    if data is None:
        return
    if isinstance(data, (str, bytes)):
        record["_data"] = data
    elif isinstance(data, Mapping):
        _merge_mapping(record, data, "_")
    elif isinstance(data, Iterable):
        # Named tuples included: sequences keep their order
        record["_values"] = list(data)
    else:
        provider = registry.get_provider(data)
        if provider is not None:
            _merge_mapping(record, provider(data), "_")
        else:
            # No declared fields: leave it to the encoder
            record["_data"] = data


def iter_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` and then each exception it was raised from

    Stops at the first exception already seen, or after
    MAX_EXCEPTION_DEPTH levels.
    """
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        if len(seen) >= MAX_EXCEPTION_DEPTH:
            return
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


def project_exception(exc: BaseException) -> LogRecord:
    """Flatten an exception chain into ``_ex.*`` fields"""
    projected: LogRecord = {}
    prefix = ""
    for inner in iter_exception_chain(exc):
        projected[f"_ex.{prefix}msg"] = str(inner)
        data = getattr(inner, "data", None)
        if isinstance(data, Mapping):
            for key, value in data.items():
                name = "(null)" if key is None else key
                projected[f"_ex.{prefix}data.{name}"] = value
        prefix = "inner." + prefix
    projected["_ex.full"] = "".join(
        traceback.format_exception(type(exc), exc, exc.__traceback__)
    )
    return projected


def build_record(
    short_message: str,
    created: Optional[Timestamp] = None,
    level: SyslogLevel = SyslogLevel.INFORMATIONAL,
    full_message: Optional[str] = None,
    customer_name: Optional[str] = None,
    log_type: Optional[str] = None,
    data: Any = None,
    exc: Optional[BaseException] = None,
    *,
    facility: Optional[str] = None,
    source_host: str = "",
    registry: Optional[FieldProviderRegistry] = None,
) -> LogRecord:
    """
    Build a GELF 1.1 record

    Args:
        short_message: Short message text, never None
        created: When the event happened; defaults to now (UTC)
        level: Severity of the event
        full_message: Long message text, added when not blank
        customer_name: Optional ``CustomerName`` tag
        log_type: Optional ``LogType`` tag
        data: A string, a mapping, a sequence, or an object exposing fields
        exc: Exception whose chain is projected into ``_ex.*`` fields
        facility: Value of the ``_facility`` field, "" when unset
        source_host: Value of the ``host`` field
        registry: Field provider registry, the global one by default

    Returns:
        Flat field map; fields merged later win over earlier ones
    """
    if created is None:
        created = datetime.now(timezone.utc)

    record: LogRecord = {
        "version": GELF_VERSION,
        "host": source_host,
        "_facility": "" if facility is None else facility,
        "short_message": "" if short_message is None else short_message,
        "timestamp": epoch_of(created),
    }

    if full_message and full_message.strip():
        record["full_message"] = full_message

    _merge_data(record, data, registry or _global_registry)

    if "Severity" not in record:
        record["Severity"] = str(SyslogLevel(level))

    if "CustomerName" not in record and customer_name:
        record["CustomerName"] = customer_name

    if "LogType" not in record and log_type:
        record["LogType"] = log_type

    if exc is not None:
        record.update(project_exception(exc))

    return record


def build_exception_record(
    exc: BaseException,
    level: SyslogLevel = SyslogLevel.ERROR,
    *,
    facility: Optional[str] = None,
    source_host: str = "",
    created: Optional[Timestamp] = None,
) -> LogRecord:
    """Build a record whose message is the exception's own text

    ``level`` is carried in the ``_level`` field; the record itself keeps
    the default Informational severity.
    """
    return build_record(
        str(exc),
        created,
        SyslogLevel.INFORMATIONAL,
        full_message=None,
        data={"level": str(SyslogLevel(level))},
        exc=exc,
        facility=facility,
        source_host=source_host,
    )
