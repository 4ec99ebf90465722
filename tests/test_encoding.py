"""
Tests for JSON encoding and gzip compression
"""

import gzip
import io
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from pathlib import PurePosixPath
from uuid import UUID

import pytest

from graylog_client.encoding import (
    compress,
    encode_record,
    register_json_serializer,
    should_compress,
)
from graylog_client.exceptions import EncodingError
from graylog_client.levels import SyslogLevel
from graylog_client.record import build_record


class Color(Enum):
    RED = "red"


@dataclass
class Item:
    sku: str
    quantity: int


class Money:
    def __init__(self, amount, currency):
        self.amount = amount
        self.currency = currency


class TestEncodeRecord:
    def test_buffer_positioned_at_start(self):
        buffer = encode_record({"short_message": "hi"})
        assert buffer.tell() == 0
        assert json.loads(buffer.read()) == {"short_message": "hi"}

    def test_top_level_is_json_object(self):
        record = build_record("disk full", data={"percent": 97}, facility="ops", source_host="db-1")
        decoded = json.loads(encode_record(record).getvalue())
        assert isinstance(decoded, dict)
        assert decoded["_percent"] == 97
        assert decoded["short_message"] == "disk full"

    def test_utf8_output(self):
        buffer = encode_record({"short_message": "café ☕"})
        raw = buffer.getvalue()
        assert "café ☕".encode("utf-8") in raw
        assert json.loads(raw.decode("utf-8"))["short_message"] == "café ☕"

    def test_common_types(self):
        record = {
            "_when": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            "_amount": Decimal("12.50"),
            "_id": UUID("12345678-1234-5678-1234-567812345678"),
            "_path": PurePosixPath("/var/log/app.log"),
            "_color": Color.RED,
            "_tags": {"b", "a"},
            "_raw": b"bytes",
            "_item": Item("abc", 2),
        }
        decoded = json.loads(encode_record(record).getvalue())
        assert decoded["_when"] == "2024-01-02T03:04:05+00:00"
        assert decoded["_amount"] == "12.50"
        assert decoded["_id"] == "12345678-1234-5678-1234-567812345678"
        assert decoded["_path"] == "/var/log/app.log"
        assert decoded["_color"] == "RED"
        assert decoded["_tags"] == ["a", "b"]
        assert decoded["_raw"] == "bytes"
        assert decoded["_item"] == {"sku": "abc", "quantity": 2}

    def test_unserializable_value(self):
        with pytest.raises(EncodingError) as info:
            encode_record({"_data": object()})
        assert isinstance(info.value.__cause__, TypeError)

    def test_nan_rejected(self):
        with pytest.raises(EncodingError):
            encode_record({"_ratio": float("nan")})

    def test_circular_reference_rejected(self):
        loop = []
        loop.append(loop)
        with pytest.raises(EncodingError):
            encode_record({"_values": loop})

    def test_lone_surrogate_rejected(self):
        record = build_record("bad \udcff name", created=0)
        with pytest.raises(EncodingError) as info:
            encode_record(record)
        assert isinstance(info.value.__cause__, UnicodeEncodeError)

    def test_int_enum_written_as_number(self):
        decoded = json.loads(encode_record({"_level": SyslogLevel.ERROR}).getvalue())
        assert decoded["_level"] == 3

    def test_registered_serializer(self):
        register_json_serializer(Money, lambda m: f"{m.amount} {m.currency}")
        decoded = json.loads(encode_record({"_price": Money(3, "EUR")}).getvalue())
        assert decoded["_price"] == "3 EUR"


class TestShouldCompress:
    def test_equal_to_threshold_not_compressed(self):
        assert should_compress(100, 100) is False

    def test_above_threshold_compressed(self):
        assert should_compress(101, 100) is True

    def test_sentinel_never_compresses(self):
        assert should_compress(10_000_000, -1) is False

    def test_zero_threshold(self):
        assert should_compress(0, 0) is False
        assert should_compress(1, 0) is True


class TestCompress:
    def test_round_trip(self):
        raw = io.BytesIO(b'{"short_message":"' + b"x" * 2000 + b'"}')
        raw.seek(50)

        compressed = compress(raw, 9)
        assert compressed.tell() == 0
        assert gzip.decompress(compressed.getvalue()) == raw.getvalue()
        assert len(compressed.getvalue()) < len(raw.getvalue())

    def test_input_left_open(self):
        raw = io.BytesIO(b"payload")
        compressed = compress(raw)
        assert not raw.closed
        assert raw.getvalue() == b"payload"
        assert compressed is not raw
