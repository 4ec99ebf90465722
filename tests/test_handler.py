"""
Tests for the stdlib logging bridge
"""

import json
import logging
from unittest.mock import AsyncMock, patch

import pytest

from graylog_client import GraylogClient, GraylogHandler, GraylogSettings, Transport
from graylog_client.exceptions import DeliveryError

SETTINGS = GraylogSettings(facility="worker", host="graylog", source_host="node-3")


@pytest.fixture
def graylog_handler():
    sent = []

    async def capture(body):
        sent.append(json.loads(body.getvalue()))

    transport = AsyncMock(spec=Transport)
    transport.send.side_effect = capture
    handler = GraylogHandler(GraylogClient(transport, SETTINGS))

    logger = logging.getLogger("tests.graylog_handler")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.addHandler(handler)
    yield logger, handler, transport, sent
    logger.removeHandler(handler)
    handler.close()


class TestGraylogHandler:
    def test_info_record_shipped(self, graylog_handler):
        logger, handler, _, sent = graylog_handler
        logger.info("order %s placed", 42)
        handler.flush()

        assert len(sent) == 1
        record = sent[0]
        assert record["short_message"] == "order 42 placed"
        assert record["Severity"] == "Informational"
        assert record["_facility"] == "worker"
        assert record["_logger"] == "tests.graylog_handler"
        assert record["_function"] == "test_info_record_shipped"
        assert isinstance(record["timestamp"], int)

    def test_levels_mapped(self, graylog_handler):
        logger, handler, _, sent = graylog_handler
        logger.debug("d")
        logger.warning("w")
        logger.critical("c")
        handler.flush()

        severities = {record["short_message"]: record["Severity"] for record in sent}
        assert severities == {"d": "Debug", "w": "Warning", "c": "Critical"}

    def test_extra_fields_merged(self, graylog_handler):
        logger, handler, _, sent = graylog_handler
        logger.info("with extras", extra={"request_id": "abc-123", "attempt": 2})
        handler.flush()

        assert sent[0]["_request_id"] == "abc-123"
        assert sent[0]["_attempt"] == 2
        assert "_msg" not in sent[0]
        assert "_args" not in sent[0]

    def test_exception_projected(self, graylog_handler):
        logger, handler, _, sent = graylog_handler
        try:
            raise KeyError("missing-key")
        except KeyError:
            logger.exception("lookup failed")
        handler.flush()

        record = sent[0]
        assert record["Severity"] == "Error"
        assert record["_ex.msg"] == "'missing-key'"
        assert "KeyError" in record["_ex.full"]

    def test_formatter_sets_full_message(self, graylog_handler):
        logger, handler, _, sent = graylog_handler
        handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))
        logger.error("formatted")
        handler.flush()

        assert sent[0]["full_message"] == "ERROR:tests.graylog_handler:formatted"

    def test_failed_send_reported(self, graylog_handler):
        logger, handler, transport, _ = graylog_handler
        transport.send.side_effect = DeliveryError("collector down")

        with patch.object(handler, "handleError") as handle_error:
            logger.error("lost")
            handler.flush()

        handle_error.assert_called_once()
        assert handle_error.call_args[0][0].getMessage() == "lost"

    def test_close_closes_client(self, graylog_handler):
        logger, handler, transport, _ = graylog_handler
        logger.info("last words")
        handler.close()

        transport.send.assert_awaited_once()
        transport.close.assert_awaited_once()

    def test_emit_after_close_ignored(self, graylog_handler):
        logger, handler, transport, _ = graylog_handler
        handler.close()
        logger.info("too late")
        transport.send.assert_not_awaited()
