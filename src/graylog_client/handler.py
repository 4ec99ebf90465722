"""
Logging handler forwarding stdlib log records to Graylog
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Dict, Optional, Set

from .client import GraylogClient, create_http_client
from .config import GraylogSettings
from .levels import SyslogLevel

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


class GraylogHandler(logging.Handler):
    """
    Ships log records through a GraylogClient

    Sends run on a private event loop in a daemon thread, so ``emit`` never
    blocks on the network. Failed sends are reported through
    ``handleError``, like any other logging handler.
    """

    def __init__(
        self,
        client: Optional[GraylogClient] = None,
        settings: Optional[GraylogSettings] = None,
        level: int = logging.NOTSET,
        shutdown_timeout: float = 5.0,
    ):
        super().__init__(level)
        self.client = client or create_http_client(settings)
        self.shutdown_timeout = shutdown_timeout
        self._pending: Set[concurrent.futures.Future] = set()
        self._pending_lock = threading.Lock()
        self._closed = False

        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, daemon=True, name="graylog-handler"
        )
        self._thread.start()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def _extra_fields(self, record: logging.LogRecord) -> Dict[str, Any]:
        """Logger location plus whatever was passed via ``extra=``"""
        fields: Dict[str, Any] = {
            "logger": record.name,
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
            "thread": record.threadName,
        }
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_"):
                fields[key] = value
        return fields

    def map_record(self, record: logging.LogRecord) -> Dict[str, Any]:
        """Translate a LogRecord into keyword arguments for GraylogClient.send"""
        exc = record.exc_info[1] if record.exc_info else None
        return {
            "short_message": record.getMessage(),
            "full_message": self.format(record) if self.formatter else None,
            "data": self._extra_fields(record),
            "exc": exc,
            "created": record.created,
            "level": SyslogLevel.from_logging_level(record.levelno),
        }

    def emit(self, record: logging.LogRecord) -> None:
        if self._closed:
            return

        try:
            kwargs = self.map_record(record)
            future = asyncio.run_coroutine_threadsafe(
                self._ship(record, kwargs), self._loop
            )
        except Exception:
            self.handleError(record)
            return

        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)

    async def _ship(self, record: logging.LogRecord, kwargs: Dict[str, Any]) -> None:
        try:
            await self.client.send(**kwargs)
        except Exception:
            self.handleError(record)

    def _discard(self, future: concurrent.futures.Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def flush(self) -> None:
        """Wait for sends already handed to the loop"""
        with self._pending_lock:
            pending = list(self._pending)
        if pending:
            concurrent.futures.wait(pending, timeout=self.shutdown_timeout)

    def close(self) -> None:
        """Flush, close the client and stop the background loop"""
        if self._closed:
            super().close()
            return
        self._closed = True

        try:
            self.flush()
            if self._loop.is_running():
                asyncio.run_coroutine_threadsafe(
                    self.client.close(), self._loop
                ).result(timeout=self.shutdown_timeout)
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=self.shutdown_timeout)
            if not self._thread.is_alive():
                self._loop.close()
            super().close()
