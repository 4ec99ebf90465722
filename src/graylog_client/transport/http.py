"""
GELF over HTTP(S) transport
"""

import asyncio
import io
import logging
from typing import Dict, Optional

import aiohttp

from ..config import GraylogSettings
from ..exceptions import DeliveryError
from .base import Transport

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Accept-Encoding": "gzip, deflate, br",
}


class HttpTransport(Transport):
    """
    Posts GELF messages to ``http(s)://<host>:<port>/gelf``

    A single aiohttp session is created on the first send and shared by
    every later send. Its connector pools connections and may be used by
    concurrent tasks of the same event loop.
    """

    def __init__(self, settings: GraylogSettings, url: Optional[str] = None):
        super().__init__(settings)
        self._url = url
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def url(self) -> str:
        if self._url is None:
            self._url = self.settings.http_url
        return self._url

    def _create_session(self) -> aiohttp.ClientSession:
        timeout = aiohttp.ClientTimeout(
            total=self.settings.http_timeout,
            sock_read=self.settings.http_read_write_timeout,
        )
        logger.debug("Opening GELF HTTP session for %s", self.url)
        return aiohttp.ClientSession(
            headers=DEFAULT_HEADERS,
            timeout=timeout,
            auto_decompress=True,
        )

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = self._create_session()
        return self._session

    def _request_headers(self, compressed: bool) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if compressed:
            headers["Content-Encoding"] = "gzip"
        return headers

    async def send(self, message_body: io.BytesIO) -> None:
        url = self.url  # no host configured: fail before opening a session
        session = self._get_session()
        payload, compressed = self._prepare_payload(message_body)

        try:
            async with session.post(
                url, data=payload, headers=self._request_headers(compressed)
            ) as response:
                if not 200 <= response.status < 300:
                    raise DeliveryError(
                        f"Failed to transmit log with error {response.reason}",
                        status=response.status,
                        reason=response.reason,
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DeliveryError(f"Failed to transmit log: {e!r}") from e

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
