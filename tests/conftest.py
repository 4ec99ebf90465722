"""
Shared fixtures for graylog_client tests
"""

import gzip
import json
import os
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from graylog_client.config import set_default_settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate tests from GRAYLOG_* variables and the process-wide default"""
    for key in list(os.environ):
        if key.startswith("GRAYLOG_"):
            monkeypatch.delenv(key)
    set_default_settings(None)
    yield
    set_default_settings(None)


def decode_gelf_body(body: bytes) -> dict:
    """Decode a GELF body whether or not it is still gzipped"""
    if body[:2] == b"\x1f\x8b":
        body = gzip.decompress(body)
    return json.loads(body.decode("utf-8"))


@asynccontextmanager
async def _collector(status: int = 202, reason: str = None):
    received = []

    async def gelf(request: web.Request) -> web.Response:
        received.append({"headers": request.headers.copy(), "body": await request.read()})
        return web.Response(status=status, reason=reason)

    app = web.Application()
    app.router.add_post("/gelf", gelf)
    async with TestServer(app) as server:
        yield server, received


@pytest.fixture
def mock_collector():
    """Factory for a GELF HTTP collector recording every POST it receives"""
    return _collector


@pytest.fixture
def decode_body():
    return decode_gelf_body
