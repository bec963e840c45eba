"""In-memory WebSocket transport used to drive sessions without a network."""
import asyncio
import json
from types import SimpleNamespace

import aiohttp
import pytest
from aiohttp import WSMsgType

from valr.config import WebSocketConfig


def _msg(msg_type, data=None, extra=None):
    return SimpleNamespace(type=msg_type, data=data, extra=extra)


class FakeTransport:
    """Mimics the parts of aiohttp.ClientWebSocketResponse the session uses."""

    def __init__(self, log):
        self.log = log
        self.sent = []
        self.closed = False
        self.close_code = None
        self._inbox = asyncio.Queue()

    def feed(self, payload):
        data = payload if isinstance(payload, str) else json.dumps(payload)
        self._inbox.put_nowait(_msg(WSMsgType.TEXT, data))

    def drop(self, code=1006, reason="server went away"):
        """Simulate the server closing the connection."""
        self.closed = True
        self.close_code = code
        self._inbox.put_nowait(_msg(WSMsgType.CLOSE, code, reason))

    async def receive(self):
        if self.closed and self._inbox.empty():
            return _msg(WSMsgType.CLOSED)
        return await self._inbox.get()

    async def send_str(self, data):
        self.sent.append(json.loads(data))
        self.log.append(("send", json.loads(data)))

    async def close(self, code=1000):
        if not self.closed:
            self.closed = True
            self.close_code = code
            self._inbox.put_nowait(_msg(WSMsgType.CLOSED))
        return True


class FakeConnector:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []
        self.transports = []
        self.log = []

    async def __call__(self, url, headers):
        self.calls.append((url, dict(headers)))
        if self.fail:
            raise aiohttp.ClientConnectionError("connection refused")
        transport = FakeTransport(self.log)
        self.transports.append(transport)
        return transport

    @property
    def transport(self):
        return self.transports[-1]


async def _eventually(predicate, timeout=1.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def failing_connector():
    return FakeConnector(fail=True)


@pytest.fixture
def fast_config():
    return WebSocketConfig(reconnect_delay=0.01, ping_interval=60.0)


@pytest.fixture
def eventually():
    return _eventually
