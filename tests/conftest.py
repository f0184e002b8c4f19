import os

# Minimal values for tests
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SSE_PING_INTERVAL", "30")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from httpx import ASGITransport
from httpx import AsyncClient
import pytest

from ssechannel.app import app
from ssechannel.channel import SSEChannel
from ssechannel.deps import get_channel
from ssechannel.stream import StreamHandle


class FakeRequest:
    def __init__(self, query=None, socket=None):
        self.query_params = query or {}
        if socket is not None:
            self.socket = socket


def drain(handle: StreamHandle) -> str:
    """Everything flushed to the handle so far, without the end marker."""
    chunks = []
    while not handle.queue.empty():
        chunk = handle.queue.get_nowait()
        if chunk is not None:
            chunks.append(chunk)
    return "".join(chunks)


@pytest.fixture
def channel():
    return SSEChannel()


@pytest.fixture
def request_factory():
    return FakeRequest


@pytest.fixture
def handle_factory():
    return lambda: StreamHandle(maxsize=0)


@pytest.fixture
def connect(channel, handle_factory):
    """Open a stream on the channel and return its handle with the handshake drained."""

    def _connect(connection_id, request=None, target=None):
        target = target or channel
        handle = handle_factory()
        target.add_connection(request or FakeRequest(), handle, connection_id)
        drain(handle)
        return handle

    return _connect


# ---- Override the app channel with a fresh one per test ----
@pytest.fixture
def app_channel():
    fresh = SSEChannel()
    app.dependency_overrides[get_channel] = lambda: fresh
    yield fresh
    app.dependency_overrides.pop(get_channel, None)


# ---- HTTP client bound to the ASGI app ----
@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def read():
    return drain
