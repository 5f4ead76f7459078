"""
Pytest fixtures and test configuration for chronyx tests.
"""

import json
from typing import Callable, List, Optional

import httpx
import pytest

from chronyx.config import Settings, get_settings
from chronyx.storage import MemoryQueueStore, OfflineQueue, RestClient

SUPABASE_URL = "https://project.supabase.co"
API_KEY = "publishable-key"


@pytest.fixture(autouse=True)
def chronyx_home(tmp_path, monkeypatch):
    """Point the data dir at a temp directory and clear ambient credentials."""
    home = tmp_path / "chronyx-home"
    monkeypatch.setenv("CHRONYX_DATA_DIR", str(home))
    monkeypatch.delenv("CHRONYX_SUPABASE_URL", raising=False)
    monkeypatch.delenv("CHRONYX_SUPABASE_PUBLISHABLE_KEY", raising=False)
    get_settings.cache_clear()
    yield home
    get_settings.cache_clear()


class FakeClock:
    """Millisecond clock that advances by ``step`` on every read."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


class FakeRestServer:
    """Records requests and answers them through ``responder``.

    ``responder`` maps a request to a response; the default accepts
    everything with 201 and an empty body.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            201
        )

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    def fail_with(self, status_code: int, body: str = "") -> None:
        self.responder = lambda request: httpx.Response(status_code, text=body)

    def drop_connection(self) -> None:
        def responder(request):
            raise httpx.ConnectError("network unreachable", request=request)

        self.responder = responder

    def bodies(self) -> List[Optional[dict]]:
        return [json.loads(r.content) if r.content else None for r in self.requests]


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rest_server():
    return FakeRestServer()


@pytest.fixture
def client(rest_server, settings):
    """RestClient wired to the fake server."""
    return RestClient(
        SUPABASE_URL,
        API_KEY,
        transport=httpx.MockTransport(rest_server.handle),
        settings=settings,
    )


@pytest.fixture
def unconfigured_client(rest_server, settings):
    """RestClient with no URL or key anywhere."""
    return RestClient(transport=httpx.MockTransport(rest_server.handle), settings=settings)


@pytest.fixture
def store():
    return MemoryQueueStore()


@pytest.fixture
def queue(store, client, clock):
    """OfflineQueue over an in-memory store and the fake server."""
    return OfflineQueue(store, client, clock=clock, record_events=False)
