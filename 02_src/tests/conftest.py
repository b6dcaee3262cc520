"""Pytest configuration and fixtures."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tibera.config import QueueConfig  # noqa: E402


class FakeTransport:
    """Records every batch it is asked to send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.batches: list[list[dict[str, Any]]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def send(self, events: list[dict[str, Any]]) -> bool:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            self.batches.append([dict(e) for e in events])
            return not self.fail
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.closed = True

    @property
    def sent_events(self) -> list[dict[str, Any]]:
        return [event for batch in self.batches for event in batch]


async def wait_until(predicate: Callable[[], bool], timeout: float = 3.0) -> None:
    """Poll until predicate() holds or fail after timeout seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


def persisted_events(environment, config: QueueConfig | None = None) -> list | None:
    """Decode the queue snapshot held in the environment's local store."""
    key = (config or QueueConfig()).storage_key
    raw = environment.storage.get_item(key)
    return None if raw is None else json.loads(raw)


@pytest.fixture
def manual_config():
    """Timers that never fire during a test; flushes are driven by hand."""
    return QueueConfig(debounce_ms=60_000, initial_flush_ms=60_000)


@pytest.fixture
def fast_config():
    """Short delays so scheduled flushes happen within a test."""
    return QueueConfig(
        debounce_ms=5,
        initial_flush_ms=5,
        base_backoff_ms=5,
        max_backoff_ms=40,
    )


@pytest.fixture
def environment():
    """Online, visible client environment with in-memory storage."""
    from tibera.client import ClientEnvironment, MemoryLocalStore

    return ClientEnvironment(storage=MemoryLocalStore())


@pytest.fixture
def transport():
    """Accepting fake transport."""
    return FakeTransport()


@pytest_asyncio.fixture
async def queue(environment, transport, manual_config):
    """EventQueue driven manually."""
    from tibera.client import EventQueue

    q = EventQueue(environment=environment, transport=transport, config=manual_config)
    yield q
    await q.close()


@pytest_asyncio.fixture
async def fast_queue(environment, transport, fast_config):
    """EventQueue whose timers fire quickly."""
    from tibera.client import EventQueue

    q = EventQueue(environment=environment, transport=transport, config=fast_config)
    yield q
    await q.close()


@pytest_asyncio.fixture
async def store():
    """Create in-memory event store for testing."""
    from tibera.storage import EventStore

    st = EventStore(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest_asyncio.fixture
async def application():
    """Started application on an in-memory database."""
    from tibera.app import Application

    app = Application(db_path=":memory:")
    await app.start()
    yield app
    await app.stop()


@pytest.fixture
def fastapi_app(application):
    """FastAPI app bound to the started application."""
    from tibera.api import create_fastapi_app

    return create_fastapi_app(application)


@pytest_asyncio.fixture
async def api_client(fastapi_app):
    """HTTP client talking to the app in-process."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=fastapi_app),
        base_url="http://test",
    ) as client:
        yield client
