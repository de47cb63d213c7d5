"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from tictactoe.config import get_config
from tictactoe.recorder import GameRecorder, get_recorder
from tictactoe.store import InMemoryStore, StorageUnavailable, get_store


class FailingStore:
    """Document store that is always unavailable."""

    def __init__(self):
        self.calls = 0

    async def insert(self, collection, data):
        self.calls += 1
        raise StorageUnavailable("simulated outage")

    async def query_where(self, collection, field, value):
        self.calls += 1
        raise StorageUnavailable("simulated outage")


class CountingStore(InMemoryStore):
    """In-memory store that counts inserts."""

    def __init__(self):
        super().__init__()
        self.inserts = 0

    async def insert(self, collection, data):
        self.inserts += 1
        return await super().insert(collection, data)


def _clear_caches() -> None:
    get_config.cache_clear()
    get_store.cache_clear()
    get_recorder.cache_clear()


@pytest.fixture(autouse=True)
def memory_backend(monkeypatch):
    """Run every test against the in-memory store with debug auth enabled."""
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("DEBUG", "1")
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture
def memory_store() -> CountingStore:
    return CountingStore()


@pytest.fixture
def recorder(memory_store: CountingStore) -> GameRecorder:
    return GameRecorder(memory_store, collection="games")


@pytest.fixture
def failing_recorder() -> GameRecorder:
    return GameRecorder(FailingStore(), collection="games")


@pytest.fixture
def client(recorder: GameRecorder, monkeypatch):
    """Test client whose handlers use the in-memory recorder fixture."""
    from tictactoe import main, ws_handlers

    monkeypatch.setattr(ws_handlers, "get_recorder", lambda: recorder)
    monkeypatch.setattr(main, "get_recorder", lambda: recorder)
    with TestClient(main.app) as c:
        yield c
