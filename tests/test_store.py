"""Tests for document store backends."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.api_core.exceptions import ServiceUnavailable

from tictactoe.config import get_config
from tictactoe.store import (
    FirestoreStore,
    InMemoryStore,
    StorageUnavailable,
    get_store,
)


class TestInMemoryStore:
    def test_insert_and_query(self) -> None:
        store = InMemoryStore()

        async def scenario():
            a = await store.insert("games", {"winner": "X"})
            await store.insert("games", {"winner": "O"})
            await store.insert("other", {"winner": "X"})
            return a, await store.query_where("games", "winner", "X")

        a, docs = asyncio.run(scenario())
        assert [d.id for d in docs] == [a]
        assert docs[0].data == {"winner": "X"}

    def test_query_unknown_collection_is_empty(self) -> None:
        assert asyncio.run(InMemoryStore().query_where("nope", "winner", "X")) == []

    def test_stored_data_is_copied(self) -> None:
        store = InMemoryStore()
        data = {"winner": "X"}

        async def scenario():
            await store.insert("games", data)
            data["winner"] = "O"
            docs = await store.query_where("games", "winner", "X")
            docs[0].data["winner"] = "O"
            return await store.query_where("games", "winner", "X")

        assert len(asyncio.run(scenario())) == 1


class TestFirestoreStore:
    def _client(self) -> MagicMock:
        return MagicMock()

    def test_insert_returns_document_id(self) -> None:
        client = self._client()
        client.collection.return_value.add = AsyncMock(return_value=(None, SimpleNamespace(id="doc-1")))
        store = FirestoreStore(client=client)

        assert asyncio.run(store.insert("games", {"winner": "X"})) == "doc-1"
        client.collection.assert_called_with("games")
        client.collection.return_value.add.assert_awaited_once_with({"winner": "X"})

    def test_query_uses_equality_filter(self) -> None:
        client = self._client()
        snap = SimpleNamespace(id="doc-2", to_dict=lambda: {"winner": "O"})
        query = client.collection.return_value.where.return_value
        query.get = AsyncMock(return_value=[snap])
        store = FirestoreStore(client=client)

        docs = asyncio.run(store.query_where("games", "winner", "O"))

        assert [(d.id, d.data) for d in docs] == [("doc-2", {"winner": "O"})]
        field_filter = client.collection.return_value.where.call_args.kwargs["filter"]
        assert field_filter.field_path == "winner"
        assert field_filter.op_string == "=="
        assert field_filter.value == "O"

    def test_backend_errors_become_storage_unavailable(self) -> None:
        client = self._client()
        client.collection.return_value.add = AsyncMock(side_effect=ServiceUnavailable("down"))
        client.collection.return_value.where.return_value.get = AsyncMock(
            side_effect=ServiceUnavailable("down")
        )
        store = FirestoreStore(client=client)

        with pytest.raises(StorageUnavailable):
            asyncio.run(store.insert("games", {}))
        with pytest.raises(StorageUnavailable):
            asyncio.run(store.query_where("games", "winner", "X"))


def test_get_store_follows_config(monkeypatch) -> None:
    assert isinstance(get_store(), InMemoryStore)

    monkeypatch.setenv("STORAGE_BACKEND", "firestore")
    get_config.cache_clear()
    get_store.cache_clear()
    assert isinstance(get_store(), FirestoreStore)
