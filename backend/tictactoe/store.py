"""
Хранилище документов: вставка и выборка по равенству поля.
Firestore для продакшена, in-memory для локальной разработки и тестов.
"""
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol

from firebase_admin import firestore_async
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud.firestore_v1.base_query import FieldFilter

from .config import get_config
from .constants import STORAGE_BACKENDS
from .firebase import get_firebase_app

logger = logging.getLogger(__name__)

# Ошибки клиента Firestore, которые означают недоступность хранилища.
_BACKEND_ERRORS = (GoogleAPIError, GoogleAuthError, ValueError, OSError)


class StorageUnavailable(Exception):
    """Хранилище не ответило или отказало в операции."""


@dataclass
class StoredDocument:
    id: str
    data: dict[str, Any]


class DocumentStore(Protocol):
    async def insert(self, collection: str, data: dict[str, Any]) -> str: ...

    async def query_where(self, collection: str, field: str, value: Any) -> list[StoredDocument]: ...


class FirestoreStore:
    """Обёртка над AsyncClient из firebase_admin; клиент создаётся лениво."""

    def __init__(self, client=None):
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = firestore_async.client(get_firebase_app())
        return self._client

    async def insert(self, collection: str, data: dict[str, Any]) -> str:
        try:
            _, ref = await self._get_client().collection(collection).add(data)
        except _BACKEND_ERRORS as e:
            raise StorageUnavailable(f"insert into {collection} failed: {e}") from e
        return ref.id

    async def query_where(self, collection: str, field: str, value: Any) -> list[StoredDocument]:
        try:
            query = self._get_client().collection(collection).where(
                filter=FieldFilter(field, "==", value)
            )
            snapshots = await query.get()
        except _BACKEND_ERRORS as e:
            raise StorageUnavailable(f"query {collection}.{field} failed: {e}") from e
        return [StoredDocument(id=s.id, data=s.to_dict() or {}) for s in snapshots]


class InMemoryStore:
    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)

    async def insert(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._collections[collection][doc_id] = dict(data)
        return doc_id

    async def query_where(self, collection: str, field: str, value: Any) -> list[StoredDocument]:
        docs = self._collections.get(collection, {})
        return [
            StoredDocument(id=doc_id, data=dict(data))
            for doc_id, data in docs.items()
            if field in data and data[field] == value
        ]


@lru_cache
def get_store() -> DocumentStore:
    backend = get_config().storage_backend
    if backend == "memory":
        logger.info("Storage: using in-memory document store")
        return InMemoryStore()
    if backend not in STORAGE_BACKENDS:
        logger.warning("Storage: unknown backend %r, falling back to firestore", backend)
    return FirestoreStore()
