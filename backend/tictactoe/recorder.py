"""
Запись результатов завершённых партий и чтение статистики.
Все ошибки хранилища логируются и заменяются безопасным значением:
запись и чтение никогда не ломают игру.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from .config import get_config
from .constants import O, X, Mark
from .engine import Board, is_valid_board
from .store import DocumentStore, StorageUnavailable, get_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameRecord:
    board: Board
    winner: Mark | None = None
    owner_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "squares": list(self.board),
            "winner": self.winner,
            "owner_id": self.owner_id,
            "created_at": self.created_at,
        }

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "GameRecord | None":
        """Собирает запись из документа; None если доска повреждена."""
        squares = data.get("squares")
        if not is_valid_board(squares):
            return None
        winner = data.get("winner")
        created_at = data.get("created_at")
        if not isinstance(created_at, datetime):
            created_at = datetime.fromtimestamp(0, timezone.utc)
        return cls(
            board=tuple(squares),
            winner=winner if winner in (X, O) else None,
            owner_id=data.get("owner_id"),
            created_at=created_at,
            id=doc_id,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "squares": list(self.board),
            "winner": self.winner,
            "created_at": self.created_at.isoformat(),
        }


class GameRecorder:
    def __init__(self, store: DocumentStore, collection: str = "games"):
        self.store = store
        self.collection = collection
        self._pending: set[asyncio.Task] = set()

    async def record_result(self, board: Board, winner: Mark | None, owner_id: str | None = None) -> str | None:
        """
        Один вызов — одна вставка, без дедупликации: повторную запись той же
        партии предотвращает вызывающий (токен сессии).
        """
        record = GameRecord(board=tuple(board), winner=winner, owner_id=owner_id)
        try:
            record_id = await self.store.insert(self.collection, record.to_document())
        except StorageUnavailable as e:
            logger.warning("Recorder: game not recorded: %s", e)
            return None
        logger.info("Recorder: written with ID %s winner=%s owner=%s", record_id, winner, owner_id)
        return record_id

    def record_in_background(
        self,
        board: Board,
        winner: Mark | None,
        owner_id: str | None = None,
        on_recorded: Callable[[str], Awaitable[None]] | None = None,
    ) -> asyncio.Task:
        """Запускает запись, не дожидаясь её. Без отмены и повторов."""
        task = asyncio.create_task(self._record_then_notify(board, winner, owner_id, on_recorded))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _record_then_notify(self, board, winner, owner_id, on_recorded) -> str | None:
        record_id = await self.record_result(board, winner, owner_id)
        if record_id is not None and on_recorded is not None:
            await on_recorded(record_id)
        return record_id

    async def fetch_win_tally(self) -> tuple[int, int]:
        """(побед X, побед O); (0, 0) если хранилище недоступно."""
        try:
            x_docs, o_docs = await asyncio.gather(
                self.store.query_where(self.collection, "winner", X),
                self.store.query_where(self.collection, "winner", O),
            )
        except StorageUnavailable as e:
            logger.warning("Recorder: error fetching win counts: %s", e)
            return 0, 0
        return len(x_docs), len(o_docs)

    async def fetch_history(self, owner_id: str) -> list[GameRecord]:
        """Партии владельца в произвольном порядке; [] при ошибке."""
        try:
            docs = await self.store.query_where(self.collection, "owner_id", owner_id)
        except StorageUnavailable as e:
            logger.warning("Recorder: error fetching history for %s: %s", owner_id, e)
            return []
        records = []
        for doc in docs:
            record = GameRecord.from_document(doc.id, doc.data)
            if record is None:
                logger.warning("Recorder: skipping malformed record %s", doc.id)
                continue
            records.append(record)
        return records


@lru_cache
def get_recorder() -> GameRecorder:
    return GameRecorder(get_store(), get_config().games_collection)
