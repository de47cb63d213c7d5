"""
Игровые сессии подключений (in-memory).
Сессия хранит текущую доску и флаг записи результата; правила — в engine.
"""
import uuid
from dataclasses import dataclass, field

from .constants import X
from .engine import (
    Board,
    InvalidMove,
    Outcome,
    apply_move,
    evaluate_outcome,
    new_board,
    next_mark,
    status_text,
)
from .recorder import GameRecord


@dataclass
class GameSession:
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: str | None = None
    board: Board = field(default_factory=new_board)
    recorded: bool = False
    read_only: bool = False  # просмотр сохранённой партии
    record_id: str | None = None

    @property
    def outcome(self) -> Outcome:
        return evaluate_outcome(self.board)

    @property
    def x_is_next(self) -> bool:
        return next_mark(self.board) == X

    def play(self, index: int) -> bool:
        """Сделать ход. False если ход отклонён (доска не меняется)."""
        if self.read_only:
            return False
        try:
            self.board = apply_move(self.board, index)
        except InvalidMove:
            return False
        return True

    def take_record_token(self) -> bool:
        """
        True ровно один раз — на первом вызове после завершения партии.
        Для read_only сессий всегда False.
        """
        if self.read_only or self.recorded or not self.outcome.is_terminal:
            return False
        self.recorded = True
        return True


# Глобальное состояние (in-memory), ключ — идентификатор подключения
_sessions: dict[str, GameSession] = {}


def new_session(key: str, owner_id: str | None = None) -> GameSession:
    """Начать новую партию, заменив текущую."""
    s = GameSession(owner_id=owner_id)
    _sessions[key] = s
    return s


def get_session(key: str) -> GameSession | None:
    return _sessions.get(key)


def get_or_create_session(key: str, owner_id: str | None = None) -> GameSession:
    s = _sessions.get(key)
    if s is None:
        s = new_session(key, owner_id)
    return s


def preview_session(key: str, owner_id: str | None, record: GameRecord) -> GameSession:
    """Показать сохранённую партию без возможности ходить и записывать."""
    s = GameSession(
        owner_id=owner_id,
        board=record.board,
        recorded=True,
        read_only=True,
        record_id=record.id,
    )
    _sessions[key] = s
    return s


def drop_session(key: str) -> None:
    _sessions.pop(key, None)


def session_state_payload(s: GameSession) -> dict:
    """Собрать payload game_state для отправки клиенту."""
    outcome = s.outcome
    return {
        "type": "game_state",
        "game_id": s.id,
        "squares": list(s.board),
        "x_is_next": s.x_is_next,
        "status": status_text(s.board),
        "outcome": outcome.status,
        "winner": outcome.winner,
        "line": list(outcome.line) if outcome.line else None,
        "read_only": s.read_only,
        "recorded": s.recorded,
        "record_id": s.record_id,
    }
