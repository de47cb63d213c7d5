"""
Правила крестиков-ноликов: доска, очередь хода, победа/ничья.
Чистые функции без состояния и без I/O; доска — неизменяемый кортеж.
"""
from dataclasses import dataclass

from .constants import BOARD_CELLS, MARKS, O, WIN_LINES, X, Mark

Board = tuple[Mark | None, ...]

IN_PROGRESS = "in_progress"
WIN = "win"
DRAW = "draw"


class InvalidMove(ValueError):
    """Ход невозможен: клетка занята, индекс вне доски или партия окончена."""


@dataclass(frozen=True)
class Outcome:
    status: str = IN_PROGRESS
    winner: Mark | None = None
    line: tuple[int, int, int] | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status != IN_PROGRESS


def new_board() -> Board:
    return (None,) * BOARD_CELLS


def next_mark(board: Board) -> Mark:
    """Ходит тот, у кого меньше знаков; при равенстве — X."""
    return X if board.count(X) == board.count(O) else O


def evaluate_outcome(board: Board) -> Outcome:
    """
    Проверяет 8 линий в фиксированном порядке. Первая заполненная одним
    знаком линия определяет победителя. Иначе ничья при полной доске.
    """
    for a, b, c in WIN_LINES:
        mark = board[a]
        if mark is not None and mark == board[b] == board[c]:
            return Outcome(WIN, mark, (a, b, c))
    if all(cell is not None for cell in board):
        return Outcome(DRAW)
    return Outcome()


def apply_move(board: Board, index: int) -> Board:
    """Возвращает новую доску со знаком текущего игрока в клетке index."""
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < BOARD_CELLS:
        raise InvalidMove(f"index out of range: {index!r}")
    if board[index] is not None:
        raise InvalidMove(f"cell {index} is occupied")
    if evaluate_outcome(board).is_terminal:
        raise InvalidMove("game is over")
    cells = list(board)
    cells[index] = next_mark(board)
    return tuple(cells)


def is_valid_board(board) -> bool:
    """Доска из 9 клеток, достижимая чередованием ходов с X."""
    if not isinstance(board, (list, tuple)) or len(board) != BOARD_CELLS:
        return False
    if any(cell is not None and cell not in MARKS for cell in board):
        return False
    x, o = board.count(X), board.count(O)
    if x not in (o, o + 1):
        return False
    winners = {board[a] for a, b, c in WIN_LINES if board[a] is not None and board[a] == board[b] == board[c]}
    if len(winners) > 1:
        return False
    if X in winners and x != o + 1:
        return False
    if O in winners and x != o:
        return False
    return True


def status_text(board: Board) -> str:
    outcome = evaluate_outcome(board)
    if outcome.status == WIN:
        return f"Winner: {outcome.winner}"
    if outcome.status == DRAW:
        return "Draw"
    return f"Next player: {next_mark(board)}"
