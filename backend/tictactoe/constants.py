"""Константы игры."""
from typing import Literal

Mark = Literal["X", "O"]

X: Mark = "X"
O: Mark = "O"
MARKS: tuple[Mark, Mark] = (X, O)

BOARD_CELLS = 9

# Порядок перебора: строки, столбцы, диагонали.
WIN_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

STORAGE_BACKENDS = ("firestore", "memory")
