"""The Board holds the grid of slots. Every transition returns a new Board; nothing mutates in place."""

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Self

from src.core.shared_types import Color

log = logging.getLogger(__name__)

# Standard Connect Four grid. Row 0 is the TOP row, pieces settle towards row ROWS - 1.
ROWS = 6
COLS = 7


class Slot(StrEnum):
    EMPTY = "empty"
    RED = "red"
    BLUE = "blue"

    @classmethod
    def of(cls, color: Color) -> "Slot":
        return cls(color.value)


SLOT_TO_TEXT: dict[Slot, str] = {Slot.EMPTY: ".", Slot.RED: "R", Slot.BLUE: "B"}
TEXT_TO_SLOT: dict[str, Slot] = {value: key for key, value in SLOT_TO_TEXT.items()}

Grid = tuple[tuple[Slot, ...], ...]


@dataclass(frozen=True)
class Board:
    grid: Grid

    @classmethod
    def empty(cls) -> Self:
        return cls(tuple(tuple(Slot.EMPTY for _ in range(COLS)) for _ in range(ROWS)))

    @classmethod
    def from_text(cls, text: str) -> Self:
        """Construct a board from its text rendering.

        One line per row, TOP row first, using '.' for empty, 'R' for red and 'B' for blue:
        .......
        .......
        .......
        .......
        ...B...
        ..RRB..
        Blank lines and surrounding whitespace are ignored.
        """
        rows = [line.strip() for line in text.strip().splitlines() if line.strip()]
        if len(rows) != ROWS or any(len(row) != COLS for row in rows):
            raise ValueError(f"Board text must have {ROWS} rows of {COLS} characters.")
        unknown = {char for row in rows for char in row} - TEXT_TO_SLOT.keys()
        if unknown:
            raise ValueError(f"Board text contains unknown characters: {sorted(unknown)}")
        return cls(tuple(tuple(TEXT_TO_SLOT[char] for char in row) for row in rows))

    @classmethod
    def from_rows(cls, rows: list[list[str]]) -> Self:
        """Inverse of `to_rows`."""
        return cls(tuple(tuple(Slot(slot) for slot in row) for row in rows))

    def to_text(self) -> str:
        return "\n".join(
            "".join(SLOT_TO_TEXT[slot] for slot in row) for row in self.grid
        )

    def slot(self, row: int, column: int) -> Slot:
        return self.grid[row][column]

    def column_height(self, column: int) -> int:
        """Number of pieces stacked in a column."""
        return sum(1 for row in range(ROWS) if self.grid[row][column] != Slot.EMPTY)

    def piece_count(self) -> int:
        return sum(1 for row in self.grid for slot in row if slot != Slot.EMPTY)

    def valid_columns(self) -> list[int]:
        return [column for column in range(COLS) if is_valid_move(self, column)]

    def to_rows(self) -> list[list[str]]:
        """Plain nested lists of slot names (used in responses)."""
        return [[slot.value for slot in row] for row in self.grid]


def create_initial_board() -> Board:
    return Board.empty()


def is_valid_move(board: Board, column: int) -> bool:
    """A column is playable if it exists and its top slot is still empty. Never raises."""
    # bool is an int subclass, but True is not column 1
    if isinstance(column, bool) or not isinstance(column, int) or not 0 <= column < COLS:
        return False
    return board.grid[0][column] == Slot.EMPTY


def apply_move(board: Board, column: int, player: Color) -> Board:
    """Drop a piece of `player` into `column`, returning a new board.

    The caller must check `is_valid_move` first. Dropping into a full column
    returns an unmodified copy instead of failing.
    """
    rows = [list(row) for row in board.grid]
    for row in range(ROWS - 1, -1, -1):
        if rows[row][column] == Slot.EMPTY:
            rows[row][column] = Slot.of(player)
            return Board(tuple(tuple(r) for r in rows))

    log.warning("apply_move called on full column %d; board left unchanged.", column)
    return Board(tuple(tuple(r) for r in rows))
