"""
Win and tie detection over a Board, plus the turn rule.

All functions are pure. The caller owns the order of checks: test the mover for a win first, only then test for a tie.
"""

from typing import Optional

from src.connect_four.board import COLS, ROWS, Board, Slot
from src.core.shared_types import Color

CONNECT = 4

Cell = tuple[int, int]

# (row step, column step) for: horizontal, vertical, diagonal down-right, diagonal up-right
DIRECTIONS: tuple[tuple[int, int], ...] = ((0, 1), (1, 0), (1, 1), (-1, 1))


def turn_of(move_count: int) -> Color:
    """Color to move after `move_count` moves. RED moves on even counts, BLUE on odd ones."""
    return Color.RED if move_count % 2 == 0 else Color.BLUE


def _windows(direction: tuple[int, int]) -> list[list[Cell]]:
    """Every run of CONNECT cells along `direction` that stays on the board."""
    d_row, d_col = direction
    windows: list[list[Cell]] = []
    for row in range(ROWS):
        for col in range(COLS):
            end_row = row + d_row * (CONNECT - 1)
            end_col = col + d_col * (CONNECT - 1)
            if 0 <= end_row < ROWS and 0 <= end_col < COLS:
                windows.append(
                    [(row + d_row * i, col + d_col * i) for i in range(CONNECT)]
                )
    return windows


# Computed once: 24 horizontal, 21 vertical, 12 + 12 diagonal windows
WINDOWS: tuple[tuple[Cell, ...], ...] = tuple(
    tuple(window) for direction in DIRECTIONS for window in _windows(direction)
)


def winning_line(board: Board, player: Color) -> Optional[list[Cell]]:
    """The first four-in-a-row of `player` found, as (row, column) cells."""
    target = Slot.of(player)
    for window in WINDOWS:
        if all(board.grid[row][col] == target for row, col in window):
            return list(window)
    return None


def check_win(board: Board, player: Color) -> bool:
    return winning_line(board, player) is not None


def check_tie(board: Board) -> bool:
    """Board is full. Gravity guarantees that a full top row means a full board."""
    return all(slot != Slot.EMPTY for slot in board.grid[0])
