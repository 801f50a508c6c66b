"""
Move selection for the computer player.

Tactics, in priority order (the `impossible` level uses all of them, weaker levels a subset):

1. win now
2. block the opponent's win
3. block an open three
4. block the opponent's two-way threat, else create one
5. center-out preference

Only the random picks of `easy` and `medium` are nondeterministic, and they draw from the injected `rng`.
"""

import random
from typing import Callable, Optional

from src.connect_four.board import COLS, ROWS, Board, Slot, apply_move, is_valid_move
from src.connect_four.rules import DIRECTIONS, check_win
from src.core.exceptions import GameStateError
from src.core.shared_types import Color, Difficulty

CENTER_ORDER: tuple[int, ...] = (3, 2, 4, 1, 5, 0, 6)

# Columns the `medium` level picks from at random, when any of them is playable
CENTER_BAND: tuple[int, ...] = (2, 3, 4)

# How often `easy` bothers to look for a win or a block before picking at random
EASY_TACTICS_CHANCE = 0.3


def valid_columns(board: Board) -> list[int]:
    return [column for column in range(COLS) if is_valid_move(board, column)]


def winning_columns(board: Board, player: Color) -> list[int]:
    """Every column where dropping a piece of `player` wins immediately (ascending)."""
    return [
        column
        for column in valid_columns(board)
        if check_win(apply_move(board, column, player), player)
    ]


def find_winning_move(board: Board, player: Color) -> Optional[int]:
    columns = winning_columns(board, player)
    return columns[0] if columns else None


def _is_reachable(board: Board, row: int, column: int) -> bool:
    """An empty slot that the next piece dropped in its column would land on."""
    if board.slot(row, column) != Slot.EMPTY:
        return False
    return row == ROWS - 1 or board.slot(row + 1, column) != Slot.EMPTY


def find_open_three(board: Board, player: Color) -> Optional[int]:
    """Column of a playable open end next to a run of three `player` pieces."""
    target = Slot.of(player)
    for d_row, d_col in DIRECTIONS:
        for row in range(ROWS):
            for col in range(COLS):
                run = [(row + d_row * i, col + d_col * i) for i in range(3)]
                if not all(0 <= r < ROWS and 0 <= c < COLS for r, c in run):
                    continue
                if not all(board.slot(r, c) == target for r, c in run):
                    continue
                ends = [(row + d_row * 3, col + d_col * 3), (row - d_row, col - d_col)]
                for r, c in ends:
                    if 0 <= r < ROWS and 0 <= c < COLS and _is_reachable(board, r, c):
                        return c
    return None


def find_bottom_open_two(board: Board, player: Color) -> Optional[int]:
    """Left end of a `.XX.` pattern of `player` on the bottom row.

    Left alone, the pair becomes an open three with two playable ends.
    """
    bottom = board.grid[ROWS - 1]
    target = Slot.of(player)
    for col in range(1, COLS - 2):
        if (
            bottom[col - 1] == Slot.EMPTY
            and bottom[col] == target
            and bottom[col + 1] == target
            and bottom[col + 2] == Slot.EMPTY
        ):
            return col - 1
    return None


def find_double_threat(board: Board, player: Color) -> Optional[int]:
    """Column whose drop leaves `player` with two or more distinct winning columns."""
    for column in valid_columns(board):
        after = apply_move(board, column, player)
        if len(winning_columns(after, player)) >= 2:
            return column
    return None


def center_preference(board: Board) -> Optional[int]:
    for column in CENTER_ORDER:
        if is_valid_move(board, column):
            return column
    return None


def _win_or_block(board: Board, player: Color) -> Optional[int]:
    winning = find_winning_move(board, player)
    if winning is not None:
        return winning
    return find_winning_move(board, player.opponent)


Tactic = Callable[[Board, Color], Optional[int]]

# (tactic, whose pieces it looks at): True for the mover, False for the opponent
PERFECT_PLAY_TACTICS: tuple[tuple[Tactic, bool], ...] = (
    (find_winning_move, True),
    (find_winning_move, False),
    (find_open_three, False),
    (find_bottom_open_two, False),
    (find_double_threat, False),
    (find_double_threat, True),
)


def _perfect_play(board: Board, player: Color) -> Optional[int]:
    for tactic, own_pieces in PERFECT_PLAY_TACTICS:
        column = tactic(board, player if own_pieces else player.opponent)
        if column is not None and is_valid_move(board, column):
            return column
    return center_preference(board)


def choose_move(
    board: Board,
    player: Color,
    difficulty: Difficulty,
    rng: Optional[random.Random] = None,
) -> int:
    """Pick a column for `player`. Always returns a playable column."""
    rng = rng or random.Random()
    columns = valid_columns(board)
    if not columns:
        raise GameStateError("No playable column left on the board.")

    column: Optional[int] = None
    if difficulty == Difficulty.IMPOSSIBLE:
        column = _perfect_play(board, player)
    elif difficulty == Difficulty.HARD:
        column = _win_or_block(board, player)
        if column is None:
            column = center_preference(board)
    elif difficulty == Difficulty.MEDIUM:
        column = _win_or_block(board, player)
        if column is None:
            band = [c for c in CENTER_BAND if c in columns]
            column = rng.choice(band or columns)
    else:
        if rng.random() < EASY_TACTICS_CHANCE:
            column = _win_or_block(board, player)
        if column is None:
            column = rng.choice(columns)

    # center_preference only comes back empty on a full board, excluded above
    assert column is not None
    return column
