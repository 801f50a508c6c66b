"""Unit tests for /src/connect_four/policy.py"""

import random
from collections import Counter

import pytest

from src.connect_four.board import COLS, Board, apply_move, create_initial_board, is_valid_move
from src.connect_four.policy import (
    CENTER_ORDER,
    choose_move,
    find_bottom_open_two,
    find_double_threat,
    find_open_three,
    find_winning_move,
    winning_columns,
)
from src.connect_four.rules import check_win, turn_of
from src.core.exceptions import GameStateError
from src.core.shared_types import Color, Difficulty

EMPTY_ROWS = ".......\n" * 5

# BLUE to move can win in column 3 (three BLUE stacked); RED threatens column 0
BLUE_CAN_WIN = """
.......
.......
.......
...B...
R..B...
RR.B.R.
"""

# RED to move; BLUE threatens to complete the bottom row in column 6
RED_MUST_BLOCK = EMPTY_ROWS + "R.RBBB."


@pytest.mark.parametrize("difficulty", [Difficulty.MEDIUM, Difficulty.HARD, Difficulty.IMPOSSIBLE])
def test_takes_immediate_win(difficulty: Difficulty) -> None:
    board = Board.from_text(BLUE_CAN_WIN)
    assert choose_move(board, Color.BLUE, difficulty, random.Random(0)) == 3


@pytest.mark.parametrize("difficulty", [Difficulty.MEDIUM, Difficulty.HARD, Difficulty.IMPOSSIBLE])
def test_blocks_immediate_loss(difficulty: Difficulty) -> None:
    board = Board.from_text(RED_MUST_BLOCK)
    assert choose_move(board, Color.RED, difficulty, random.Random(0)) == 6


def test_win_is_preferred_over_block() -> None:
    # RED wins in column 0 while BLUE threatens columns 2 and 6
    board = Board.from_text(".......\n.......\n.......\nR......\nR......\nR..BBB.")
    assert find_winning_move(board, Color.BLUE) == 2
    assert choose_move(board, Color.RED, Difficulty.IMPOSSIBLE) == 0
    assert choose_move(board, Color.RED, Difficulty.HARD) == 0


def test_first_winning_column_wins_ties() -> None:
    # RED wins in column 0 or column 4
    board = Board.from_text(EMPTY_ROWS + ".RRR...")
    assert winning_columns(board, Color.RED) == [0, 4]
    assert find_winning_move(board, Color.RED) == 0


def test_winning_move_found_iff_one_exists() -> None:
    """Tier 1 answers exactly when some playable column wins for the mover."""
    rng = random.Random(11)
    for _ in range(200):
        board = create_initial_board()
        for move_count in range(rng.randrange(0, 30)):
            board = apply_move(board, rng.choice(board.valid_columns()), turn_of(move_count))
            if check_win(board, turn_of(move_count)):
                break
        for color in Color:
            exists = any(
                check_win(apply_move(board, c, color), color)
                for c in range(COLS)
                if is_valid_move(board, c)
            )
            assert (find_winning_move(board, color) is not None) == exists


def test_open_three_with_reachable_end() -> None:
    board = Board.from_text(EMPTY_ROWS + ".RRR...")
    assert find_open_three(board, Color.RED) == 4


def test_open_three_needs_a_reachable_end() -> None:
    # BLUE run on row 4 spans columns 1-3; left end is taken, right end sits on a piece
    board = Board.from_text(".......\n.......\n.......\n.......\nRBBB...\nRRRBBR.")
    assert find_open_three(board, Color.BLUE) == 4

    # same run, but the right end has an empty slot below it
    floating = Board.from_text(".......\n.......\n.......\n.......\nRBBB...\nRRRB...")
    assert find_open_three(floating, Color.BLUE) is None


def test_bottom_open_two() -> None:
    board = Board.from_text(EMPTY_ROWS + "..RR...")
    assert find_bottom_open_two(board, Color.RED) == 1
    assert find_bottom_open_two(board, Color.BLUE) is None


def test_double_threat_creation() -> None:
    # RED to play column 3 gets two winning columns (1 and 5) on the bottom row
    board = Board.from_text(EMPTY_ROWS + "..R.R..")
    column = find_double_threat(board, Color.RED)
    assert column == 3
    after = apply_move(board, column, Color.RED)
    assert len(winning_columns(after, Color.RED)) >= 2


def test_impossible_blocks_opponent_double_threat() -> None:
    board = Board.from_text(EMPTY_ROWS + "..B.B..")
    # BLUE threatens .BBB. by playing column 3; RED takes it first
    assert choose_move(board, Color.RED, Difficulty.IMPOSSIBLE) == 3


def test_center_preference_on_empty_board() -> None:
    board = create_initial_board()
    assert choose_move(board, Color.RED, Difficulty.HARD) == 3
    assert choose_move(board, Color.RED, Difficulty.IMPOSSIBLE) == 3


def test_center_preference_skips_full_columns() -> None:
    board = create_initial_board()
    for i in range(6):
        board = apply_move(board, 3, Color.RED if i % 2 == 0 else Color.BLUE)
    assert CENTER_ORDER[0] == 3
    assert choose_move(board, Color.RED, Difficulty.HARD) == 2


def test_deterministic_levels_ignore_rng() -> None:
    board = Board.from_text(EMPTY_ROWS + "..RB...")
    for difficulty in (Difficulty.HARD, Difficulty.IMPOSSIBLE):
        picks = {choose_move(board, Color.RED, difficulty, random.Random(seed)) for seed in range(20)}
        assert len(picks) == 1


def test_seeded_rng_makes_random_levels_reproducible() -> None:
    board = create_initial_board()
    for difficulty in (Difficulty.EASY, Difficulty.MEDIUM):
        first = [choose_move(board, Color.RED, difficulty, random.Random(42)) for _ in range(5)]
        second = [choose_move(board, Color.RED, difficulty, random.Random(42)) for _ in range(5)]
        assert first == second


def test_medium_stays_near_center() -> None:
    rng = random.Random(5)
    picks = Counter(choose_move(create_initial_board(), Color.BLUE, Difficulty.MEDIUM, rng) for _ in range(100))
    assert set(picks) <= {2, 3, 4}


def test_easy_always_plays_a_legal_column() -> None:
    rng = random.Random(9)
    board = create_initial_board()
    for i in range(6):
        board = apply_move(board, 0, Color.RED if i % 2 == 0 else Color.BLUE)
    for _ in range(100):
        assert choose_move(board, Color.BLUE, Difficulty.EASY, rng) != 0


def test_full_board_has_no_move() -> None:
    board = Board.from_text("RRBBRRB\nBBRRBBR\n" * 3)
    with pytest.raises(GameStateError):
        choose_move(board, Color.RED, Difficulty.IMPOSSIBLE)
