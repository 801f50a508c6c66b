"""
Contract for the advisory channel: a language model that suggests columns and answers move-advice questions.

Nothing the advisor returns is trusted. Suggested columns are checked against the board by the caller,
and any failure is reported as AdvisoryError so the caller can fall back to the deterministic policy.
"""

import re
from dataclasses import dataclass
from typing import Literal, Optional, Protocol

from src.connect_four.board import COLS, Board
from src.core.shared_types import Color, Difficulty

COLUMN_PATTERN = re.compile(rf"[0-{COLS - 1}]")

# Chat advice only forwards the most recent messages of the conversation
ADVICE_HISTORY_LIMIT = 5


@dataclass(frozen=True)
class ChatMessage:
    role: Literal["user", "assistant"]
    content: str


class MoveAdvisor(Protocol):
    """Advisory collaborator"""

    def suggest_column(
        self, board: Board, player: Color, difficulty: Difficulty
    ) -> int:
        """Suggested column for `player`. Raises AdvisoryError when no usable answer arrives."""
        ...

    def advise(
        self,
        board: Board,
        turn: Optional[Color],
        my_color: Optional[Color],
        difficulty: Difficulty,
        conversation: list[ChatMessage],
    ) -> str:
        """Free-text answer to the last user message of `conversation`."""
        ...


def parse_column(text: str) -> Optional[int]:
    """First column digit in a model reply, if any."""
    found = COLUMN_PATTERN.search(text or "")
    return int(found.group(0)) if found else None


def suggestion_prompt(board: Board, player: Color, difficulty: Difficulty) -> str:
    return (
        f"You are a Connect Four player at {difficulty} difficulty.\n"
        "Current board state, top row first (. = empty, R = RED, B = BLUE):\n"
        f"{board.to_text()}\n\n"
        f"You are playing as {player.name}. Choose the column (0-{COLS - 1}) to drop your piece.\n"
        f"Respond with ONLY a single digit from 0-{COLS - 1}."
    )


def advice_prompt(
    board: Board,
    turn: Optional[Color],
    my_color: Optional[Color],
    difficulty: Difficulty,
) -> str:
    return (
        "You are a Connect Four assistant. Analyze the board and give brief, precise advice.\n"
        "Current board state, top row first (. = empty, R = RED, B = BLUE):\n"
        f"{board.to_text()}\n\n"
        f"Current turn: {turn.name if turn else 'None'}\n"
        f"User's color: {my_color.name if my_color else 'None'}\n"
        f"Difficulty level: {difficulty}\n"
        f"When recommending a move, name the column number (0-{COLS - 1})."
    )
