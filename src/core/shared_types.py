"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class Color(StrEnum):
    """The two piece colors. RED always belongs to the first participant and moves first."""

    RED = "red"
    BLUE = "blue"

    @property
    def opponent(self) -> "Color":
        return Color.BLUE if self == Color.RED else Color.RED


class Outcome(StrEnum):
    """Recorded result of a completed game."""

    RED = "red"
    BLUE = "blue"
    TIE = "tie"


class Difficulty(StrEnum):
    """Strength levels of the computer player, weakest first."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    IMPOSSIBLE = "impossible"


# Reserved participant id for the computer player in single-player games
COMPUTER_PLAYER_ID = "computer"
