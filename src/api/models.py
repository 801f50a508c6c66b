"""Requests and Response models"""

import re
from enum import StrEnum
from typing import Generic, Literal, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError, UsernameInvalidFormatError
from src.core.shared_types import Color, Difficulty, Outcome, Status

PlayerId = str

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")


# --- REQUEST MODELS ---
class RequestMatchRequest(BaseModel):
    player_id: PlayerId


class ComputerGameRequest(BaseModel):
    player_id: PlayerId
    difficulty: Difficulty = Difficulty.EASY


class MoveRequest(BaseModel):
    game_id: UUID
    player_id: PlayerId
    column: int


class GetGameRequest(BaseModel):
    game_id: UUID


class AbandonGameRequest(BaseModel):
    game_id: UUID
    player_id: PlayerId


class UsernameRequest(BaseModel):
    user_id: PlayerId
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not USERNAME_PATTERN.match(value):
            raise UsernameInvalidFormatError(
                "Username must be 3-20 characters and contain only letters, numbers, and underscores. "
                "No spaces or special characters allowed."
            )
        return value


class ChatMessageModel(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AdviceRequest(BaseModel):
    game_id: UUID
    player_id: PlayerId
    question: str
    history: list[ChatMessageModel] = []

    @field_validator("question")
    @classmethod
    def validate_question(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("Question must not be empty.")
        return value


# --- RESPONSE MODELS ---
class GameStatusResponse(BaseModel):
    game_id: UUID
    status: Status
    players: dict[Color, PlayerId]
    board: list[list[str]]
    moves: list[int]
    turn: Optional[Color]
    winner: Optional[Outcome]
    is_tie: bool
    difficulty: Optional[Difficulty] = None


class MatchResponse(BaseModel):
    game_id: UUID
    status: Status
    color: Color
    players: dict[Color, PlayerId]


class MoveResponse(BaseModel):
    game_id: UUID
    column: int
    color: Color
    order: int
    status: Status
    turn: Optional[Color]
    winner: Optional[Outcome]
    computer_column: Optional[int] = None


class UserResponse(BaseModel):
    user_id: PlayerId
    name: str


class OpponentCount(BaseModel):
    name: str
    count: int


class UserStatsResponse(BaseModel):
    wins: int
    losses: int
    ties: int
    games_played: int
    win_percentage: int
    top_opponent_wins: list[OpponentCount]
    top_opponent_losses: list[OpponentCount]


class GameCountsResponse(BaseModel):
    playing_count: int
    waiting_count: int


class AdviceResponse(BaseModel):
    reply: str


# --- RESULT ENVELOPE ---
class ErrorKind(StrEnum):
    USER = "user"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    CONSISTENCY = "consistency"
    INTERNAL = "internal"


T = TypeVar("T")


class ActionResult(BaseModel, Generic[T]):
    """What presentation code receives: never an exception, always success or a described failure."""

    success: bool
    message: Optional[str] = None
    error: Optional[ErrorKind] = None
    data: Optional[T] = None
