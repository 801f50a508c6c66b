"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.core.shared_types import Color, Difficulty, Outcome, Status

PlayerId = str


@dataclass(frozen=True)
class MoveModel:
    """One piece drop. `order` is zero-based and gapless within a game."""

    column: int
    color: Color
    order: int


@dataclass
class GameModel:
    """Transport-safe representation of a game session used between API, Service, DB, and Game layers."""

    status: Status
    player_red: PlayerId
    player_blue: Optional[PlayerId] = None
    moves: list[MoveModel] = field(default_factory=list)
    winner: Optional[Outcome] = None
    difficulty: Optional[Difficulty] = None
    id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    @property
    def is_tie(self) -> bool:
        return self.winner == Outcome.TIE


@dataclass
class UserModel:
    id: PlayerId
    name: str
