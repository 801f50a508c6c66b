"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Iterator
from uuid import UUID, uuid4

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.exceptions import MoveConflictError, SessionNotActiveError, SessionNotFoundError
from src.core.models import GameModel, MoveModel, PlayerId, UserModel
from src.core.shared_types import Outcome, Status
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Iterator[Session]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


# --- MOCK DEPENDENCIES ----
class MockGameRepository:
    """Mock the GameRepository using a dictionary of game models."""

    def __init__(self) -> None:
        self._games: dict[UUID, GameModel] = {}

    def get_game(self, game_id: UUID) -> GameModel | None:
        game = self._games.get(game_id)
        return self._copy(game) if game else None

    def create_game(self, game: GameModel) -> GameModel:
        stored = self._copy(game)
        stored.id = uuid4()
        self._games[stored.id] = stored
        return self._copy(stored)

    def find_oldest_waiting_game(self, exclude_player: PlayerId) -> GameModel | None:
        for game in self._games.values():
            if (
                game.status == Status.WAITING
                and game.player_blue is None
                and game.player_red != exclude_player
            ):
                return self._copy(game)
        return None

    def find_waiting_game_of(self, player: PlayerId) -> GameModel | None:
        for game in self._games.values():
            if game.status == Status.WAITING and game.player_red == player:
                return self._copy(game)
        return None

    def join_game(self, game_id: UUID, player: PlayerId) -> GameModel | None:
        game = self._games.get(game_id)
        if game is None or game.status != Status.WAITING or game.player_blue is not None:
            return None
        game.player_blue = player
        game.status = Status.ACTIVE
        return self._copy(game)

    def append_move(
        self, game_id: UUID, move: MoveModel, winner: Outcome | None = None
    ) -> GameModel:
        game = self._games.get(game_id)
        if game is None:
            raise SessionNotFoundError(f"Game with {game_id=} not found.")
        if game.status != Status.ACTIVE:
            raise SessionNotActiveError(f"Game is not active. status: {game.status}")
        if any(existing.order == move.order for existing in game.moves):
            raise MoveConflictError(f"Move {move.order} already recorded.")
        game.moves.append(move)
        if winner is not None:
            game.status = Status.COMPLETED
            game.winner = winner
        return self._copy(game)

    def abandon_game(self, game_id: UUID) -> GameModel | None:
        game = self._games.get(game_id)
        if game is None or game.status not in (Status.WAITING, Status.ACTIVE):
            return None
        game.status = Status.ABANDONED
        return self._copy(game)

    def count_games(self, status: Status) -> int:
        return sum(1 for game in self._games.values() if game.status == status)

    def list_completed_games(self, player: PlayerId) -> list[GameModel]:
        return [
            self._copy(game)
            for game in self._games.values()
            if game.status == Status.COMPLETED
            and player in (game.player_red, game.player_blue)
        ]

    def _copy(self, game: GameModel) -> GameModel:
        return GameModel(
            id=game.id,
            status=game.status,
            player_red=game.player_red,
            player_blue=game.player_blue,
            moves=list(game.moves),
            winner=game.winner,
            difficulty=game.difficulty,
        )


class MockUserRepository:
    def __init__(self) -> None:
        self._users: dict[PlayerId, UserModel] = {}

    def get_user(self, user_id: PlayerId) -> UserModel | None:
        return self._users.get(user_id)

    def find_user_by_name(self, name: str) -> UserModel | None:
        return next((user for user in self._users.values() if user.name == name), None)

    def create_user(self, user: UserModel) -> UserModel:
        self._users[user.id] = UserModel(id=user.id, name=user.name)
        return self._users[user.id]

    def update_user_name(self, user_id: PlayerId, name: str) -> UserModel | None:
        user = self._users.get(user_id)
        if user is None:
            return None
        user.name = name
        return user


@pytest.fixture
def mock_repository() -> MockGameRepository:
    return MockGameRepository()


@pytest.fixture
def mock_user_repository() -> MockUserRepository:
    return MockUserRepository()
