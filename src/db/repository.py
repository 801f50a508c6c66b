"""Protocol repositories (SQLAlchemy implementation in sql_repository.py, in-memory ones in the tests)"""

from typing import Optional, Protocol
from uuid import UUID

from src.core.models import GameModel, MoveModel, PlayerId, UserModel
from src.core.shared_types import Outcome, Status


class GameRepository(Protocol):
    """Persistence layer orchestration"""

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game (with its moves, in order) by ID, if record exists."""
        ...

    def create_game(self, game: GameModel) -> GameModel:
        """Store new game and return the stored data, including the newly assigned ID."""
        ...

    def find_oldest_waiting_game(self, exclude_player: PlayerId) -> GameModel | None:
        """Oldest game still waiting for a second player, not created by `exclude_player`."""
        ...

    def find_waiting_game_of(self, player: PlayerId) -> GameModel | None:
        """A game `player` created that is still waiting for an opponent."""
        ...

    def join_game(self, game_id: UUID, player: PlayerId) -> GameModel | None:
        """Register the second player, only if the seat is still free.

        Returns None when another player took the seat first.
        """
        ...

    def append_move(
        self, game_id: UUID, move: MoveModel, winner: Optional[Outcome] = None
    ) -> GameModel:
        """Record a move (and the result, if the move ended the game) in one transaction.

        Only an ACTIVE game accepts moves: raises SessionNotActiveError otherwise.
        Raises MoveConflictError when a move with the same order already exists.
        """
        ...

    def abandon_game(self, game_id: UUID) -> GameModel | None:
        """Move a WAITING or ACTIVE game to ABANDONED.

        Returns None when the game has already ended (or does not exist).
        """
        ...

    def count_games(self, status: Status) -> int: ...

    def list_completed_games(self, player: PlayerId) -> list[GameModel]:
        """All completed games `player` took part in."""
        ...


class UserRepository(Protocol):
    def get_user(self, user_id: PlayerId) -> UserModel | None: ...

    def find_user_by_name(self, name: str) -> UserModel | None: ...

    def create_user(self, user: UserModel) -> UserModel: ...

    def update_user_name(self, user_id: PlayerId, name: str) -> UserModel | None: ...
