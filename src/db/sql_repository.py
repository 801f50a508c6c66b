"""Implementation of the Game / User repositories using SQLAlchemy"""

import logging
from contextlib import contextmanager
from typing import Iterator, NoReturn, Optional
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import (
    MoveConflictError,
    PersistenceError,
    SessionNotActiveError,
    SessionNotFoundError,
    UsernameTakenError,
)
from src.core.models import GameModel, MoveModel, PlayerId, UserModel
from src.core.shared_types import Color, Difficulty, Outcome, Status
from src.db.schema import DBGame, DBMove, DBUser, utc_now

log = logging.getLogger(__name__)


@contextmanager
def _store_errors(db: Session) -> Iterator[None]:
    """Roll back and re-raise any driver/ORM failure as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("Database operation failed: %s", exc)
        raise PersistenceError("The game store is unavailable.") from exc


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        with _store_errors(self.db):
            game_db = self._fetch_game(game_id)
            return self._to_model(game_db) if game_db else None

    def create_game(self, game: GameModel) -> GameModel:
        """Store new game and return the stored data (with its new ID)."""
        with _store_errors(self.db):
            game_db = DBGame(
                status=game.status.value,
                player_red=game.player_red,
                player_blue=game.player_blue,
                winner=game.winner.value if game.winner else None,
                is_tie=game.is_tie,
                difficulty=game.difficulty.value if game.difficulty else None,
            )
            self.db.add(game_db)
            self.db.commit()
            self.db.refresh(game_db)
            return self._to_model(game_db)

    def find_oldest_waiting_game(self, exclude_player: PlayerId) -> GameModel | None:
        query = (
            select(DBGame)
            .where(
                DBGame.status == Status.WAITING.value,
                DBGame.player_blue.is_(None),
                DBGame.player_red != exclude_player,
            )
            .order_by(DBGame.created_at)
            .limit(1)
        )
        with _store_errors(self.db):
            game_db = self.db.scalar(query)
            return self._to_model(game_db) if game_db else None

    def find_waiting_game_of(self, player: PlayerId) -> GameModel | None:
        query = (
            select(DBGame)
            .where(DBGame.status == Status.WAITING.value, DBGame.player_red == player)
            .order_by(DBGame.created_at)
            .limit(1)
        )
        with _store_errors(self.db):
            game_db = self.db.scalar(query)
            return self._to_model(game_db) if game_db else None

    def join_game(self, game_id: UUID, player: PlayerId) -> GameModel | None:
        """Compare-and-swap on the empty BLUE seat: only one of several concurrent joiners gets a row updated."""
        query = (
            update(DBGame)
            .where(
                DBGame.id == game_id,
                DBGame.status == Status.WAITING.value,
                DBGame.player_blue.is_(None),
            )
            .values(
                player_blue=player,
                status=Status.ACTIVE.value,
                updated_at=utc_now(),
            )
        )
        with _store_errors(self.db):
            result = self.db.execute(query)
            self.db.commit()
            if result.rowcount != 1:  # type: ignore[attr-defined]
                return None
            game_db = self._fetch_game(game_id)
            return self._to_model(game_db) if game_db else None

    def append_move(
        self, game_id: UUID, move: MoveModel, winner: Optional[Outcome] = None
    ) -> GameModel:
        """Record a move only while the game is ACTIVE; the result (if any) is written in the same transaction."""
        values: dict[str, object] = {"updated_at": utc_now()}
        if winner is not None:
            values.update(
                status=Status.COMPLETED.value,
                winner=winner.value,
                is_tie=winner == Outcome.TIE,
            )
        query = (
            update(DBGame)
            .where(DBGame.id == game_id, DBGame.status == Status.ACTIVE.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        with _store_errors(self.db):
            result = self.db.execute(query)
            if result.rowcount != 1:  # type: ignore[attr-defined]
                self.db.rollback()
                self._raise_not_active(game_id)
            self.db.add(
                DBMove(
                    game_id=game_id,
                    color=move.color.value,
                    column_index=move.column,
                    move_order=move.order,
                )
            )
            try:
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                raise MoveConflictError(
                    f"Move {move.order} of game {game_id} was already recorded."
                ) from exc
            game_db = self._fetch_game(game_id)
            assert game_db is not None
            return self._to_model(game_db)

    def abandon_game(self, game_id: UUID) -> GameModel | None:
        """Compare-and-swap from WAITING / ACTIVE to ABANDONED. Returns None when the game already ended or does not exist."""
        query = (
            update(DBGame)
            .where(
                DBGame.id == game_id,
                DBGame.status.in_([Status.WAITING.value, Status.ACTIVE.value]),
            )
            .values(status=Status.ABANDONED.value, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        with _store_errors(self.db):
            result = self.db.execute(query)
            self.db.commit()
            if result.rowcount != 1:  # type: ignore[attr-defined]
                return None
            game_db = self._fetch_game(game_id)
            return self._to_model(game_db) if game_db else None

    def count_games(self, status: Status) -> int:
        query = select(func.count()).select_from(DBGame).where(DBGame.status == status.value)
        with _store_errors(self.db):
            return self.db.scalar(query) or 0

    def list_completed_games(self, player: PlayerId) -> list[GameModel]:
        query = (
            select(DBGame)
            .where(
                DBGame.status == Status.COMPLETED.value,
                or_(DBGame.player_red == player, DBGame.player_blue == player),
            )
            .order_by(DBGame.created_at)
        )
        with _store_errors(self.db):
            return [self._to_model(game_db) for game_db in self.db.scalars(query)]

    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    def _raise_not_active(self, game_id: UUID) -> NoReturn:
        game_db = self._fetch_game(game_id)
        if game_db is None:
            raise SessionNotFoundError(f"Game with {game_id=} not found.")
        raise SessionNotActiveError(f"Game is not active. status: {game_db.status}")

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            id=game_db.id,
            status=Status(game_db.status),
            player_red=game_db.player_red,
            player_blue=game_db.player_blue,
            moves=[
                MoveModel(
                    column=move_db.column_index,
                    color=Color(move_db.color),
                    order=move_db.move_order,
                )
                for move_db in game_db.moves
            ],
            winner=Outcome(game_db.winner) if game_db.winner else None,
            difficulty=Difficulty(game_db.difficulty) if game_db.difficulty else None,
            created_at=game_db.created_at,
        )


class SQLUserRepository:
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_user(self, user_id: PlayerId) -> UserModel | None:
        with _store_errors(self.db):
            user_db = self.db.get(DBUser, user_id)
            return self._to_model(user_db) if user_db else None

    def find_user_by_name(self, name: str) -> UserModel | None:
        query = select(DBUser).where(DBUser.name == name)
        with _store_errors(self.db):
            user_db = self.db.scalar(query)
            return self._to_model(user_db) if user_db else None

    def create_user(self, user: UserModel) -> UserModel:
        with _store_errors(self.db):
            user_db = DBUser(id=user.id, name=user.name)
            self.db.add(user_db)
            self._commit_name(user.name)
            self.db.refresh(user_db)
            return self._to_model(user_db)

    def update_user_name(self, user_id: PlayerId, name: str) -> UserModel | None:
        with _store_errors(self.db):
            user_db = self.db.get(DBUser, user_id)
            if not user_db:
                return None
            user_db.name = name
            self._commit_name(name)
            self.db.refresh(user_db)
            return self._to_model(user_db)

    def _commit_name(self, name: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise UsernameTakenError(f"Username {name!r} is already taken.") from exc

    def _to_model(self, user_db: DBUser) -> UserModel:
        return UserModel(id=user_db.id, name=user_db.name)
