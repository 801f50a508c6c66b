"""
Wiring of the layers.

`Application` owns the long-lived resources (database engine, advisor client): created on `start()`, released on `close()`.
Each request gets its own database session and a freshly wired GameActions through `actions()`.
"""

import logging
import random
from contextlib import contextmanager
from typing import Iterator, Optional, Self
from uuid import UUID

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from src.advisor.advisor import MoveAdvisor
from src.advisor.openai_advisor import OpenAIMoveAdvisor
from src.api.actions import GameActions
from src.api.models import ActionResult, GameStatusResponse
from src.client.reconciler import EventHandler, StatusPoller, status_fetcher
from src.core.config import Settings, configure_logging, load_settings
from src.core.exceptions import GameStateError
from src.db.database import create_db_engine, create_session_factory, get_db, init_db
from src.db.sql_repository import SQLGameRepository, SQLUserRepository
from src.services.computer_opponent import ComputerOpponent
from src.services.game_service import GameService
from src.services.user_service import UserService

log = logging.getLogger(__name__)


class Application:
    def __init__(
        self,
        settings: Settings,
        advisor: Optional[MoveAdvisor] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings
        self.advisor = advisor
        self.rng = rng or random.Random()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker[Session]] = None

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> Self:
        """Settings from the environment (and `.env`), with logging configured accordingly."""
        settings = load_settings(dotenv_path)
        configure_logging(settings)
        return cls(settings)

    def start(self) -> Self:
        self._engine = create_db_engine(self.settings)
        init_db(self._engine)
        self._session_factory = create_session_factory(self._engine)
        if self.advisor is None and self.settings.advisor_enabled:
            self.advisor = OpenAIMoveAdvisor.from_settings(self.settings)
        log.info(
            "Application started (advisor %s).",
            "enabled" if self.advisor else "disabled",
        )
        return self

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None

    @contextmanager
    def actions(self) -> Iterator[GameActions]:
        """GameActions bound to one database session, closed when the block ends."""
        if self._session_factory is None:
            raise GameStateError("Application has not been started.")
        sessions = get_db(self._session_factory)
        db = next(sessions)
        try:
            games = SQLGameRepository(db)
            game_service = GameService(games, ComputerOpponent(self.advisor, self.rng))
            user_service = UserService(SQLUserRepository(db), games)
            yield GameActions(game_service, user_service, self.advisor)
        finally:
            sessions.close()

    def get_status(self, game_id: UUID) -> ActionResult[GameStatusResponse]:
        """One status read in its own session (safe to call from a worker thread)."""
        with self.actions() as actions:
            return actions.get_status(game_id)

    def watch(self, game_id: UUID, on_event: EventHandler) -> StatusPoller:
        """Poller for one game, reading on the configured interval. Run it with `await poller.run()`."""
        return StatusPoller(
            status_fetcher(self.get_status, game_id),
            on_event,
            self.settings.poll_interval_s,
        )

    def __enter__(self) -> Self:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.close()
