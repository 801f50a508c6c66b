"""
Entry points for presentation code.

Every call returns an ActionResult. Exceptions from the layers below are translated here and never cross this boundary:
user errors are reported verbatim, store/advisor outages generically, and corrupted game data with its own opaque message.
"""

import logging
from typing import Callable, Optional, TypeVar
from uuid import UUID

from pydantic import ValidationError

from src.advisor.advisor import ChatMessage, MoveAdvisor
from src.api.models import (
    AbandonGameRequest,
    ActionResult,
    AdviceRequest,
    AdviceResponse,
    ChatMessageModel,
    ComputerGameRequest,
    ErrorKind,
    GameCountsResponse,
    GameStatusResponse,
    GetGameRequest,
    MatchResponse,
    MoveRequest,
    MoveResponse,
    RequestMatchRequest,
    UsernameRequest,
    UserResponse,
    UserStatsResponse,
)
from src.connect_four.board import Board
from src.core.exceptions import (
    CollaboratorError,
    ConflictError,
    ConsistencyError,
    UserError,
)
from src.core.shared_types import Color, Difficulty
from src.services.game_service import GameService
from src.services.user_service import UserService

log = logging.getLogger(__name__)

T = TypeVar("T")

UNAVAILABLE_MESSAGE = "The service is temporarily unavailable. Please try again."
CONFLICT_MESSAGE = "The game changed while your request was processed. Please try again."
CONSISTENCY_MESSAGE = "This game's stored data is inconsistent and it cannot continue. Please start a new game."
INTERNAL_MESSAGE = "An unexpected error occurred."


class GameActions:
    def __init__(
        self,
        games: GameService,
        users: Optional[UserService] = None,
        advisor: Optional[MoveAdvisor] = None,
    ) -> None:
        self.games = games
        self.users = users
        self.advisor = advisor

    # --- game session ---
    def request_match(self, player_id: str) -> ActionResult[MatchResponse]:
        return _run(
            "request_match",
            lambda: self.games.request_match(RequestMatchRequest(player_id=player_id)),
        )

    def start_computer_game(
        self, player_id: str, difficulty: Difficulty = Difficulty.EASY
    ) -> ActionResult[MatchResponse]:
        return _run(
            "start_computer_game",
            lambda: self.games.start_computer_game(
                ComputerGameRequest(player_id=player_id, difficulty=difficulty)
            ),
        )

    def submit_move(
        self, game_id: UUID, player_id: str, column: int
    ) -> ActionResult[MoveResponse]:
        return _run(
            "submit_move",
            lambda: self.games.submit_move(
                MoveRequest(game_id=game_id, player_id=player_id, column=column)
            ),
        )

    def get_status(self, game_id: UUID) -> ActionResult[GameStatusResponse]:
        return _run(
            "get_status",
            lambda: self.games.get_game_state(GetGameRequest(game_id=game_id)),
        )

    def abandon_game(
        self, game_id: UUID, player_id: str
    ) -> ActionResult[GameStatusResponse]:
        return _run(
            "abandon_game",
            lambda: self.games.abandon_game(
                AbandonGameRequest(game_id=game_id, player_id=player_id)
            ),
        )

    # --- advice ---
    def ask_for_advice(
        self,
        game_id: UUID,
        player_id: str,
        question: str,
        history: Optional[list[ChatMessageModel]] = None,
    ) -> ActionResult[AdviceResponse]:
        return _run(
            "ask_for_advice",
            lambda: self._advise(
                AdviceRequest(
                    game_id=game_id,
                    player_id=player_id,
                    question=question,
                    history=history or [],
                )
            ),
        )

    def _advise(self, request: AdviceRequest) -> AdviceResponse:
        if self.advisor is None:
            raise CollaboratorError("Move advice is not configured.")
        state = self.games.get_game_state(GetGameRequest(game_id=request.game_id))
        board = Board.from_rows(state.board)
        my_color: Optional[Color] = next(
            (color for color, player in state.players.items() if player == request.player_id),
            None,
        )
        conversation = [
            ChatMessage(role=message.role, content=message.content)
            for message in request.history
        ]
        conversation.append(ChatMessage(role="user", content=request.question))
        reply = self.advisor.advise(
            board,
            state.turn,
            my_color,
            state.difficulty or Difficulty.EASY,
            conversation,
        )
        return AdviceResponse(reply=reply)

    # --- users ---
    def create_or_get_user(self, user_id: str) -> ActionResult[UserResponse]:
        return _run("create_or_get_user", lambda: self._users().create_or_get_user(user_id))

    def update_username(self, user_id: str, name: str) -> ActionResult[UserResponse]:
        return _run(
            "update_username",
            lambda: self._users().update_username(UsernameRequest(user_id=user_id, name=name)),
        )

    def get_user_stats(self, user_id: str) -> ActionResult[UserStatsResponse]:
        return _run("get_user_stats", lambda: self._users().get_user_stats(user_id))

    def get_game_counts(self) -> ActionResult[GameCountsResponse]:
        return _run("get_game_counts", lambda: self._users().get_game_counts())

    def _users(self) -> UserService:
        if self.users is None:
            raise CollaboratorError("User management is not configured.")
        return self.users


def _run(action: str, call: Callable[[], T]) -> ActionResult[T]:
    """Execute `call` and translate the outcome into an ActionResult."""
    try:
        return ActionResult(success=True, data=call())
    except ValidationError as exc:
        return ActionResult(
            success=False, error=ErrorKind.USER, message=f"Invalid request: {exc.error_count()} field error(s)."
        )
    except UserError as exc:
        return ActionResult(success=False, error=ErrorKind.USER, message=str(exc))
    except ConflictError as exc:
        log.warning("%s: unresolved conflict: %s", action, exc)
        return ActionResult(success=False, error=ErrorKind.CONFLICT, message=CONFLICT_MESSAGE)
    except CollaboratorError as exc:
        log.warning("%s: collaborator unavailable: %s", action, exc)
        return ActionResult(
            success=False, error=ErrorKind.UNAVAILABLE, message=UNAVAILABLE_MESSAGE
        )
    except ConsistencyError:
        log.exception("%s: stored game data failed validation", action)
        return ActionResult(
            success=False, error=ErrorKind.CONSISTENCY, message=CONSISTENCY_MESSAGE
        )
    except Exception:
        log.exception("%s: unexpected failure", action)
        return ActionResult(success=False, error=ErrorKind.INTERNAL, message=INTERNAL_MESSAGE)
