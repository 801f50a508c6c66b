"""Orchestration of communication from the API boundary to the game rules and persistence layers (and the reverse direction)."""

import logging
from typing import Optional
from uuid import UUID

from src.api.models import (
    AbandonGameRequest,
    ComputerGameRequest,
    GameStatusResponse,
    GetGameRequest,
    MatchResponse,
    MoveRequest,
    MoveResponse,
    RequestMatchRequest,
)
from src.connect_four.game import Game
from src.core.exceptions import (
    ConcurrentMoveError,
    MoveConflictError,
    PersistenceError,
    SessionNotActiveError,
    SessionNotFoundError,
)
from src.core.models import GameModel, MoveModel, PlayerId
from src.core.shared_types import COMPUTER_PLAYER_ID, Color, Difficulty, Outcome, Status
from src.db.repository import GameRepository
from src.services.computer_opponent import ComputerOpponent

log = logging.getLogger(__name__)

# A join that loses the race for a waiting game looks for another one this many times in total
JOIN_ATTEMPTS = 2


class GameService:
    """Game session state machine: WAITING -> ACTIVE -> COMPLETED (or ABANDONED)."""

    def __init__(
        self,
        repository: GameRepository,
        opponent: Optional[ComputerOpponent] = None,
    ) -> None:
        self.repo = repository
        self.opponent = opponent or ComputerOpponent()

    # -- API routes logic ---
    def request_match(self, request: RequestMatchRequest) -> MatchResponse:
        """
        Join the oldest waiting game, or open a new one.
        ----
        The seat is claimed with a conditional update in the store, so two requesters can never both join the same game.
        A requester who lost the race looks once more, then opens a game of their own.
        A requester who already has a waiting game gets that game back.
        """
        player = request.player_id

        own_game = self.repo.find_waiting_game_of(player)
        if own_game is not None:
            return self._create_match_response(own_game, player)

        for _ in range(JOIN_ATTEMPTS):
            candidate = self.repo.find_oldest_waiting_game(exclude_player=player)
            if candidate is None:
                break

            assert candidate.id is not None
            joined = self.repo.join_game(candidate.id, player)
            if joined is not None:
                log.info("Player %s joined game %s.", player, joined.id)
                return self._create_match_response(joined, player)
            log.warning("Game %s was joined by another player first.", candidate.id)

        created = self.repo.create_game(Game.new_game(player).to_model())
        log.info("Player %s is waiting in new game %s.", player, created.id)
        return self._create_match_response(created, player)

    def start_computer_game(self, request: ComputerGameRequest) -> MatchResponse:
        """Single-player game: active immediately, the human plays RED and moves first."""
        new_game = Game.new_computer_game(request.player_id, request.difficulty)
        created = self.repo.create_game(new_game.to_model())
        log.info(
            "Player %s started game %s against the computer (%s).",
            request.player_id,
            created.id,
            request.difficulty,
        )
        return self._create_match_response(created, request.player_id)

    def submit_move(self, request: MoveRequest) -> MoveResponse:
        """
        Make a move attempt.
        ----
        1. rebuild the game from its stored moves
        2. validate and apply the move (active game, requester's turn, playable column)
        3. store the move, together with the result if it ended the game
        4. in a game against the computer, let the computer answer

        A move rejected by the store's ordering constraint is retried once against fresh state.
        A computer reply that could not be stored does not fail the human's move: it is played
        at the start of the human's next attempt instead.
        """
        pending = self._load_game(request.game_id)
        if self._is_computer_turn(pending):
            log.warning("Game %s is waiting for a computer reply, playing it first.", request.game_id)
            self._play_computer_turn(pending)

        move, game = self._apply_move_with_retry(
            request.game_id, request.player_id, request.column
        )

        computer_column = None
        if self._is_computer_turn(game):
            try:
                computer_column, game = self._play_computer_turn(game)
            except (PersistenceError, ConcurrentMoveError) as exc:
                log.error("Computer reply in game %s was not stored: %s", request.game_id, exc)

        return MoveResponse(
            game_id=request.game_id,
            column=move.column,
            color=move.color,
            order=move.order,
            status=game.status,
            turn=game.turn,
            winner=game.winner,
            computer_column=computer_column,
        )

    def get_game_state(self, request: GetGameRequest) -> GameStatusResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by the client to reconcile its local state. Read only.
        """
        game = self._load_game(request.game_id)
        return self._create_status_response(request.game_id, game)

    def abandon_game(self, request: AbandonGameRequest) -> GameStatusResponse:
        """
        A participant leaves a waiting or active game.
        ----
        The store only switches a game that is still WAITING or ACTIVE, so a game completed in the meantime keeps its result.
        """
        game = self._load_game(request.game_id)
        game.abandon(request.player_id)
        if self.repo.abandon_game(request.game_id) is None:
            current = self._load_game(request.game_id)
            raise SessionNotActiveError(
                f"Cannot abandon a game that has ended. status: {current.status}"
            )
        log.info("Game %s abandoned by %s.", request.game_id, request.player_id)
        return self._create_status_response(request.game_id, game)

    # -- Internal helpers --
    def _apply_move_with_retry(
        self, game_id: UUID, player: PlayerId, column: int
    ) -> tuple[MoveModel, Game]:
        try:
            return self._apply_move(game_id, player, column)
        except MoveConflictError:
            log.warning("Concurrent move in game %s, retrying on fresh state.", game_id)
        try:
            return self._apply_move(game_id, player, column)
        except MoveConflictError as exc:
            raise ConcurrentMoveError(
                "Another move was recorded at the same time. Please try again."
            ) from exc

    def _apply_move(
        self, game_id: UUID, player: PlayerId, column: int
    ) -> tuple[MoveModel, Game]:
        game = self._load_game(game_id)
        move = game.make_move(column, player)

        # the result (if any) is stored in the same transaction as the move
        self.repo.append_move(game_id, move, game.winner)
        if game.status == Status.COMPLETED:
            log.info("Game %s completed. Result: %s", game_id, game.winner)
        return move, game

    def _is_computer_turn(self, game: Game) -> bool:
        return (
            game.is_against_computer
            and game.status == Status.ACTIVE
            and game.turn == Color.BLUE
        )

    def _play_computer_turn(self, game: Game) -> tuple[int, Game]:
        """Computed before the store is touched again, so no transaction waits on the advisor."""
        assert game.game_id is not None
        difficulty = game.difficulty or Difficulty.EASY
        column = self.opponent.select_column(game.board, Color.BLUE, difficulty)
        _, game = self._apply_move_with_retry(game.game_id, COMPUTER_PLAYER_ID, column)
        return column, game

    def _load_game(self, game_id: UUID) -> Game:
        return Game.from_model(self._fetch_game(game_id))

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise SessionNotFoundError(f"Game with {game_id=} not found.")
        return game_model

    def _create_match_response(self, model: GameModel, player: PlayerId) -> MatchResponse:
        assert model.id is not None
        game = Game.from_model(model)
        return MatchResponse(
            game_id=model.id,
            status=game.status,
            color=game.color_of(player),
            players=game.players,
        )

    def _create_status_response(self, game_id: UUID, game: Game) -> GameStatusResponse:
        return GameStatusResponse(
            game_id=game_id,
            status=game.status,
            players=game.players,
            board=game.board.to_rows(),
            moves=[move.column for move in game.moves],
            turn=game.turn,
            winner=game.winner,
            is_tie=game.winner == Outcome.TIE,
            difficulty=game.difficulty,
        )
