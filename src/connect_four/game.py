"""
The Game class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic required to play a turn of Connect Four -->
passes this information to the service layer, which can then pass it onwards to the API layer.

The board is never stored. It is always rebuilt by replaying the recorded moves onto an empty board,
and whose turn it is always follows from the number of moves.
"""

from dataclasses import dataclass, field
from typing import Optional, Self
from uuid import UUID

from src.connect_four.board import Board, apply_move, create_initial_board, is_valid_move
from src.connect_four.rules import check_tie, check_win, turn_of
from src.core.exceptions import (
    ConsistencyError,
    InvalidColumnError,
    NotAParticipantError,
    NotYourTurnError,
    ReplayDivergenceError,
    SessionNotActiveError,
)
from src.core.models import GameModel, MoveModel, PlayerId
from src.core.shared_types import COMPUTER_PLAYER_ID, Color, Difficulty, Outcome, Status


def replay(moves: list[MoveModel]) -> Board:
    """Fold the moves, in order, over an empty board.

    Every move is re-validated on the way: wrong order index, wrong color for the turn,
    an unplayable column, or a move after the game was already decided all mean the stored history is corrupt.
    """
    board = create_initial_board()
    for index, move in enumerate(moves):
        if move.order != index:
            raise ReplayDivergenceError(
                f"Move order gap: expected order {index}, found {move.order}."
            )
        if move.color != turn_of(index):
            raise ReplayDivergenceError(
                f"Move {index} was recorded for {move.color}, but it was {turn_of(index)}'s turn."
            )
        if not is_valid_move(board, move.column):
            raise ReplayDivergenceError(
                f"Move {index} in column {move.column} is not playable on the replayed board."
            )
        if index > 0 and check_win(board, moves[index - 1].color):
            raise ReplayDivergenceError(
                f"Move {index} was recorded after the game had already been won."
            )
        board = apply_move(board, move.column, move.color)
    return board


def evaluate(board: Board, mover: Color) -> Optional[Outcome]:
    """Result of the move just made by `mover`: a win, a tie, or None to continue."""
    if check_win(board, mover):
        return Outcome(mover.value)
    if check_tie(board):
        return Outcome.TIE
    return None


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    players: dict[Color, PlayerId]
    status: Status
    moves: list[MoveModel] = field(default_factory=list)
    winner: Optional[Outcome] = None
    difficulty: Optional[Difficulty] = None
    game_id: Optional[UUID] = None
    board: Board = field(default_factory=create_initial_board)

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Construct a Game from the persisted record, replaying its moves."""

        # status/participant invariants
        if model.status == Status.WAITING and model.player_blue is not None:
            raise ConsistencyError(f"Game {model.id} is waiting but already has two players.")
        if model.status in (Status.ACTIVE, Status.COMPLETED) and model.player_blue is None:
            raise ConsistencyError(
                f"Game {model.id}: status {model.status} does not match its participants."
            )
        if model.status == Status.COMPLETED and model.winner is None:
            raise ConsistencyError(f"Game {model.id} is completed without a result.")
        if model.status == Status.ACTIVE and model.winner is not None:
            raise ConsistencyError(f"Game {model.id} is active but has a result.")

        board = replay(model.moves)

        players = {Color.RED: model.player_red}
        if model.player_blue is not None:
            players[Color.BLUE] = model.player_blue

        return cls(
            players=players,
            status=model.status,
            moves=list(model.moves),
            winner=model.winner,
            difficulty=model.difficulty,
            game_id=model.id,
            board=board,
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            id=self.game_id,
            status=self.status,
            player_red=self.players[Color.RED],
            player_blue=self.players.get(Color.BLUE),
            moves=list(self.moves),
            winner=self.winner,
            difficulty=self.difficulty,
        )

    @classmethod
    def new_game(cls, player: PlayerId) -> Self:
        """A game waiting for an opponent. The creator plays RED and moves first."""
        return cls(players={Color.RED: player}, status=Status.WAITING)

    @classmethod
    def new_computer_game(cls, player: PlayerId, difficulty: Difficulty) -> Self:
        """A game against the computer starts immediately. The human plays RED."""
        return cls(
            players={Color.RED: player, Color.BLUE: COMPUTER_PLAYER_ID},
            status=Status.ACTIVE,
            difficulty=difficulty,
        )

    @property
    def turn(self) -> Optional[Color]:
        """Color to move, or None when no move can be made."""
        if self.status != Status.ACTIVE:
            return None
        return turn_of(len(self.moves))

    @property
    def is_against_computer(self) -> bool:
        return self.players.get(Color.BLUE) == COMPUTER_PLAYER_ID

    def color_of(self, player: PlayerId) -> Color:
        for color, name in self.players.items():
            if name == player:
                return color
        raise NotAParticipantError(f"Player {player!r} is not part of this game.")

    def make_move(self, column: int, player: PlayerId) -> MoveModel:
        """
        Attempt to make a move
        -----
        1. the game must be active
        2. it must be the requester's turn
        3. the column must be playable
        4. drop the piece, record the move
        5. check the mover for a win, then the board for a tie

        Nothing changes unless all checks pass.
        """
        if self.status != Status.ACTIVE:
            raise SessionNotActiveError(f"Game is not active. status: {self.status}")

        mover = turn_of(len(self.moves))
        if self.players.get(mover) != player:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {mover} to make a move first."
            )

        if not is_valid_move(self.board, column):
            raise InvalidColumnError(
                f"Invalid move: column {column} is full or out of bounds."
            )

        move = MoveModel(column=column, color=mover, order=len(self.moves))
        self.board = apply_move(self.board, column, mover)
        self.moves.append(move)

        outcome = evaluate(self.board, mover)
        if outcome is not None:
            self.winner = outcome
            self.status = Status.COMPLETED
        return move

    def abandon(self, player: PlayerId) -> None:
        """A participant leaves a game that has not finished yet."""
        self.color_of(player)
        if self.status not in (Status.WAITING, Status.ACTIVE):
            raise SessionNotActiveError(
                f"Cannot abandon a game that has ended. status: {self.status}"
            )
        self.status = Status.ABANDONED
