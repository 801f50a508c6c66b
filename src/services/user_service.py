"""Player names, per-player statistics and lobby counts."""

import logging
from collections import Counter

from src.api.models import (
    GameCountsResponse,
    OpponentCount,
    UsernameRequest,
    UserResponse,
    UserStatsResponse,
)
from src.core.exceptions import UsernameTakenError, UserNotFoundError
from src.core.models import GameModel, PlayerId, UserModel
from src.core.shared_types import COMPUTER_PLAYER_ID, Color, Outcome, Status
from src.db.repository import GameRepository, UserRepository

log = logging.getLogger(__name__)

GUEST_PREFIX = "Guest-"
COMPUTER_NAME = "Computer"
UNKNOWN_NAME = "Unknown"
TOP_OPPONENTS = 5


class UserService:
    def __init__(self, users: UserRepository, games: GameRepository) -> None:
        self.users = users
        self.games = games

    def create_or_get_user(self, user_id: PlayerId) -> UserResponse:
        """Existing players keep their name; new ones get a guest name derived from their id."""
        user = self.users.get_user(user_id)
        if user is None:
            user = self.users.create_user(
                UserModel(id=user_id, name=f"{GUEST_PREFIX}{user_id[:6]}")
            )
            log.info("Created user %s as %s.", user.id, user.name)
        return UserResponse(user_id=user.id, name=user.name)

    def update_username(self, request: UsernameRequest) -> UserResponse:
        """Name format is checked by the request model; uniqueness here (and by the store's constraint)."""
        existing = self.users.find_user_by_name(request.name)
        if existing is not None and existing.id != request.user_id:
            raise UsernameTakenError("Username is already taken")

        updated = self.users.update_user_name(request.user_id, request.name)
        if updated is None:
            raise UserNotFoundError(f"User {request.user_id!r} not found.")
        return UserResponse(user_id=updated.id, name=updated.name)

    def get_user_stats(self, user_id: PlayerId) -> UserStatsResponse:
        if self.users.get_user(user_id) is None:
            raise UserNotFoundError(f"User {user_id!r} not found.")

        wins = losses = ties = 0
        beaten: Counter[str] = Counter()
        lost_to: Counter[str] = Counter()

        for game in self.games.list_completed_games(user_id):
            color = Color.RED if game.player_red == user_id else Color.BLUE
            opponent = self._opponent_name(game, color)
            if game.winner == Outcome.TIE:
                ties += 1
            elif game.winner == Outcome(color.value):
                wins += 1
                beaten[opponent] += 1
            elif game.winner is not None:
                losses += 1
                lost_to[opponent] += 1

        decided = wins + losses
        return UserStatsResponse(
            wins=wins,
            losses=losses,
            ties=ties,
            games_played=wins + losses + ties,
            win_percentage=round(wins / decided * 100) if decided else 0,
            top_opponent_wins=_top(beaten),
            top_opponent_losses=_top(lost_to),
        )

    def get_game_counts(self) -> GameCountsResponse:
        """Every active game seats two players, every waiting game one."""
        return GameCountsResponse(
            playing_count=self.games.count_games(Status.ACTIVE) * 2,
            waiting_count=self.games.count_games(Status.WAITING),
        )

    def _opponent_name(self, game: GameModel, color: Color) -> str:
        opponent_id = game.player_blue if color == Color.RED else game.player_red
        if opponent_id == COMPUTER_PLAYER_ID:
            return COMPUTER_NAME
        if opponent_id is None:
            return UNKNOWN_NAME
        opponent = self.users.get_user(opponent_id)
        return opponent.name if opponent else UNKNOWN_NAME


def _top(counts: Counter[str]) -> list[OpponentCount]:
    return [
        OpponentCount(name=name, count=count)
        for name, count in counts.most_common(TOP_OPPONENTS)
    ]
