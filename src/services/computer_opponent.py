"""The computer player: asks the advisor when one is configured, and always has the deterministic policy to fall back on."""

import logging
import random
from typing import Optional

from src.advisor.advisor import MoveAdvisor
from src.connect_four.board import Board, is_valid_move
from src.connect_four.policy import choose_move
from src.core.exceptions import AdvisoryError
from src.core.shared_types import Color, Difficulty

log = logging.getLogger(__name__)


class ComputerOpponent:
    def __init__(
        self,
        advisor: Optional[MoveAdvisor] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.advisor = advisor
        self.rng = rng or random.Random()

    def select_column(self, board: Board, player: Color, difficulty: Difficulty) -> int:
        """
        Column for the computer's next move.
        ----
        `impossible` plays the deterministic policy directly. Other levels try the advisor first;
        its answer is only used when the column is playable on `board`.
        """
        if difficulty != Difficulty.IMPOSSIBLE and self.advisor is not None:
            suggestion = self._ask_advisor(board, player, difficulty)
            if suggestion is not None:
                return suggestion
        return choose_move(board, player, difficulty, self.rng)

    def _ask_advisor(
        self, board: Board, player: Color, difficulty: Difficulty
    ) -> Optional[int]:
        assert self.advisor is not None
        try:
            column = self.advisor.suggest_column(board, player, difficulty)
        except AdvisoryError as exc:
            log.warning("Advisor unavailable, using %s policy: %s", difficulty, exc)
            return None

        if not is_valid_move(board, column):
            log.warning("Advisor suggested unplayable column %r, using %s policy.", column, difficulty)
            return None
        return column
