"""
OpenAI transport for the advisory channel (chat completions).

- One request per call with a hard timeout, no retries: a slow or failing advisor is replaced by the deterministic policy.
- Replies are reduced to plain text; column suggestions are parsed from the first digit in range.
"""

import logging
from typing import Any, Optional, Self

from openai import OpenAI, OpenAIError

from src.advisor.advisor import (
    ADVICE_HISTORY_LIMIT,
    ChatMessage,
    advice_prompt,
    parse_column,
    suggestion_prompt,
)
from src.connect_four.board import Board
from src.core.config import Settings
from src.core.exceptions import AdvisoryError
from src.core.shared_types import Color, Difficulty

log = logging.getLogger(__name__)

# Sampling temperature per level: weaker levels play looser
TEMPERATURES: dict[Difficulty, float] = {
    Difficulty.EASY: 0.9,
    Difficulty.MEDIUM: 0.5,
    Difficulty.HARD: 0.2,
    Difficulty.IMPOSSIBLE: 0.2,
}

ADVICE_TEMPERATURE = 0.7


class OpenAIMoveAdvisor:
    def __init__(self, client: OpenAI, model: str, timeout_s: float) -> None:
        self.client = client
        self.model = model
        self.timeout_s = timeout_s

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        client = OpenAI(api_key=settings.openai_api_key, max_retries=0)
        return cls(client, settings.advisor_model, settings.advisor_timeout_s)

    def suggest_column(self, board: Board, player: Color, difficulty: Difficulty) -> int:
        messages = [
            {"role": "system", "content": suggestion_prompt(board, player, difficulty)}
        ]
        text = self._complete(messages, TEMPERATURES[difficulty])
        column = parse_column(text)
        if column is None:
            raise AdvisoryError(f"Advisor reply contains no column: {text!r}")
        return column

    def advise(
        self,
        board: Board,
        turn: Optional[Color],
        my_color: Optional[Color],
        difficulty: Difficulty,
        conversation: list[ChatMessage],
    ) -> str:
        messages = [
            {
                "role": "system",
                "content": advice_prompt(board, turn, my_color, difficulty),
            }
        ]
        messages.extend(
            {"role": message.role, "content": message.content}
            for message in conversation[-ADVICE_HISTORY_LIMIT:]
        )
        text = self._complete(messages, ADVICE_TEMPERATURE)
        if not text:
            raise AdvisoryError("Advisor returned an empty reply.")
        return text

    def _complete(self, messages: list[dict[str, str]], temperature: float) -> str:
        try:
            rsp = self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=temperature,
                timeout=self.timeout_s,
            )
        except OpenAIError as exc:
            log.warning("Advisor request failed: %s", exc)
            raise AdvisoryError(f"Advisor request failed: {exc}") from exc
        return _extract_text(rsp).strip()


def _extract_text(rsp: Any) -> str:
    choices = getattr(rsp, "choices", None)
    if not choices:
        return ""
    content = getattr(choices[0].message, "content", None)
    return content if isinstance(content, str) else ""
