"""
Client-side reconciliation against the authoritative game state.

`StatusPoller` reads the game status on a fixed interval and compares it field by field with the last snapshot it saw.
Only differences turn into events, so repeated identical reads do nothing. `stop()` ends the loop at the next wait,
and the loop also ends by itself once the game is over.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union
from uuid import UUID

from src.api.models import ActionResult, ErrorKind, GameStatusResponse
from src.core.exceptions import CollaboratorError, ConsistencyError, SessionNotFoundError
from src.core.shared_types import Color, Outcome, Status

log = logging.getLogger(__name__)

TERMINAL_STATUSES = (Status.COMPLETED, Status.ABANDONED)


# --- EVENTS ---
@dataclass(frozen=True)
class StatusChanged:
    previous: Optional[Status]
    current: Status


@dataclass(frozen=True)
class TurnChanged:
    previous: Optional[Color]
    current: Optional[Color]


@dataclass(frozen=True)
class BoardChanged:
    """`new_moves` are the columns played since the last snapshot, in order."""

    new_moves: tuple[int, ...]
    move_count: int


@dataclass(frozen=True)
class GameEnded:
    status: Status
    winner: Optional[Outcome]


GameEvent = Union[StatusChanged, TurnChanged, BoardChanged, GameEnded]

StatusFetcher = Callable[[], Awaitable[GameStatusResponse]]
StatusAction = Callable[[UUID], ActionResult[GameStatusResponse]]
EventHandler = Callable[[GameEvent], None]


def diff_snapshots(
    previous: Optional[GameStatusResponse], current: GameStatusResponse
) -> list[GameEvent]:
    """Events describing how `current` differs from `previous` (None: nothing seen yet)."""
    events: list[GameEvent] = []

    previous_status = previous.status if previous else None
    if previous_status != current.status:
        events.append(StatusChanged(previous_status, current.status))

    previous_moves = previous.moves if previous else []
    if previous_moves != current.moves:
        # the move log only grows, so anything else means a different game history: resend it all
        if current.moves[: len(previous_moves)] == previous_moves:
            new_moves = current.moves[len(previous_moves) :]
        else:
            new_moves = current.moves
        events.append(BoardChanged(tuple(new_moves), len(current.moves)))

    previous_turn = previous.turn if previous else None
    if previous is None or previous_turn != current.turn:
        events.append(TurnChanged(previous_turn, current.turn))

    if current.status in TERMINAL_STATUSES and previous_status != current.status:
        events.append(GameEnded(current.status, current.winner))

    return events


class StatusPoller:
    def __init__(
        self,
        fetch: StatusFetcher,
        on_event: EventHandler,
        interval_s: float,
    ) -> None:
        self.fetch = fetch
        self.on_event = on_event
        self.interval_s = interval_s
        self.last: Optional[GameStatusResponse] = None
        self._stop = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    async def poll_once(self) -> list[GameEvent]:
        current = await self.fetch()
        events = diff_snapshots(self.last, current)
        self.last = current
        for event in events:
            self.on_event(event)
        return events

    async def run(self) -> None:
        while not self._stop.is_set():
            try:
                await self.poll_once()
            except CollaboratorError as exc:
                log.warning("Status poll failed, retrying in %.1fs: %s", self.interval_s, exc)

            if self.last is not None and self.last.status in TERMINAL_STATUSES:
                self.stop()
                break

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_s)
            except asyncio.TimeoutError:
                pass


def status_fetcher(get_status: StatusAction, game_id: UUID) -> StatusFetcher:
    """Adapt the (blocking) boundary call into an awaitable that raises on failure."""

    async def _fetch() -> GameStatusResponse:
        result = await asyncio.to_thread(get_status, game_id)
        if result.success and result.data is not None:
            return result.data
        if result.error == ErrorKind.USER:
            raise SessionNotFoundError(result.message or "Game not found.")
        if result.error == ErrorKind.CONSISTENCY:
            raise ConsistencyError(result.message or "Inconsistent game data.")
        raise CollaboratorError(result.message or "Status unavailable.")

    return _fetch
