"""
Exceptions raised by the domain, persistence and service layers.

Everything derives from GameError so that the boundary (src/api/actions.py) can translate any of them into an explicit failure result.
The four branches below GameError tell the boundary how to react:

* UserError: misuse by the requester. Reported verbatim, never retried.
* ConflictError: a concurrent writer won. Retried once by the service.
* CollaboratorError: the store or the advisor is unavailable.
* ConsistencyError: stored data no longer replays. Fatal, logged, reported opaquely.
"""


class GameError(Exception):
    """Base class for every error raised on purpose by this package."""


class GameStateError(GameError):
    """The domain was asked to do something its current state does not allow."""


# --- USER ERRORS ---
class UserError(GameError):
    pass


class InvalidRequestError(UserError):
    pass


class SessionNotFoundError(UserError):
    pass


class SessionNotActiveError(UserError):
    pass


class NotYourTurnError(UserError):
    pass


class NotAParticipantError(UserError):
    pass


class InvalidColumnError(UserError):
    pass


class ConcurrentMoveError(UserError):
    """A move kept colliding with another writer, even after re-fetching the game."""


class UserNotFoundError(UserError):
    pass


class UsernameTakenError(UserError):
    pass


class UsernameInvalidFormatError(UserError):
    pass


# --- CONFLICTS ---
class ConflictError(GameError):
    pass


class MoveConflictError(ConflictError):
    """The per-game ordering constraint rejected an appended move."""


# --- COLLABORATORS ---
class CollaboratorError(GameError):
    pass


class PersistenceError(CollaboratorError):
    pass


class AdvisoryError(CollaboratorError):
    pass


# --- CONSISTENCY ---
class ConsistencyError(GameError):
    pass


class ReplayDivergenceError(ConsistencyError):
    """A persisted move sequence does not replay onto an empty board."""
