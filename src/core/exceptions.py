"""
Custom exceptions.

Every error raised on purpose by this application derives from GameError, so the API layer can catch a single type.
The messages are meant to be shown to the player as they are.
"""


class GameError(Exception):
    """Top-level exception of the application."""


# --- Rule violations: the attempt is rejected, the player has to change their input ---
class RuleViolationError(GameError):
    """Request does not satisfy the rules of the game (terminal for this attempt)."""


class GameStateError(RuleViolationError):
    """Operation is not allowed in the current status of the game, or the stored state is invalid."""


class BoardFormatError(GameStateError):
    """Board string cannot be parsed."""


class SeatError(RuleViolationError):
    """Seat conflicts: already seated, game full, not seated."""


class NotYourTurnError(RuleViolationError):
    pass


class NotYourPieceError(RuleViolationError):
    pass


class IllegalMoveError(RuleViolationError):
    pass


class InvalidRequestError(RuleViolationError):
    """Payload of a request cannot be interpreted."""


# --- Persistence ---
class RepositoryError(GameError):
    """Something went wrong in the persistence layer."""


class StateNotFoundError(RepositoryError):
    """Record does not exist (yet). Caller is responsible for creating it."""


class ConflictError(RepositoryError):
    """
    Conditional write lost a race: the record changed after it was read.
    Nothing was written. Safe to retry the same intent against fresh state.
    """


# --- Ledger ---
class InsufficientFundsError(GameError):
    """Wallet balance is too low for the requested withdrawal."""
