# src/cah_engine/errors.py

# Rejection codes for client requests that break the game rules
NO_ROUND = "NO_ROUND"
WRONG_PHASE = "WRONG_PHASE"
IS_CZAR = "IS_CZAR"
NOT_CZAR = "NOT_CZAR"
ALREADY_SUBMITTED = "ALREADY_SUBMITTED"
OWNERSHIP_MISMATCH = "OWNERSHIP_MISMATCH"
UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
NOT_LOGGED_IN = "NOT_LOGGED_IN"
ALREADY_LOGGED_IN = "ALREADY_LOGGED_IN"
INVALID_EVENT = "INVALID_EVENT"
INTERNAL_ERROR = "INTERNAL_ERROR"


class InvariantViolation(Exception):
    """A broken caller contract inside the engine. Never caused by client input."""


class SupplyError(InvariantViolation):
    """Base class for card supply misuse."""


class SupplyExhausted(SupplyError):
    """Not enough cards left in remaining + discarded to satisfy a draw."""


class UnknownCard(SupplyError):
    """Discarded a card that was never added to the supply."""


class NotCheckedOut(SupplyError):
    """Discarded a card that is still waiting in the remaining pool."""


class DoubleDiscard(SupplyError):
    """Discarded a card that is already in the discard pile."""


class NoPlayers(InvariantViolation):
    """Tried to start a round with an empty roster."""


class SessionHalted(Exception):
    """The session refused a mutation after an earlier invariant violation."""
    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"session halted after {type(cause).__name__}: {cause}")


class SendFailed(Exception):
    """The peer behind a client channel is gone."""
