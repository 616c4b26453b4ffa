"""Engine error taxonomy.

Configuration and bet errors are raised before any state is touched.
Illegal actions are kept separate so a host can tell "not your turn" apart
from "bad input". An empty shoe is fatal to the round.
"""


class BlackjackError(Exception):
    """Base class for all engine errors."""


class InvalidConfigurationError(BlackjackError, ValueError):
    """Rule set, shoe or strategy parameters are invalid."""


class InvalidBetError(InvalidConfigurationError):
    """A wager is outside table limits or otherwise malformed."""


class InsufficientFundsError(InvalidBetError):
    """A wager exceeds the player's available bankroll."""

    def __init__(self, required: object, available: object) -> None:
        super().__init__(f"Insufficient funds: need {required}, have {available}")
        self.required = required
        self.available = available


class IllegalActionError(BlackjackError):
    """An action is not legal for the current hand or phase."""

    def __init__(self, action: str, reason: str) -> None:
        super().__init__(f"Cannot {action}: {reason}")
        self.action = action
        self.reason = reason


class EmptyShoeError(BlackjackError):
    """A card was requested from a shoe with no cards left."""
