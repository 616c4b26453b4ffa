"""Round phases."""

from enum import Enum


class GamePhase(Enum):
    """
    Phases of a round.

    Flow: BETTING → DEALING → [EARLY_SURRENDER] → [INSURANCE] → PLAYER_TURN →
    DEALER_TURN → SETTLEMENT → CLEANUP → BETTING

    The allowed moves between phases live in the table's state machine
    (:attr:`BlackjackGame.TRANSITIONS`).
    """

    BETTING = "betting"
    DEALING = "dealing"
    EARLY_SURRENDER = "early_surrender"
    INSURANCE = "insurance"
    PLAYER_TURN = "player_turn"
    DEALER_TURN = "dealer_turn"
    SETTLEMENT = "settlement"
    CLEANUP = "cleanup"

    def __str__(self) -> str:
        return self.value.replace("_", " ").title()
