"""Bets and bet-progression strategies."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, Iterable, Sequence
from uuid import uuid4

from blackjack.errors import InvalidConfigurationError
from blackjack.hand import HandResult


class BetStatus(Enum):
    """Lifecycle of a wager."""

    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    PUSH = "push"
    SURRENDERED = "surrendered"
    CANCELLED = "cancelled"


_STATUS_FOR_RESULT = {
    HandResult.WIN: BetStatus.WON,
    HandResult.BLACKJACK: BetStatus.WON,
    HandResult.LOSS: BetStatus.LOST,
    HandResult.PUSH: BetStatus.PUSH,
    HandResult.SURRENDER: BetStatus.SURRENDERED,
}


def bet_status_for(result: HandResult) -> BetStatus:
    """Map a settled hand result to the status of its wager."""
    return _STATUS_FOR_RESULT[result]


@dataclass
class Bet:
    """A main wager on one hand."""

    amount: Decimal
    hand_id: str
    player_id: str = "player"
    id: str = field(default_factory=lambda: uuid4().hex[:12])
    status: BetStatus = BetStatus.PENDING
    payout: Decimal = Decimal("0")
    payout_multiplier: Decimal = Decimal("0")
    timestamp: datetime = field(default_factory=datetime.now)

    def settle(self, status: BetStatus, payout: Decimal) -> None:
        """Record the outcome; payout is the total returned to the player."""
        self.status = status
        self.payout = payout
        self.payout_multiplier = payout / self.amount if self.amount else Decimal("0")


class Outcome(Enum):
    """A round's result as seen by a progression strategy."""

    WIN = "win"
    LOSS = "loss"
    PUSH = "push"

    @classmethod
    def from_result(cls, result: HandResult | str) -> "Outcome":
        """Blackjack counts as a win and surrender as a loss."""
        result = HandResult(result)
        if result in (HandResult.WIN, HandResult.BLACKJACK):
            return cls.WIN
        if result in (HandResult.LOSS, HandResult.SURRENDER):
            return cls.LOSS
        return cls.PUSH


class BettingStrategyType(Enum):
    """Supported progressions."""

    FLAT = "flat"
    MARTINGALE = "martingale"
    PAROLI = "paroli"
    D_ALEMBERT = "dalembert"
    FIBONACCI = "fibonacci"
    OSCARS_GRIND = "oscars-grind"
    ONE_THREE_TWO_SIX = "1-3-2-6"


@dataclass(frozen=True)
class BettingStrategy:
    """A progression and its description."""

    type: BettingStrategyType
    name: str
    description: str
    risk: str
    units: Callable[[Sequence[Outcome]], int]


def _decisive(history: Iterable[Outcome]) -> list[Outcome]:
    """Pushes never move a progression."""
    return [outcome for outcome in history if outcome != Outcome.PUSH]


def _trailing(history: Sequence[Outcome], outcome: Outcome) -> int:
    count = 0
    for previous in reversed(_decisive(history)):
        if previous != outcome:
            break
        count += 1
    return count


def _flat_units(history: Sequence[Outcome]) -> int:
    return 1


def _martingale_units(history: Sequence[Outcome]) -> int:
    return 2 ** _trailing(history, Outcome.LOSS)


def _paroli_units(history: Sequence[Outcome]) -> int:
    wins = _trailing(history, Outcome.WIN) % 3
    return 2 ** wins


def _dalembert_units(history: Sequence[Outcome]) -> int:
    units = 1
    for outcome in _decisive(history):
        units = units + 1 if outcome == Outcome.LOSS else max(1, units - 1)
    return units


def _fibonacci_units(history: Sequence[Outcome]) -> int:
    sequence = [1, 1]
    position = 0
    for outcome in _decisive(history):
        if outcome == Outcome.LOSS:
            position += 1
            while position >= len(sequence):
                sequence.append(sequence[-1] + sequence[-2])
        else:
            position = max(0, position - 2)
    return sequence[position]


def _oscars_grind_units(history: Sequence[Outcome]) -> int:
    # Each cycle aims to finish exactly one unit ahead.
    units = 1
    profit = 0
    for outcome in _decisive(history):
        if outcome == Outcome.WIN:
            profit += units
            if profit >= 1:
                units, profit = 1, 0
            else:
                units = min(units + 1, 1 - profit)
        else:
            profit -= units
    return units


_ONE_THREE_TWO_SIX = (1, 3, 2, 6)


def _one_three_two_six_units(history: Sequence[Outcome]) -> int:
    wins = _trailing(history, Outcome.WIN)
    return _ONE_THREE_TWO_SIX[wins % len(_ONE_THREE_TWO_SIX)]


STRATEGIES: dict[BettingStrategyType, BettingStrategy] = {
    BettingStrategyType.FLAT: BettingStrategy(
        BettingStrategyType.FLAT,
        "Flat Betting",
        "Bet the same amount every hand regardless of outcome",
        "low",
        _flat_units,
    ),
    BettingStrategyType.MARTINGALE: BettingStrategy(
        BettingStrategyType.MARTINGALE,
        "Martingale",
        "Double your bet after each loss, reset to base bet after a win",
        "high",
        _martingale_units,
    ),
    BettingStrategyType.PAROLI: BettingStrategy(
        BettingStrategyType.PAROLI,
        "Paroli",
        "Double your bet after each win, up to three wins in a row",
        "medium",
        _paroli_units,
    ),
    BettingStrategyType.D_ALEMBERT: BettingStrategy(
        BettingStrategyType.D_ALEMBERT,
        "D'Alembert",
        "Increase bet by one unit after a loss, decrease by one unit after a win",
        "medium",
        _dalembert_units,
    ),
    BettingStrategyType.FIBONACCI: BettingStrategy(
        BettingStrategyType.FIBONACCI,
        "Fibonacci",
        "Follow Fibonacci sequence for losses, move back two steps after a win",
        "medium",
        _fibonacci_units,
    ),
    BettingStrategyType.OSCARS_GRIND: BettingStrategy(
        BettingStrategyType.OSCARS_GRIND,
        "Oscar's Grind",
        "Increase bet by one unit after a win, keep same bet after a loss",
        "low",
        _oscars_grind_units,
    ),
    BettingStrategyType.ONE_THREE_TWO_SIX: BettingStrategy(
        BettingStrategyType.ONE_THREE_TWO_SIX,
        "1-3-2-6",
        "Bet 1, 3, 2 then 6 units through a winning streak",
        "medium",
        _one_three_two_six_units,
    ),
}


def get_strategy(strategy: BettingStrategyType | str) -> BettingStrategy:
    """Look up a strategy by type or value."""
    try:
        return STRATEGIES[BettingStrategyType(strategy)]
    except ValueError:
        raise InvalidConfigurationError(f"Unknown betting strategy: {strategy}") from None


def clamp_bet(amount: Decimal, min_bet: Decimal, max_bet: Decimal, balance: Decimal) -> Decimal:
    """Clamp to the table limits, then to what the player can afford."""
    return min(max(min_bet, min(amount, max_bet)), balance)


def next_bet(
    strategy: BettingStrategyType | str,
    history: Sequence[Outcome | HandResult | str],
    current_bet: Decimal | int,
    base_unit: Decimal | int,
    min_bet: Decimal | int,
    max_bet: Decimal | int,
    balance: Decimal | int,
) -> Decimal:
    """
    Suggest the next wager.

    The progression position comes from ``history`` alone, counted in
    ``base_unit`` steps. Clamping only shapes the returned amount; it never
    feeds back into the progression, so a clamped Martingale resumes from
    the base unit after the next win.

    Args:
        strategy: Progression to follow
        history: Round outcomes, oldest first
        current_bet: The wager just played (used by flat betting)
        base_unit: One betting unit
        min_bet: Table minimum
        max_bet: Table maximum
        balance: Bankroll available for the wager

    Returns:
        The suggested amount, within ``[min_bet, max_bet]`` and not above
        ``balance``
    """
    base_unit = Decimal(str(base_unit))
    min_bet = Decimal(str(min_bet))
    max_bet = Decimal(str(max_bet))
    balance = Decimal(str(balance))
    current_bet = Decimal(str(current_bet))

    if base_unit <= 0:
        raise InvalidConfigurationError("base_unit must be positive")
    if min_bet > max_bet:
        raise InvalidConfigurationError("min_bet must not exceed max_bet")
    if balance < 0:
        raise InvalidConfigurationError("balance must not be negative")

    chosen = get_strategy(strategy)
    outcomes = [
        item if isinstance(item, Outcome) else Outcome.from_result(item)
        for item in history
    ]

    if chosen.type == BettingStrategyType.FLAT and current_bet > 0:
        amount = current_bet
    else:
        amount = base_unit * chosen.units(outcomes)

    return clamp_bet(amount, min_bet, max_bet, balance)
