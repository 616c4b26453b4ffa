"""Side-bet types, payout tables and evaluators."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence
from uuid import uuid4

from blackjack.betting import BetStatus
from blackjack.cards import Card, Rank
from blackjack.errors import InvalidBetError
from blackjack.hand import best_total, is_blackjack


class SideBetType(Enum):
    """Optional wagers placed alongside the main bet."""

    PERFECT_PAIRS = "perfect-pairs"
    TWENTY_ONE_PLUS_THREE = "21+3"
    LUCKY_LUCKY = "lucky-lucky"
    ROYAL_MATCH = "royal-match"
    OVER_UNDER_13 = "over-under-13"
    INSURANCE = "insurance"


OVER_UNDER_SELECTIONS = ("over", "under", "exactly")


@dataclass(frozen=True)
class SideBetConfig:
    """Limits and payout table for one side-bet type."""

    bet_type: SideBetType
    name: str
    description: str
    min_bet: Decimal = Decimal("5")
    max_bet: Decimal = Decimal("100")
    payouts: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "payouts",
            MappingProxyType({k: Decimal(str(v)) for k, v in self.payouts.items()}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.bet_type.value,
            "name": self.name,
            "description": self.description,
            "min_bet": str(self.min_bet),
            "max_bet": str(self.max_bet),
            "payouts": {k: str(v) for k, v in self.payouts.items()},
        }


DEFAULT_SIDE_BETS: dict[SideBetType, SideBetConfig] = {
    SideBetType.PERFECT_PAIRS: SideBetConfig(
        SideBetType.PERFECT_PAIRS,
        "Perfect Pairs",
        "Bet that your first two cards will be a pair",
        payouts={"mixed-pair": 5, "colored-pair": 10, "perfect-pair": 30},
    ),
    SideBetType.TWENTY_ONE_PLUS_THREE: SideBetConfig(
        SideBetType.TWENTY_ONE_PLUS_THREE,
        "21+3",
        "Your first two cards and the dealer's up card form a poker hand",
        payouts={
            "flush": 5,
            "straight": 10,
            "three-of-a-kind": 30,
            "straight-flush": 40,
            "suited-trips": 100,
        },
    ),
    SideBetType.LUCKY_LUCKY: SideBetConfig(
        SideBetType.LUCKY_LUCKY,
        "Lucky Lucky",
        "Your first two cards and the dealer's up card total 19, 20 or 21",
        payouts={
            "19": 2,
            "20": 3,
            "21-unsuited": 15,
            "21-suited": 25,
            "21-777-unsuited": 50,
            "21-777-suited": 100,
        },
    ),
    SideBetType.ROYAL_MATCH: SideBetConfig(
        SideBetType.ROYAL_MATCH,
        "Royal Match",
        "Your first two cards are suited",
        payouts={"royal-match": 25, "suited-blackjack": 50, "suited-pair": 10},
    ),
    SideBetType.OVER_UNDER_13: SideBetConfig(
        SideBetType.OVER_UNDER_13,
        "Over/Under 13",
        "Bet whether your first two cards total over, under or exactly 13",
        payouts={"over-13": 1, "under-13": 1, "exactly-13": 10},
    ),
    SideBetType.INSURANCE: SideBetConfig(
        SideBetType.INSURANCE,
        "Insurance",
        "Bet that the dealer has blackjack when showing an Ace",
        min_bet=Decimal("1"),
        max_bet=Decimal("250"),
        payouts={"win": 2},
    ),
}


@dataclass(frozen=True)
class SideBetMatch:
    """A winning combination and what it pays to one."""

    combination: str
    multiplier: Decimal


def _first_two(cards: Sequence[Card]) -> Sequence[Card]:
    return cards[:2]


def _up_card(cards: Sequence[Card]) -> list[Card]:
    return list(cards[:1])


def _match(payouts: Mapping[str, Decimal], combination: str) -> SideBetMatch | None:
    if combination not in payouts:
        return None
    return SideBetMatch(combination, payouts[combination])


def evaluate_perfect_pairs(
    player_cards: Sequence[Card],
    dealer_cards: Sequence[Card],
    payouts: Mapping[str, Decimal],
    selection: str | None = None,
) -> SideBetMatch | None:
    first, second = _first_two(player_cards)
    if first.rank != second.rank:
        return None
    if first.suit == second.suit:
        return _match(payouts, "perfect-pair")
    if first.suit.is_red == second.suit.is_red:
        return _match(payouts, "colored-pair")
    return _match(payouts, "mixed-pair")


def _is_straight(cards: Sequence[Card]) -> bool:
    ranks = sorted(card.rank.value for card in cards)
    if len(set(ranks)) != len(ranks):
        return False
    if ranks == [2, 3, Rank.ACE.value]:
        return True
    return ranks[-1] - ranks[0] == len(ranks) - 1


def evaluate_twenty_one_plus_three(
    player_cards: Sequence[Card],
    dealer_cards: Sequence[Card],
    payouts: Mapping[str, Decimal],
    selection: str | None = None,
) -> SideBetMatch | None:
    """Three-card poker: player's first two plus the dealer's up card."""
    cards = [*_first_two(player_cards), *_up_card(dealer_cards)]
    if len(cards) != 3:
        return None

    same_rank = len({card.rank for card in cards}) == 1
    flush = len({card.suit for card in cards}) == 1
    straight = _is_straight(cards)

    if same_rank and flush:
        return _match(payouts, "suited-trips")
    if straight and flush:
        return _match(payouts, "straight-flush")
    if same_rank:
        return _match(payouts, "three-of-a-kind")
    if straight:
        return _match(payouts, "straight")
    if flush:
        return _match(payouts, "flush")
    return None


def evaluate_lucky_lucky(
    player_cards: Sequence[Card],
    dealer_cards: Sequence[Card],
    payouts: Mapping[str, Decimal],
    selection: str | None = None,
) -> SideBetMatch | None:
    cards = [*_first_two(player_cards), *_up_card(dealer_cards)]
    if len(cards) != 3:
        return None

    total = best_total(cards)
    if total == 21:
        suited = len({card.suit for card in cards}) == 1
        sevens = all(card.rank == Rank.SEVEN for card in cards)
        label = "21-777" if sevens else "21"
        return _match(payouts, f"{label}-{'suited' if suited else 'unsuited'}")
    if total in (19, 20):
        return _match(payouts, str(total))
    return None


def evaluate_royal_match(
    player_cards: Sequence[Card],
    dealer_cards: Sequence[Card],
    payouts: Mapping[str, Decimal],
    selection: str | None = None,
) -> SideBetMatch | None:
    first, second = _first_two(player_cards)
    if first.suit != second.suit:
        return None
    if first.rank.is_face and second.rank.is_face:
        return _match(payouts, "royal-match")
    if is_blackjack([first, second]):
        return _match(payouts, "suited-blackjack")
    if first.rank == second.rank:
        return _match(payouts, "suited-pair")
    return None


def evaluate_over_under_13(
    player_cards: Sequence[Card],
    dealer_cards: Sequence[Card],
    payouts: Mapping[str, Decimal],
    selection: str | None = None,
) -> SideBetMatch | None:
    """Aces count as 1; only the selected band pays."""
    total = sum(card.value for card in _first_two(player_cards))
    if total > 13:
        band = "over"
    elif total < 13:
        band = "under"
    else:
        band = "exactly"
    if band != selection:
        return None
    return _match(payouts, f"{band}-13")


def evaluate_insurance(
    player_cards: Sequence[Card],
    dealer_cards: Sequence[Card],
    payouts: Mapping[str, Decimal],
    selection: str | None = None,
) -> SideBetMatch | None:
    """Uses both dealer cards, so call it only after the hole card is known."""
    if is_blackjack(dealer_cards[:2]):
        return _match(payouts, "win")
    return None


Evaluator = Callable[
    [Sequence[Card], Sequence[Card], Mapping[str, Decimal], str | None],
    SideBetMatch | None,
]

EVALUATORS: dict[SideBetType, Evaluator] = {
    SideBetType.PERFECT_PAIRS: evaluate_perfect_pairs,
    SideBetType.TWENTY_ONE_PLUS_THREE: evaluate_twenty_one_plus_three,
    SideBetType.LUCKY_LUCKY: evaluate_lucky_lucky,
    SideBetType.ROYAL_MATCH: evaluate_royal_match,
    SideBetType.OVER_UNDER_13: evaluate_over_under_13,
    SideBetType.INSURANCE: evaluate_insurance,
}


def evaluate_side_bet(
    bet_type: SideBetType | str,
    player_cards: Sequence[Card],
    dealer_cards: Sequence[Card],
    selection: str | None = None,
    config: SideBetConfig | None = None,
) -> SideBetMatch | None:
    """
    Find the winning combination for a side bet, if any.

    Args:
        bet_type: Which side bet to evaluate
        player_cards: The player's cards; only the first two are used
        dealer_cards: Dealer cards, up card first
        selection: Band chosen for Over/Under 13
        config: Payout table to use (defaults to :data:`DEFAULT_SIDE_BETS`)

    Returns:
        The best matching combination, or None when the bet loses
    """
    bet_type = SideBetType(bet_type)
    config = config or DEFAULT_SIDE_BETS[bet_type]
    if len(player_cards) < 2:
        return None
    return EVALUATORS[bet_type](player_cards, dealer_cards, config.payouts, selection)


@dataclass
class SideBet:
    """A side wager and, after settlement, its result."""

    bet_type: SideBetType
    amount: Decimal
    player_id: str = "player"
    selection: str | None = None
    id: str = field(default_factory=lambda: uuid4().hex[:12])
    status: BetStatus = BetStatus.PENDING
    payout: Decimal = Decimal("0")
    payout_multiplier: Decimal = Decimal("0")
    winning_combination: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.bet_type.value,
            "amount": str(self.amount),
            "player_id": self.player_id,
            "selection": self.selection,
            "status": self.status.value,
            "payout": str(self.payout),
            "winning_combination": self.winning_combination,
        }


def create_side_bet(
    bet_type: SideBetType | str,
    amount: Decimal | int | str,
    player_id: str = "player",
    selection: str | None = None,
    configs: Mapping[SideBetType, SideBetConfig] | None = None,
) -> SideBet:
    """Validate and build a side wager."""
    try:
        bet_type = SideBetType(bet_type)
    except ValueError:
        raise InvalidBetError(f"Unknown side bet: {bet_type}") from None

    config = (configs or DEFAULT_SIDE_BETS)[bet_type]
    amount = Decimal(str(amount))
    if amount < config.min_bet or amount > config.max_bet:
        raise InvalidBetError(
            f"{config.name} bet must be between {config.min_bet} and {config.max_bet}"
        )

    if bet_type == SideBetType.OVER_UNDER_13:
        if selection not in OVER_UNDER_SELECTIONS:
            raise InvalidBetError(
                f"Over/Under 13 needs a selection: {', '.join(OVER_UNDER_SELECTIONS)}"
            )
    else:
        selection = None

    return SideBet(bet_type=bet_type, amount=amount, player_id=player_id, selection=selection)


@dataclass(frozen=True)
class SideBetResult:
    """Outcome of one side bet."""

    bet_id: str
    bet_type: SideBetType
    player_id: str
    amount: Decimal
    won: bool
    combination: str | None
    multiplier: Decimal
    payout: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "bet_id": self.bet_id,
            "type": self.bet_type.value,
            "player_id": self.player_id,
            "amount": str(self.amount),
            "won": self.won,
            "combination": self.combination,
            "multiplier": str(self.multiplier),
            "payout": str(self.payout),
        }


def settle_side_bet(
    bet: SideBet,
    player_cards: Sequence[Card],
    dealer_cards: Sequence[Card],
    config: SideBetConfig | None = None,
) -> SideBetResult:
    """
    Resolve a side bet and update it in place.

    A winner returns ``amount * (1 + multiplier)``; a loser returns 0. The
    main hand's outcome plays no part.
    """
    match = evaluate_side_bet(bet.bet_type, player_cards, dealer_cards, bet.selection, config)

    if match is None:
        bet.status = BetStatus.LOST
        bet.payout = Decimal("0")
        bet.payout_multiplier = Decimal("0")
        bet.winning_combination = None
    else:
        bet.status = BetStatus.WON
        bet.payout = bet.amount * (1 + match.multiplier)
        bet.payout_multiplier = match.multiplier
        bet.winning_combination = match.combination

    return SideBetResult(
        bet_id=bet.id,
        bet_type=bet.bet_type,
        player_id=bet.player_id,
        amount=bet.amount,
        won=match is not None,
        combination=bet.winning_combination,
        multiplier=bet.payout_multiplier,
        payout=bet.payout,
    )
