"""Exact outcome probabilities from the live shoe composition."""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Iterable, Mapping

from blackjack.cards import Card
from blackjack.errors import EmptyShoeError, InvalidConfigurationError

CARD_VALUES = tuple(range(1, 11))


class DealerOutcome(Enum):
    """Possible dealer final outcomes."""

    SEVENTEEN = "17"
    EIGHTEEN = "18"
    NINETEEN = "19"
    TWENTY = "20"
    TWENTY_ONE = "21"
    BLACKJACK = "blackjack"
    BUST = "bust"


_OUTCOMES = tuple(DealerOutcome)
_INDEX = {outcome: i for i, outcome in enumerate(_OUTCOMES)}
_STAND_INDEX = {17 + i: i for i in range(5)}


@dataclass(frozen=True)
class DealerDistribution:
    """Dealer outcome probabilities for a given up card and shoe."""

    up_card: int  # 1-10, 1 = Ace
    probabilities: tuple[float, ...]

    def __post_init__(self) -> None:
        """Validate probabilities sum to 1."""
        total = sum(self.probabilities)
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Probabilities must sum to 1.0, got {total}")

    def __getitem__(self, outcome: DealerOutcome) -> float:
        return self.probabilities[_INDEX[outcome]]

    @property
    def bust(self) -> float:
        return self[DealerOutcome.BUST]

    @property
    def blackjack(self) -> float:
        return self[DealerOutcome.BLACKJACK]

    def to_dict(self) -> dict[str, float]:
        return {outcome.value: p for outcome, p in zip(_OUTCOMES, self.probabilities)}


def composition_from_cards(cards: Iterable[Card]) -> dict[int, int]:
    """Count cards by hard point value (1-10)."""
    counts = Counter(card.value for card in cards)
    return {value: counts.get(value, 0) for value in CARD_VALUES}


def _as_key(composition: Mapping[int, int]) -> tuple[int, ...]:
    key = tuple(int(composition.get(value, 0)) for value in CARD_VALUES)
    if any(count < 0 for count in key):
        raise InvalidConfigurationError("Card counts cannot be negative")
    return key


def _without(key: tuple[int, ...], value: int) -> tuple[int, ...]:
    counts = list(key)
    counts[value - 1] -= 1
    return tuple(counts)


def _vector(index: int) -> tuple[float, ...]:
    probs = [0.0] * len(_OUTCOMES)
    probs[index] = 1.0
    return tuple(probs)


@lru_cache(maxsize=2**16)
def _dealer_from(
    hard_total: int,
    has_ace: bool,
    composition: tuple[int, ...],
    hits_soft_17: bool,
) -> tuple[float, ...]:
    """Outcome vector for a dealer holding ``hard_total`` who must keep drawing by the rules."""
    if hard_total > 21:
        return _vector(_INDEX[DealerOutcome.BUST])

    soft = has_ace and hard_total + 10 <= 21
    total = hard_total + 10 if soft else hard_total
    if total > 17 or (total == 17 and not (soft and hits_soft_17)):
        return _vector(_STAND_INDEX[total])

    remaining = sum(composition)
    if remaining == 0:
        raise EmptyShoeError("Shoe ran out while the dealer still had to hit")

    acc = [0.0] * len(_OUTCOMES)
    for value, count in zip(CARD_VALUES, composition):
        if not count:
            continue
        weight = count / remaining
        sub = _dealer_from(
            hard_total + value,
            has_ace or value == 1,
            _without(composition, value),
            hits_soft_17,
        )
        for i, p in enumerate(sub):
            acc[i] += weight * p
    return tuple(acc)


def _up_value(up_card: Card | int) -> int:
    value = up_card.value if isinstance(up_card, Card) else int(up_card)
    if value == 11:
        value = 1
    if value not in CARD_VALUES:
        raise InvalidConfigurationError(f"Invalid up card: {up_card}")
    return value


def dealer_outcome_distribution(
    up_card: Card | int,
    composition: Mapping[int, int],
    hits_soft_17: bool = True,
    peeked: bool = False,
) -> DealerDistribution:
    """
    Exact dealer outcome probabilities.

    Args:
        up_card: The dealer's up card, or its value (1 or 11 = Ace)
        composition: Unseen cards by hard value (1-10), up card already
            removed; the hole card is drawn from these
        hits_soft_17: Whether the dealer hits soft 17
        peeked: The dealer checked for blackjack and did not have one, so
            hole cards completing a natural are excluded

    Returns:
        A :class:`DealerDistribution` over 17-21, blackjack and bust
    """
    up = _up_value(up_card)
    key = _as_key(composition)
    remaining = sum(key)
    if remaining == 0:
        raise EmptyShoeError("No cards left for the hole card")

    acc = [0.0] * len(_OUTCOMES)
    excluded = 0
    for value, count in zip(CARD_VALUES, key):
        if not count:
            continue
        natural = {up, value} == {1, 10}
        if natural and peeked:
            excluded += count
            continue
        weight = count / remaining
        if natural:
            acc[_INDEX[DealerOutcome.BLACKJACK]] += weight
            continue
        sub = _dealer_from(up + value, up == 1 or value == 1, _without(key, value), hits_soft_17)
        for i, p in enumerate(sub):
            acc[i] += weight * p

    if excluded:
        if excluded == remaining:
            raise EmptyShoeError("Every remaining hole card completes a blackjack")
        scale = remaining / (remaining - excluded)
        acc = [p * scale for p in acc]

    return DealerDistribution(up_card=up, probabilities=tuple(acc))


def dealer_bust_probability(
    up_card: Card | int,
    composition: Mapping[int, int],
    hits_soft_17: bool = True,
    peeked: bool = False,
) -> float:
    """Probability that the dealer finishes over 21."""
    return dealer_outcome_distribution(up_card, composition, hits_soft_17, peeked).bust


def player_bust_probability(cards: Iterable[Card], composition: Mapping[int, int]) -> float:
    """
    Probability that one more card busts the hand.

    Aces in the draw count as 1, so only cards pushing the hard total past
    21 are counted.
    """
    hard_total = sum(card.value for card in cards)
    if hard_total > 21:
        return 1.0

    key = _as_key(composition)
    remaining = sum(key)
    if remaining == 0:
        raise EmptyShoeError("No cards left to draw")

    busting = sum(count for value, count in zip(CARD_VALUES, key) if hard_total + value > 21)
    return busting / remaining


def card_probability(value: int, composition: Mapping[int, int]) -> float:
    """Probability that the next card has the given hard value (1-10)."""
    key = _as_key(composition)
    remaining = sum(key)
    if remaining == 0:
        raise EmptyShoeError("No cards left to draw")
    if value not in CARD_VALUES:
        raise InvalidConfigurationError(f"Invalid card value: {value}")
    return key[value - 1] / remaining
