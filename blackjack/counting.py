"""Card counting systems and a running counter over the shoe."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from blackjack.cards import Card, Rank
from blackjack.errors import InvalidConfigurationError

logger = logging.getLogger(__name__)


def _tags(
    two: float,
    three: float,
    four: float,
    five: float,
    six: float,
    seven: float,
    eight: float,
    nine: float,
    ten: float,
    ace: float,
) -> dict[Rank, float]:
    tags = {
        Rank.TWO: two,
        Rank.THREE: three,
        Rank.FOUR: four,
        Rank.FIVE: five,
        Rank.SIX: six,
        Rank.SEVEN: seven,
        Rank.EIGHT: eight,
        Rank.NINE: nine,
        Rank.ACE: ace,
    }
    for rank in Rank:
        if rank.is_ten_value:
            tags[rank] = ten
    return tags


@dataclass(frozen=True)
class CountingSystem:
    """
    A card counting system: one tag value per rank.

    A balanced system sums to 0 over a complete deck. An unbalanced one
    (Knock-Out) starts each shoe from an initial running count instead of
    converting to a true count.
    """

    key: str
    name: str
    tag_values: Mapping[Rank, float]
    is_balanced: bool = True

    def tag(self, card: Card) -> float:
        return self.tag_values[card.rank]

    @property
    def full_deck_sum(self) -> float:
        """Sum of tag values over a 52-card deck."""
        return sum(self.tag_values[rank] * 4 for rank in Rank)

    def initial_running_count(self, num_decks: int) -> float:
        """
        Running count at the start of a shoe.

        Zero for balanced systems. For Knock-Out this is 4 - 4 * decks, so
        the key count sits at 0.
        """
        if self.is_balanced:
            return 0.0
        return self.full_deck_sum * (1 - num_decks)


COUNTING_SYSTEMS: dict[str, CountingSystem] = {
    system.key: system
    for system in (
        CountingSystem("hi-lo", "Hi-Lo", _tags(1, 1, 1, 1, 1, 0, 0, 0, -1, -1)),
        CountingSystem("hi-opt-1", "Hi-Opt I", _tags(0, 1, 1, 1, 1, 0, 0, 0, -1, 0)),
        CountingSystem("hi-opt-2", "Hi-Opt II", _tags(1, 1, 2, 2, 1, 1, 0, 0, -2, 0)),
        CountingSystem("omega-2", "Omega II", _tags(1, 1, 2, 2, 2, 1, 0, -1, -2, 0)),
        CountingSystem(
            "ko", "Knock-Out (KO)", _tags(1, 1, 1, 1, 1, 1, 0, 0, -1, -1), is_balanced=False
        ),
        CountingSystem("zen", "Zen Count", _tags(1, 1, 2, 2, 2, 1, 0, 0, -2, -1)),
        CountingSystem(
            "halves", "Wong Halves", _tags(0.5, 1, 1, 1.5, 1, 0.5, 0, -0.5, -1, -1)
        ),
    )
}


def get_counting_system(key: str) -> CountingSystem:
    try:
        return COUNTING_SYSTEMS[key]
    except KeyError:
        raise InvalidConfigurationError(
            f"Unknown counting system: {key}. Choose from {sorted(COUNTING_SYSTEMS)}"
        ) from None


def true_count(running_count: float, decks_remaining: float) -> float:
    """
    Running count per remaining deck, rounded to the nearest half.

    With no decks left the running count is returned as is.
    """
    if decks_remaining <= 0:
        return running_count
    return round(running_count / decks_remaining * 2) / 2


def bet_units(true_count: float, max_spread: int = 8) -> int:
    """
    Betting units for a true count: 1 at or below zero, then one more unit
    per whole point, capped at ``max_spread`` (reached from +6 up).
    """
    if max_spread < 1:
        raise InvalidConfigurationError("max_spread must be at least 1")
    if true_count <= 0:
        return 1
    if true_count >= 6:
        return max_spread
    return min(max_spread, 1 + math.floor(true_count))


class CardCounter:
    """
    Tracks the running count of every card seen since the last shuffle.

    Only cards a player at the table could see should be counted: face-down
    cards are skipped.
    """

    INSURANCE_THRESHOLD = 3.0

    def __init__(self, system: CountingSystem | str = "hi-lo", num_decks: int = 1) -> None:
        self.system = system if isinstance(system, CountingSystem) else get_counting_system(system)
        self.num_decks = num_decks
        self._running_count = self.system.initial_running_count(num_decks)
        self._cards_seen = 0

    @property
    def running_count(self) -> float:
        return self._running_count

    @property
    def cards_seen(self) -> int:
        return self._cards_seen

    def count_card(self, card: Card) -> float:
        """Count one card; returns its tag value (0 for a face-down card)."""
        if not card.face_up:
            return 0.0
        tag = self.system.tag(card)
        self._running_count += tag
        self._cards_seen += 1
        return tag

    def count_cards(self, cards: Iterable[Card]) -> float:
        return sum(self.count_card(card) for card in cards)

    def true_count(self, decks_remaining: float) -> float:
        return true_count(self._running_count, decks_remaining)

    def bet_units(self, decks_remaining: float, max_spread: int = 8) -> int:
        """Suggested betting units; unbalanced systems use the running count."""
        count = (
            self.true_count(decks_remaining)
            if self.system.is_balanced
            else self._running_count
        )
        return bet_units(count, max_spread)

    def favours_insurance(self, decks_remaining: float) -> bool:
        """Insurance becomes worth taking from a true count of +3."""
        return self.true_count(decks_remaining) >= self.INSURANCE_THRESHOLD

    def reset(self, num_decks: int | None = None) -> None:
        """Start over for a freshly shuffled shoe."""
        if num_decks is not None:
            self.num_decks = num_decks
        self._running_count = self.system.initial_running_count(self.num_decks)
        self._cards_seen = 0
        logger.debug("%s count reset to %s", self.system.name, self._running_count)

    def restore(self, running_count: float, cards_seen: int) -> None:
        """Resume a count saved with :meth:`to_dict`."""
        self._running_count = float(running_count)
        self._cards_seen = int(cards_seen)

    def to_dict(self, decks_remaining: float) -> dict[str, Any]:
        return {
            "system": self.system.key,
            "name": self.system.name,
            "balanced": self.system.is_balanced,
            "running_count": self._running_count,
            "true_count": self.true_count(decks_remaining),
            "cards_seen": self._cards_seen,
            "bet_units": self.bet_units(decks_remaining),
        }

    def __repr__(self) -> str:
        return f"CardCounter({self.system.key}, running_count={self._running_count})"
