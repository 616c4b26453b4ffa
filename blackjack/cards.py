"""Card and Shoe classes - immutable card representations."""

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum
from random import Random
from typing import Any, Iterator, Sequence

from blackjack.errors import EmptyShoeError, InvalidConfigurationError
from blackjack.shuffle import ShuffleMethod, shuffle

logger = logging.getLogger(__name__)


class Suit(Enum):
    """Card suits."""

    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    def __str__(self) -> str:
        symbols = {
            Suit.CLUBS: "♣",
            Suit.DIAMONDS: "♦",
            Suit.HEARTS: "♥",
            Suit.SPADES: "♠",
        }
        return symbols[self]

    @property
    def is_red(self) -> bool:
        """Hearts and diamonds are red."""
        return self in (Suit.HEARTS, Suit.DIAMONDS)


class Rank(Enum):
    """Card ranks, valued by poker order (Ace high)."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    @property
    def blackjack_values(self) -> tuple[int, ...]:
        """Every point value this rank may count as (Ace = 1 or 11)."""
        if self == Rank.ACE:
            return (1, 11)
        if self.value <= 10:
            return (self.value,)
        return (10,)

    @property
    def hard_value(self) -> int:
        """Point value with an Ace counted as 1."""
        return self.blackjack_values[0]

    @property
    def is_ace(self) -> bool:
        return self == Rank.ACE

    @property
    def is_face(self) -> bool:
        return self in (Rank.JACK, Rank.QUEEN, Rank.KING)

    @property
    def is_ten_value(self) -> bool:
        return self.hard_value == 10


_RANK_ALIASES = {str(rank): rank for rank in Rank} | {"T": Rank.TEN}

_SUIT_ALIASES = {
    "C": Suit.CLUBS,
    "♣": Suit.CLUBS,
    "D": Suit.DIAMONDS,
    "♦": Suit.DIAMONDS,
    "H": Suit.HEARTS,
    "♥": Suit.HEARTS,
    "S": Suit.SPADES,
    "♠": Suit.SPADES,
}


@dataclass(frozen=True, slots=True)
class Card:
    """
    Immutable playing card.

    ``face_up`` is a presentation flag. It does not take part in equality or
    hashing, so a card keeps its identity when turned over.
    """

    rank: Rank
    suit: Suit
    face_up: bool = field(default=True, compare=False, hash=False)

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def values(self) -> tuple[int, ...]:
        """Possible blackjack point values."""
        return self.rank.blackjack_values

    @property
    def value(self) -> int:
        """Hard point value (Ace = 1)."""
        return self.rank.hard_value

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    @property
    def is_ten_value(self) -> bool:
        return self.rank.is_ten_value

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view; a face-down card hides its rank and suit."""
        if not self.face_up:
            return {"rank": None, "suit": None, "face_up": False}
        return {"rank": str(self.rank), "suit": self.suit.value, "face_up": True}

    def flipped(self, face_up: bool) -> "Card":
        """Return this card with the given orientation."""
        if face_up == self.face_up:
            return self
        return replace(self, face_up=face_up)

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', '10h'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str, suit_str = s[:-1], s[-1]
        if rank_str not in _RANK_ALIASES:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in _SUIT_ALIASES:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(_RANK_ALIASES[rank_str], _SUIT_ALIASES[suit_str])


def cards_from_string(s: str) -> list[Card]:
    """Parse a space separated list of cards, e.g. ``"AS KH"``."""
    return [Card.from_string(part) for part in s.split()]


def build_deck() -> list[Card]:
    """Return one standard 52-card deck in suit/rank order."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


class Shoe:
    """
    A multi-deck shoe for blackjack.

    Cards are never removed from the backing list; a draw cursor
    (``cards_dealt``) marks the next card. The shoe never reshuffles on its
    own: callers check :attr:`needs_reshuffle` and call :meth:`reshuffle`.
    """

    def __init__(
        self,
        num_decks: int = 6,
        penetration: float = 0.75,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a shoe with multiple decks, in deck order.

        Args:
            num_decks: Number of decks in the shoe (typically 6 or 8)
            penetration: Fraction of shoe dealt before reshuffle (0.0-1.0]
            rng: Random number generator used by :meth:`reshuffle`
        """
        if num_decks < 1:
            raise InvalidConfigurationError("Shoe must have at least 1 deck")
        if not 0.0 < penetration <= 1.0:
            raise InvalidConfigurationError("Penetration must be between 0 and 1")

        self._num_decks = num_decks
        self._penetration = penetration
        self._rng = rng or Random()
        self._cards: list[Card] = [
            card for _ in range(num_decks) for card in build_deck()
        ]
        self._cut_card_position = int(len(self._cards) * penetration)
        self._cards_dealt = 0

    @classmethod
    def from_cards(
        cls,
        cards: Sequence[Card],
        num_decks: int,
        penetration: float = 0.75,
        cards_dealt: int = 0,
        rng: Random | None = None,
    ) -> "Shoe":
        """Rebuild a shoe in a known order, e.g. from a saved session."""
        shoe = cls(num_decks=num_decks, penetration=penetration, rng=rng)
        if sorted(cards, key=repr) != sorted(shoe._cards, key=repr):
            raise InvalidConfigurationError(
                f"Cards do not make up {num_decks} complete decks"
            )
        if not 0 <= cards_dealt <= len(cards):
            raise InvalidConfigurationError("cards_dealt is out of range")
        shoe._cards = [card.flipped(True) for card in cards]
        shoe._cards_dealt = cards_dealt
        return shoe

    def reshuffle(
        self,
        method: ShuffleMethod = ShuffleMethod.FISHER_YATES,
        seed: int | None = None,
    ) -> None:
        """Gather every card back into the shoe and shuffle it."""
        method = ShuffleMethod(method)
        rng = Random(seed) if seed is not None else self._rng
        self._cards = shuffle(self._cards, method, rng=rng)
        self._cards_dealt = 0
        logger.debug(
            "Shoe reshuffled: %d decks, method=%s, cut card at %d",
            self._num_decks,
            method.value,
            self._cut_card_position,
        )

    def draw(self, face_up: bool = True) -> Card:
        """Deal the next card from the shoe."""
        if self._cards_dealt >= len(self._cards):
            raise EmptyShoeError("Cannot draw from empty shoe")
        card = self._cards[self._cards_dealt]
        self._cards_dealt += 1
        return card.flipped(face_up)

    @property
    def needs_reshuffle(self) -> bool:
        """Check if the cut card has been reached."""
        return self._cards_dealt >= self._cut_card_position

    @property
    def cards_dealt(self) -> int:
        return self._cards_dealt

    @property
    def cards_remaining(self) -> int:
        return len(self._cards) - self._cards_dealt

    @property
    def total_cards(self) -> int:
        return len(self._cards)

    @property
    def cut_card_position(self) -> int:
        return self._cut_card_position

    @property
    def num_decks(self) -> int:
        return self._num_decks

    @property
    def penetration(self) -> float:
        return self._penetration

    @property
    def decks_remaining(self) -> float:
        """Return the estimated number of decks remaining."""
        return self.cards_remaining / 52

    def remaining_cards(self) -> list[Card]:
        """Return a copy of the undealt cards, next card first."""
        return self._cards[self._cards_dealt:]

    def remaining_composition(self) -> dict[int, int]:
        """Count undealt cards by hard point value (1-10)."""
        counts = Counter(card.value for card in self._cards[self._cards_dealt:])
        return {value: counts.get(value, 0) for value in range(1, 11)}

    def stack(self, cards: Sequence[Card]) -> None:
        """
        Move ``cards`` to the top of the undealt portion, in draw order.

        Cards are swapped into place, so the shoe keeps its composition.
        Used to set up known deals for tests and demonstrations.
        """
        for offset, wanted in enumerate(cards):
            position = self._cards_dealt + offset
            for index in range(position, len(self._cards)):
                if self._cards[index] == wanted:
                    break
            else:
                raise ValueError(f"{wanted!r} is not among the undealt cards")
            self._cards[position], self._cards[index] = (
                self._cards[index],
                self._cards[position],
            )

    def to_dict(self) -> dict[str, Any]:
        """Full shoe order and cursor, for saving a session."""
        return {
            "num_decks": self._num_decks,
            "penetration": self._penetration,
            "cards_dealt": self._cards_dealt,
            "cards": [str(card) for card in self._cards],
        }

    def __len__(self) -> int:
        return self.cards_remaining

    def __iter__(self) -> Iterator[Card]:
        return iter(self.remaining_cards())


def create_shoe(
    deck_count: int,
    penetration: float = 0.75,
    rng: Random | None = None,
) -> Shoe:
    """Build an unshuffled shoe of ``deck_count`` standard decks."""
    return Shoe(num_decks=deck_count, penetration=penetration, rng=rng)
