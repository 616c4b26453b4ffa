"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Iterator
from uuid import uuid4

from blackjack.cards import Card


class HandStatus(Enum):
    """Lifecycle of a hand during the player turn."""

    ACTIVE = "active"
    STANDING = "standing"
    BUSTED = "busted"
    BLACKJACK = "blackjack"
    SURRENDERED = "surrendered"


class HandResult(Enum):
    """Outcome of a hand, assigned at settlement."""

    WIN = "win"
    LOSS = "loss"
    PUSH = "push"
    BLACKJACK = "blackjack"
    SURRENDER = "surrender"


def all_totals(cards: Iterable[Card]) -> frozenset[int]:
    """
    Every total the cards can make.

    Each Ace contributes both 1 and 11, so ``[A, A]`` gives ``{2, 12, 22}``.
    An empty hand totals 0.
    """
    totals = {0}
    for card in cards:
        totals = {total + value for total in totals for value in card.values}
    return frozenset(totals)


def best_total(cards: Iterable[Card]) -> int:
    """
    The highest total not over 21.

    When every total busts, the lowest one is returned so it can be shown.
    Use :func:`is_busted` for control flow, never this number.
    """
    totals = all_totals(cards)
    live = [total for total in totals if total <= 21]
    return max(live) if live else min(totals)


def is_busted(cards: Iterable[Card]) -> bool:
    """Every achievable total is over 21."""
    return min(all_totals(cards)) > 21


def is_blackjack(cards: Iterable[Card]) -> bool:
    """Exactly two cards that can make 21."""
    cards = list(cards)
    return len(cards) == 2 and 21 in all_totals(cards)


def is_soft(cards: Iterable[Card]) -> bool:
    """An Ace can still count as 11 without busting."""
    cards = list(cards)
    if not any(card.is_ace for card in cards):
        return False
    return len([total for total in all_totals(cards) if total <= 21]) > 1


def is_pair(cards: Iterable[Card]) -> bool:
    """Exactly two cards of the same rank."""
    cards = list(cards)
    return len(cards) == 2 and cards[0].rank == cards[1].rank


def _new_id() -> str:
    return uuid4().hex[:12]


@dataclass
class Hand:
    """A player hand with value calculation."""

    cards: list[Card] = field(default_factory=list)
    bet: Decimal = Decimal("0")
    player_id: str = "player"
    id: str = field(default_factory=_new_id)
    status: HandStatus = HandStatus.ACTIVE
    result: HandResult | None = None
    is_doubled: bool = False
    is_split_hand: bool = False
    split_from: str | None = None
    actions_taken: int = 0

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    @property
    def visible_cards(self) -> list[Card]:
        return self.cards

    @property
    def totals(self) -> frozenset[int]:
        return all_totals(self.visible_cards)

    @property
    def value(self) -> int:
        """Best total, or the lowest bust value for display."""
        return best_total(self.visible_cards)

    @property
    def is_soft(self) -> bool:
        return is_soft(self.visible_cards)

    @property
    def is_busted(self) -> bool:
        return is_busted(self.visible_cards)

    @property
    def is_blackjack(self) -> bool:
        """A natural: two-card 21 that did not come from a split."""
        return is_blackjack(self.visible_cards) and not self.is_split_hand

    @property
    def is_pair(self) -> bool:
        return is_pair(self.visible_cards)

    @property
    def is_active(self) -> bool:
        return self.status == HandStatus.ACTIVE

    @property
    def is_surrendered(self) -> bool:
        return self.status == HandStatus.SURRENDERED

    def copy(self) -> "Hand":
        """Copy with its own card list."""
        return Hand(
            cards=list(self.cards),
            bet=self.bet,
            player_id=self.player_id,
            id=self.id,
            status=self.status,
            result=self.result,
            is_doubled=self.is_doubled,
            is_split_hand=self.is_split_hand,
            split_from=self.split_from,
            actions_taken=self.actions_taken,
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view for snapshots."""
        return {
            "id": self.id,
            "player_id": self.player_id,
            "cards": [card.to_dict() for card in self.cards],
            "totals": sorted(self.totals),
            "value": self.value,
            "is_soft": self.is_soft,
            "is_blackjack": self.is_blackjack,
            "is_busted": self.is_busted,
            "bet": str(self.bet),
            "status": self.status.value,
            "result": self.result.value if self.result else None,
            "is_doubled": self.is_doubled,
            "is_split_hand": self.is_split_hand,
            "split_from": self.split_from,
        }

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"


@dataclass
class DealerHand(Hand):
    """
    The dealer's hand.

    While ``has_hidden_card`` is set the face-down hole card is left out of
    every value and of the plain-data view.
    """

    player_id: str = "dealer"
    has_hidden_card: bool = False

    @property
    def visible_cards(self) -> list[Card]:
        if not self.has_hidden_card:
            return self.cards
        return [card for card in self.cards if card.face_up]

    @property
    def up_card(self) -> Card | None:
        """The first face-up card, if any."""
        return next((card for card in self.cards if card.face_up), None)

    @property
    def holds_blackjack(self) -> bool:
        """Blackjack check over every card, hole card included (the peek)."""
        return is_blackjack(self.cards)

    @property
    def is_blackjack(self) -> bool:
        return is_blackjack(self.visible_cards)

    def reveal(self) -> None:
        """Turn the hole card face up."""
        self.cards = [card.flipped(True) for card in self.cards]
        self.has_hidden_card = False

    def copy(self) -> "DealerHand":
        return DealerHand(
            cards=list(self.cards),
            id=self.id,
            status=self.status,
            has_hidden_card=self.has_hidden_card,
        )
