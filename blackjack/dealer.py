"""Dealer automatic play as a state machine."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Sequence

from transitions import Machine

from blackjack.cards import Card
from blackjack.hand import DealerHand, HandStatus, best_total, is_blackjack, is_busted, is_soft
from blackjack.rules import RuleSet

logger = logging.getLogger(__name__)


class DealerState(Enum):
    """
    Dealer states.

    Flow: HIDDEN_HOLE → REVEALING → HITTING* → STANDING | BUSTED
    """

    HIDDEN_HOLE = "hidden_hole"
    REVEALING = "revealing"
    HITTING = "hitting"
    STANDING = "standing"
    BUSTED = "busted"

    @property
    def is_terminal(self) -> bool:
        return self in (DealerState.STANDING, DealerState.BUSTED)


class CardSource(Protocol):
    def draw(self, face_up: bool = True) -> Card: ...


@dataclass(frozen=True)
class DealerMove:
    """One step of the dealer's play, as seen after the step."""

    step: int
    state: DealerState
    card: Card | None
    cards: tuple[Card, ...]
    value: int
    is_soft: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "state": self.state.value,
            "card": self.card.to_dict() if self.card else None,
            "cards": [card.to_dict() for card in self.cards],
            "value": self.value,
            "is_soft": self.is_soft,
        }


@dataclass(frozen=True)
class DealerPlay:
    """The finished dealer hand and every move that produced it."""

    hand: DealerHand
    moves: tuple[DealerMove, ...]

    @property
    def final_state(self) -> DealerState:
        return self.moves[-1].state

    @property
    def is_busted(self) -> bool:
        return self.final_state == DealerState.BUSTED


def should_hit(cards: Sequence[Card], rules: RuleSet) -> bool:
    """Hit below 17, and on soft 17 when the table says so."""
    value = best_total(cards)
    if value < 17:
        return True
    return value == 17 and is_soft(cards) and rules.dealer_hits_soft_17


class DealerAutomaton:
    """
    Plays the dealer's hand by the house rules.

    The automaton works on its own copy of the hand and records a
    :class:`DealerMove` on entering every state, so a caller can replay the
    reveal, each hit and the final stand or bust without repeating any
    dealer logic.
    """

    STATES = [s.value for s in DealerState]

    TRANSITIONS = [
        {"trigger": "reveal", "source": "hidden_hole", "dest": "revealing"},
        {"trigger": "hit", "source": ["revealing", "hitting"], "dest": "hitting"},
        {"trigger": "stand", "source": ["revealing", "hitting"], "dest": "standing"},
        {"trigger": "bust", "source": ["revealing", "hitting"], "dest": "busted"},
    ]

    def __init__(self, hand: DealerHand, rules: RuleSet) -> None:
        self.hand = hand.copy()
        self.rules = rules
        self.moves: list[DealerMove] = []

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="hidden_hole",
            auto_transitions=False,
            model_attribute="dealer_state",
        )

    @property
    def current_state(self) -> DealerState:
        return DealerState(self.dealer_state)  # type: ignore[attr-defined]

    def _record(self, card: Card | None = None) -> None:
        move = DealerMove(
            step=len(self.moves),
            state=self.current_state,
            card=card,
            cards=tuple(self.hand.cards),
            value=self.hand.value,
            is_soft=self.hand.is_soft,
        )
        self.moves.append(move)
        logger.debug("Dealer %s: %s (%d)", move.state.value, self.hand, move.value)

    def on_enter_revealing(self) -> None:
        self.hand.reveal()
        self._record()

    def on_enter_hitting(self, card: Card) -> None:
        self.hand.add_card(card)
        self._record(card)

    def on_enter_standing(self) -> None:
        self.hand.status = (
            HandStatus.BLACKJACK if is_blackjack(self.hand.cards) else HandStatus.STANDING
        )
        self._record()

    def on_enter_busted(self) -> None:
        self.hand.status = HandStatus.BUSTED
        self._record()

    def play(self, shoe: CardSource, draw: bool = True) -> DealerPlay:
        """
        Reveal the hole card and draw to a stopping total.

        Args:
            shoe: Where hit cards come from
            draw: False when no player hand is left to beat; the dealer then
                only turns the hole card over

        Returns:
            The finished hand and the ordered move log
        """
        self.reveal()

        while not self.current_state.is_terminal:
            if is_busted(self.hand.cards):
                self.bust()
            elif not draw or is_blackjack(self.hand.cards):
                self.stand()
            elif should_hit(self.hand.cards, self.rules):
                self.hit(shoe.draw(face_up=True))
            else:
                self.stand()

        return DealerPlay(hand=self.hand, moves=tuple(self.moves))


def play_dealer_hand(
    hand: DealerHand,
    shoe: CardSource,
    rules: RuleSet,
    draw: bool = True,
) -> DealerPlay:
    """Run the dealer automaton over a copy of ``hand``."""
    return DealerAutomaton(hand, rules).play(shoe, draw=draw)
