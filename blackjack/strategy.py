"""Basic strategy recommendations for the hand being played."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from blackjack.actions import Action
from blackjack.cards import Card
from blackjack.hand import Hand
from blackjack.rules import RuleSet


class Play(Enum):
    """Chart entries. The conditional ones fall back when the first choice is not allowed."""

    HIT = "H"
    STAND = "S"
    SPLIT = "P"
    DOUBLE_OR_HIT = "Dh"
    DOUBLE_OR_STAND = "Ds"
    SURRENDER_OR_HIT = "Rh"
    SURRENDER_OR_STAND = "Rs"
    SURRENDER_OR_SPLIT = "Rp"


_CHOICES: dict[Play, tuple[Action, ...]] = {
    Play.HIT: (Action.HIT,),
    Play.STAND: (Action.STAND,),
    Play.SPLIT: (Action.SPLIT,),
    Play.DOUBLE_OR_HIT: (Action.DOUBLE, Action.HIT),
    Play.DOUBLE_OR_STAND: (Action.DOUBLE, Action.STAND),
    Play.SURRENDER_OR_HIT: (Action.SURRENDER, Action.HIT),
    Play.SURRENDER_OR_STAND: (Action.SURRENDER, Action.STAND),
    Play.SURRENDER_OR_SPLIT: (Action.SURRENDER, Action.SPLIT),
}

_VERBS = {
    Action.HIT: "hit",
    Action.STAND: "stand",
    Action.DOUBLE: "double down",
    Action.SPLIT: "split",
    Action.SURRENDER: "surrender",
    Action.INSURANCE: "take insurance",
}

DEALER_CARDS = range(2, 12)  # 11 = Ace

Chart = Mapping[tuple[int, int], Play]


@dataclass(frozen=True)
class Advice:
    """
    A recommended decision.

    ``take`` answers yes/no offers (insurance, early surrender); for a
    regular decision it is always True.
    """

    action: Action
    explanation: str
    take: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "take": self.take,
            "explanation": self.explanation,
        }


def dealer_index(up_card: Card) -> int:
    """Chart column for an up card: 2-10, or 11 for an Ace."""
    return 11 if up_card.is_ace else up_card.value


class BasicStrategy:
    """
    Basic strategy charts for one rule set.

    Hard, soft and pair charts are built once per :class:`RuleSet`; H17,
    DAS and the surrender rule change a handful of cells.
    """

    def __init__(self, rules: RuleSet | None = None) -> None:
        self.rules = rules or RuleSet()
        self.hard_chart = self._build_hard_chart()
        self.soft_chart = self._build_soft_chart()
        self.pair_chart = self._build_pair_chart()

    def _build_hard_chart(self) -> Chart:
        H, S, Dh, Rh = Play.HIT, Play.STAND, Play.DOUBLE_OR_HIT, Play.SURRENDER_OR_HIT
        chart: dict[tuple[int, int], Play] = {}

        for dealer in DEALER_CARDS:
            for total in range(4, 9):
                chart[(total, dealer)] = H
            chart[(9, dealer)] = Dh if 3 <= dealer <= 6 else H
            chart[(10, dealer)] = Dh if dealer <= 9 else H
            chart[(11, dealer)] = Dh
            chart[(12, dealer)] = S if 4 <= dealer <= 6 else H
            for total in range(13, 17):
                chart[(total, dealer)] = S if dealer <= 6 else H
            for total in range(17, 22):
                chart[(total, dealer)] = S

        if self.rules.surrender != "none":
            chart[(15, 10)] = Rh
            chart[(16, 9)] = Rh
            chart[(16, 10)] = Rh
            chart[(16, 11)] = Rh
            if self.rules.dealer_hits_soft_17:
                chart[(15, 11)] = Rh
                chart[(17, 11)] = Play.SURRENDER_OR_STAND
        return chart

    def _build_soft_chart(self) -> Chart:
        H, S, Dh, Ds = Play.HIT, Play.STAND, Play.DOUBLE_OR_HIT, Play.DOUBLE_OR_STAND
        chart: dict[tuple[int, int], Play] = {}

        for dealer in DEALER_CARDS:
            chart[(12, dealer)] = H
            for total in (13, 14):
                chart[(total, dealer)] = Dh if dealer in (5, 6) else H
            for total in (15, 16):
                chart[(total, dealer)] = Dh if 4 <= dealer <= 6 else H
            chart[(17, dealer)] = Dh if 3 <= dealer <= 6 else H
            if dealer <= 6:
                chart[(18, dealer)] = Ds
            else:
                chart[(18, dealer)] = S if dealer <= 8 else H
            for total in (19, 20, 21):
                chart[(total, dealer)] = S

        if self.rules.dealer_hits_soft_17:
            chart[(19, 6)] = Ds
        return chart

    def _build_pair_chart(self) -> Chart:
        """Keyed by the pair's card value (Aces = 11). Only split cells are listed."""
        P = Play.SPLIT
        das = self.rules.double_after_split
        chart: dict[tuple[int, int], Play] = {}

        for dealer in DEALER_CARDS:
            for value in (2, 3):
                if 4 <= dealer <= 7 or (das and dealer <= 3):
                    chart[(value, dealer)] = P
            if das and dealer in (5, 6):
                chart[(4, dealer)] = P
            if 3 <= dealer <= 6 or (das and dealer == 2):
                chart[(6, dealer)] = P
            if dealer <= 7:
                chart[(7, dealer)] = P
            chart[(8, dealer)] = P
            if dealer not in (7, 10, 11):
                chart[(9, dealer)] = P
            chart[(11, dealer)] = P

        if self.rules.surrender != "none" and self.rules.dealer_hits_soft_17:
            chart[(8, 10)] = Play.SURRENDER_OR_SPLIT
            chart[(8, 11)] = Play.SURRENDER_OR_SPLIT
        return chart

    def chart_entry(self, hand: Hand, up_card: Card, can_split: bool = True) -> tuple[str, Play]:
        """
        The chart cell for a hand.

        Returns:
            A description of the hand ("hard 16", "soft 18", "pair of 8s")
            and the chart entry
        """
        dealer = dealer_index(up_card)
        if can_split and hand.is_pair:
            pair_value = 11 if hand.cards[0].is_ace else hand.cards[0].value
            play = self.pair_chart.get((pair_value, dealer))
            if play is not None:
                return f"pair of {hand.cards[0].rank}s", play

        total = hand.value
        if hand.is_soft:
            return f"soft {total}", self.soft_chart.get((total, dealer), Play.STAND)
        default = Play.STAND if total >= 17 else Play.HIT
        return f"hard {total}", self.hard_chart.get((total, dealer), default)

    def recommend(self, hand: Hand, up_card: Card, allowed: frozenset[Action]) -> Advice | None:
        """
        The basic strategy decision among ``allowed`` actions.

        Conditional chart entries fall back to their second choice; a choice
        that is still not allowed (a hit on split Aces) becomes a stand.
        Returns None when nothing is allowed.
        """
        playable = allowed - {Action.INSURANCE}
        if not playable:
            return None

        description, play = self.chart_entry(hand, up_card, Action.SPLIT in playable)
        choices = _CHOICES[play]
        action = next((choice for choice in choices if choice in playable), None)
        if action is None:
            action = Action.STAND if Action.STAND in playable else sorted(playable, key=str)[0]

        explanation = (
            f"With a {description} against a dealer {up_card.rank}, "
            f"basic strategy says {_VERBS[action]}."
        )
        if action != choices[0]:
            explanation += f" ({_VERBS[choices[0]].capitalize()} is not allowed here.)"
        return Advice(action=action, explanation=explanation)

    def early_surrender(self, hand: Hand, up_card: Card) -> Advice:
        """Whether to give the hand up before the dealer checks for blackjack."""
        description, play = self.chart_entry(hand, up_card)
        take = _CHOICES[play][0] == Action.SURRENDER
        verb = "surrender" if take else "play the hand out"
        return Advice(
            action=Action.SURRENDER,
            take=take,
            explanation=f"With a {description} against a dealer {up_card.rank}, {verb}.",
        )


def insurance_advice(true_count: float, threshold: float = 3.0) -> Advice:
    """Insurance pays only once the true count reaches ``threshold``."""
    take = true_count >= threshold
    if take:
        explanation = f"True count {true_count:+g} is at least {threshold:+g}: take insurance."
    else:
        explanation = (
            f"True count {true_count:+g} is below {threshold:+g}: basic strategy declines insurance."
        )
    return Advice(action=Action.INSURANCE, take=take, explanation=explanation)
