"""Legal player actions for a hand."""

from enum import Enum

from blackjack.cards import Card
from blackjack.hand import Hand
from blackjack.rules import RuleSet


class Action(Enum):
    """Player decisions."""

    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"
    SURRENDER = "surrender"
    INSURANCE = "insurance"

    def __str__(self) -> str:
        return self.value


_DOUBLE_TOTALS = {
    "any": None,
    "9-11": (9, 10, 11),
    "10-11": (10, 11),
}


def can_double(hand: Hand, rules: RuleSet) -> bool:
    """Initial two cards, not already doubled, and within the double rules."""
    if len(hand.cards) != 2 or hand.is_doubled:
        return False
    if hand.is_split_hand and not rules.double_after_split:
        return False
    allowed_totals = _DOUBLE_TOTALS[rules.double_on]
    if allowed_totals is not None:
        return hand.value in allowed_totals
    return True


def can_split(hand: Hand, rules: RuleSet, hand_count: int = 1) -> bool:
    """An initial pair, under the split limit and the resplit-aces rule."""
    if not hand.is_pair:
        return False
    if hand_count >= rules.max_splits:
        return False
    if hand.cards[0].is_ace and hand.is_split_hand and not rules.resplit_aces:
        return False
    return True


def is_split_ace(hand: Hand, rules: RuleSet) -> bool:
    """A hand started from split Aces that may not draw further cards."""
    return (
        hand.is_split_hand
        and bool(hand.cards)
        and hand.cards[0].is_ace
        and not rules.hit_split_aces
    )


def can_surrender(
    hand: Hand,
    rules: RuleSet,
    is_first_hand: bool = True,
    actions_taken: int = 0,
) -> bool:
    """Only the very first decision on the round's first hand."""
    if rules.surrender == "none":
        return False
    return (
        is_first_hand
        and actions_taken == 0
        and len(hand.cards) == 2
        and not hand.is_split_hand
    )


def can_insure(
    dealer_up_card: Card | None,
    rules: RuleSet,
    insurance_offered: bool = False,
) -> bool:
    """Dealer shows an Ace and insurance has not been offered yet."""
    return (
        rules.insurance_allowed
        and dealer_up_card is not None
        and dealer_up_card.is_ace
        and not insurance_offered
    )


def legal_actions(
    hand: Hand,
    dealer_up_card: Card | None,
    rules: RuleSet,
    *,
    hand_count: int = 1,
    is_first_hand: bool = True,
    actions_taken: int | None = None,
    insurance_offered: bool = False,
) -> frozenset[Action]:
    """
    The set of actions a player may take on ``hand``.

    Pure function of the hand, the dealer's up-card, the rules and a little
    round context:

    Args:
        hand: The hand being played
        dealer_up_card: Dealer's face-up card
        rules: Table rules
        hand_count: How many hands the player holds this round (splits included)
        is_first_hand: Whether this is the first hand dealt in the round
        actions_taken: Decisions already made on the hand (defaults to the
            hand's own counter)
        insurance_offered: Whether insurance was already offered this round

    Returns:
        Frozen set of legal :class:`Action` values; empty when the hand is
        no longer active.
    """
    if not hand.is_active:
        return frozenset()

    if is_split_ace(hand, rules):
        if can_split(hand, rules, hand_count):
            return frozenset({Action.STAND, Action.SPLIT})
        return frozenset({Action.STAND})

    taken = hand.actions_taken if actions_taken is None else actions_taken
    actions = {Action.HIT, Action.STAND}

    if can_double(hand, rules):
        actions.add(Action.DOUBLE)
    if can_split(hand, rules, hand_count):
        actions.add(Action.SPLIT)
    if can_surrender(hand, rules, is_first_hand, taken):
        actions.add(Action.SURRENDER)
    if can_insure(dealer_up_card, rules, insurance_offered):
        actions.add(Action.INSURANCE)

    return frozenset(actions)
