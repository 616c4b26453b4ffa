"""Round settlement: main hands, insurance and side bets."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping, Sequence

from blackjack.cards import Card
from blackjack.hand import Hand, HandResult, HandStatus, best_total, is_blackjack, is_busted
from blackjack.side_bets import SideBet, SideBetConfig, SideBetResult, settle_side_bet

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
INSURANCE_PAYOUT = Decimal("2")


@dataclass(frozen=True)
class HandSettlement:
    """Result and total return for one hand."""

    hand_id: str
    player_id: str
    result: HandResult
    bet: Decimal
    payout: Decimal

    @property
    def net(self) -> Decimal:
        return self.payout - self.bet

    def to_dict(self) -> dict[str, Any]:
        return {
            "hand_id": self.hand_id,
            "player_id": self.player_id,
            "result": self.result.value,
            "bet": str(self.bet),
            "payout": str(self.payout),
            "net": str(self.net),
        }


@dataclass(frozen=True)
class InsuranceSettlement:
    player_id: str
    amount: Decimal
    won: bool
    payout: Decimal

    @property
    def net(self) -> Decimal:
        return self.payout - self.amount

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "amount": str(self.amount),
            "won": self.won,
            "payout": str(self.payout),
            "net": str(self.net),
        }


@dataclass(frozen=True)
class RoundSettlement:
    """Everything paid out for one round."""

    hands: tuple[HandSettlement, ...]
    insurance: tuple[InsuranceSettlement, ...] = ()
    side_bets: tuple[SideBetResult, ...] = ()
    dealer_total: int = 0
    dealer_busted: bool = False
    dealer_blackjack: bool = False

    @property
    def total_wagered(self) -> Decimal:
        return (
            sum((s.bet for s in self.hands), ZERO)
            + sum((s.amount for s in self.insurance), ZERO)
            + sum((s.amount for s in self.side_bets), ZERO)
        )

    @property
    def total_payout(self) -> Decimal:
        return (
            sum((s.payout for s in self.hands), ZERO)
            + sum((s.payout for s in self.insurance), ZERO)
            + sum((s.payout for s in self.side_bets), ZERO)
        )

    @property
    def net(self) -> Decimal:
        return self.total_payout - self.total_wagered

    def payout_for(self, player_id: str) -> Decimal:
        """Total credited back to one player."""
        return (
            sum((s.payout for s in self.hands if s.player_id == player_id), ZERO)
            + sum((s.payout for s in self.insurance if s.player_id == player_id), ZERO)
            + sum((s.payout for s in self.side_bets if s.player_id == player_id), ZERO)
        )

    def hand(self, hand_id: str) -> HandSettlement | None:
        return next((s for s in self.hands if s.hand_id == hand_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hands": [s.to_dict() for s in self.hands],
            "insurance": [s.to_dict() for s in self.insurance],
            "side_bets": [s.to_dict() for s in self.side_bets],
            "dealer_total": self.dealer_total,
            "dealer_busted": self.dealer_busted,
            "dealer_blackjack": self.dealer_blackjack,
            "total_wagered": str(self.total_wagered),
            "total_payout": str(self.total_payout),
            "net": str(self.net),
        }


def resolve_hand(
    hand: Hand,
    dealer_cards: Sequence[Card],
    blackjack_ratio: Decimal = Decimal("1.5"),
) -> tuple[HandResult, Decimal]:
    """
    Decide a hand against the dealer's finished cards.

    Checks run in a fixed order: surrender, player bust, both blackjack,
    player blackjack, dealer blackjack, dealer bust, then totals.

    Args:
        hand: The player's hand, bet included
        dealer_cards: Every dealer card, hole card revealed
        blackjack_ratio: What a natural pays to one (1.5 for 3:2)

    Returns:
        The result and the total returned to the player (stake included)
    """
    bet = hand.bet
    dealer_blackjack = is_blackjack(dealer_cards)

    if hand.is_surrendered:
        return HandResult.SURRENDER, bet / 2
    if hand.is_busted:
        return HandResult.LOSS, ZERO
    if hand.is_blackjack and dealer_blackjack:
        return HandResult.PUSH, bet
    if hand.is_blackjack:
        return HandResult.BLACKJACK, bet * (1 + blackjack_ratio)
    if dealer_blackjack:
        return HandResult.LOSS, ZERO
    if is_busted(dealer_cards):
        return HandResult.WIN, bet * 2

    player_total = hand.value
    dealer_total = best_total(dealer_cards)
    if player_total > dealer_total:
        return HandResult.WIN, bet * 2
    if player_total < dealer_total:
        return HandResult.LOSS, ZERO
    return HandResult.PUSH, bet


def settle_hand(
    hand: Hand,
    dealer_cards: Sequence[Card],
    blackjack_ratio: Decimal = Decimal("1.5"),
) -> HandSettlement:
    """Resolve a hand and record its result on it."""
    result, payout = resolve_hand(hand, dealer_cards, blackjack_ratio)
    hand.result = result
    return HandSettlement(
        hand_id=hand.id,
        player_id=hand.player_id,
        result=result,
        bet=hand.bet,
        payout=payout,
    )


def settle_insurance(
    amount: Decimal,
    dealer_cards: Sequence[Card],
    player_id: str = "player",
) -> InsuranceSettlement:
    """Insurance pays 2:1 iff the dealer holds blackjack."""
    assert amount >= 0, "insurance stake cannot be negative"
    won = is_blackjack(dealer_cards)
    payout = amount * (1 + INSURANCE_PAYOUT) if won else ZERO
    return InsuranceSettlement(player_id=player_id, amount=amount, won=won, payout=payout)


def settle_round(
    hands: Iterable[Hand],
    dealer_cards: Sequence[Card],
    blackjack_ratio: Decimal = Decimal("1.5"),
    insurance: Mapping[str, Decimal] | None = None,
    side_bets: Iterable[SideBet] = (),
    initial_cards: Mapping[str, Sequence[Card]] | None = None,
    side_bet_configs: Mapping[Any, SideBetConfig] | None = None,
) -> RoundSettlement:
    """
    Settle every wager of a round in one pass.

    Args:
        hands: All player hands still holding a bet
        dealer_cards: The dealer's finished cards, up card first
        blackjack_ratio: Natural payout ratio
        insurance: Insurance stake per player id
        side_bets: Side wagers to resolve
        initial_cards: Each player's first two cards, keyed by player id;
            side bets are judged on these, not on later hits or splits
        side_bet_configs: Payout tables per side-bet type

    Returns:
        A :class:`RoundSettlement` with per-wager results and totals
    """
    hand_results = []
    for hand in hands:
        if hand.status == HandStatus.ACTIVE:
            hand.status = HandStatus.STANDING
        hand_results.append(settle_hand(hand, dealer_cards, blackjack_ratio))

    insurance_results = tuple(
        settle_insurance(amount, dealer_cards, player_id)
        for player_id, amount in (insurance or {}).items()
        if amount > 0
    )

    initial_cards = initial_cards or {}
    side_bet_configs = side_bet_configs or {}
    side_bet_results = tuple(
        settle_side_bet(
            bet,
            initial_cards.get(bet.player_id, ()),
            dealer_cards,
            side_bet_configs.get(bet.bet_type),
        )
        for bet in side_bets
    )

    settlement = RoundSettlement(
        hands=tuple(hand_results),
        insurance=insurance_results,
        side_bets=side_bet_results,
        dealer_total=best_total(dealer_cards),
        dealer_busted=is_busted(dealer_cards),
        dealer_blackjack=is_blackjack(dealer_cards),
    )
    logger.info(
        "Round settled: %d hands, wagered %s, paid %s",
        len(settlement.hands),
        settlement.total_wagered,
        settlement.total_payout,
    )
    return settlement
