"""Blackjack game session with a phase state machine."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from random import Random
from typing import Any, Iterable, Mapping, NoReturn

from transitions import Machine

from blackjack.actions import Action, can_insure, can_split, is_split_ace
from blackjack.actions import legal_actions as resolve_legal_actions
from blackjack.betting import Bet, BettingStrategyType, Outcome, bet_status_for, next_bet
from blackjack.cards import Card, Shoe
from blackjack.counting import CardCounter, CountingSystem
from blackjack.dealer import DealerMove, DealerState, play_dealer_hand
from blackjack.errors import (
    EmptyShoeError,
    IllegalActionError,
    InsufficientFundsError,
    InvalidBetError,
    InvalidConfigurationError,
)
from blackjack.game.events import EventEmitter, EventHandler, EventType
from blackjack.game.state import GamePhase
from blackjack.hand import DealerHand, Hand, HandResult, HandStatus
from blackjack.probability import dealer_outcome_distribution, player_bust_probability
from blackjack.rules import RuleSet
from blackjack.settlement import RoundSettlement, settle_round
from blackjack.shuffle import ShuffleMethod
from blackjack.side_bets import (
    DEFAULT_SIDE_BETS,
    SideBet,
    SideBetConfig,
    SideBetType,
    create_side_bet,
)
from blackjack.strategy import Advice, BasicStrategy, insurance_advice

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

_RESULT_EVENTS = {
    HandResult.WIN: EventType.PLAYER_WINS,
    HandResult.BLACKJACK: EventType.PLAYER_WINS,
    HandResult.LOSS: EventType.PLAYER_LOSES,
    HandResult.SURRENDER: EventType.PLAYER_LOSES,
    HandResult.PUSH: EventType.PUSH,
}

_DEALER_EVENTS = {
    DealerState.REVEALING: EventType.DEALER_REVEALS,
    DealerState.HITTING: EventType.DEALER_HITS,
    DealerState.STANDING: EventType.DEALER_STANDS,
    DealerState.BUSTED: EventType.DEALER_BUSTS,
}


def _money(amount: Decimal | int | float | str) -> Decimal:
    return amount if isinstance(amount, Decimal) else Decimal(str(amount))


@dataclass
class Player:
    """A seat at the table and everything it has at stake this round."""

    id: str
    bankroll: Decimal
    hands: list[Hand] = field(default_factory=list)
    bets: list[Bet] = field(default_factory=list)
    side_bets: list[SideBet] = field(default_factory=list)
    insurance_bet: Decimal = ZERO
    insurance_decided: bool = False
    surrender_decided: bool = False
    initial_cards: tuple[Card, ...] = ()
    last_bet: Decimal = ZERO
    history: list[Outcome] = field(default_factory=list)

    @property
    def has_bet(self) -> bool:
        return bool(self.hands)

    def bet_for(self, hand_id: str) -> Bet | None:
        return next((bet for bet in self.bets if bet.hand_id == hand_id), None)

    def reset_round(self) -> None:
        """Drop this round's hands and wagers; bankroll and history stay."""
        self.hands = []
        self.bets = []
        self.side_bets = []
        self.insurance_bet = ZERO
        self.insurance_decided = False
        self.surrender_decided = False
        self.initial_cards = ()

    @property
    def stake(self) -> Decimal:
        """Everything wagered this round: main bets, side bets and insurance."""
        return (
            sum((bet.amount for bet in self.bets), ZERO)
            + sum((wager.amount for wager in self.side_bets), ZERO)
            + self.insurance_bet
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "bankroll": str(self.bankroll),
            "hands": [hand.to_dict() for hand in self.hands],
            "insurance_bet": str(self.insurance_bet),
            "side_bets": [bet.to_dict() for bet in self.side_bets],
        }


class BlackjackGame:
    """
    One blackjack table session.

    The game owns the shoe, the dealer hand and every seated player, and is
    driven by a state machine over :class:`GamePhase`. It is UI-agnostic:
    hosts call the action methods, read :meth:`snapshot`, and may subscribe
    to events. Every rejected action raises before any state changes.
    """

    STATES = [phase.value for phase in GamePhase]

    TRANSITIONS = [
        {"trigger": "begin_dealing", "source": "betting", "dest": "dealing"},
        {"trigger": "open_early_surrender", "source": "dealing", "dest": "early_surrender"},
        {
            "trigger": "open_insurance",
            "source": ["dealing", "early_surrender"],
            "dest": "insurance",
        },
        {
            "trigger": "begin_player_turn",
            "source": ["dealing", "early_surrender", "insurance"],
            "dest": "player_turn",
        },
        {
            "trigger": "begin_dealer_turn",
            "source": ["dealing", "early_surrender", "insurance", "player_turn"],
            "dest": "dealer_turn",
        },
        {"trigger": "begin_settlement", "source": "dealer_turn", "dest": "settlement"},
        {"trigger": "begin_cleanup", "source": "settlement", "dest": "cleanup"},
        {"trigger": "finish_round", "source": "cleanup", "dest": "betting"},
        {
            "trigger": "abort_round",
            "source": ["dealing", "early_surrender", "insurance", "player_turn", "dealer_turn"],
            "dest": "betting",
        },
    ]

    def __init__(
        self,
        rules: RuleSet | None = None,
        rng: Random | None = None,
        seed: int | None = None,
        shuffle_method: ShuffleMethod | str = ShuffleMethod.FISHER_YATES,
        starting_bankroll: Decimal | int = Decimal("1000"),
        reshuffle_between_rounds: bool = True,
        side_bet_configs: Mapping[SideBetType, SideBetConfig] | None = None,
        player_id: str | None = "player",
        counting_system: CountingSystem | str = "hi-lo",
    ) -> None:
        """
        Initialize a new table session.

        Args:
            rules: Table rules (defaults to :class:`RuleSet` defaults)
            rng: Random number generator for reproducible games
            seed: Seed for a fresh generator when ``rng`` is not given
            shuffle_method: How the shoe is shuffled
            starting_bankroll: Bankroll for players added without one
            reshuffle_between_rounds: Reshuffle at cleanup once the cut card
                is reached
            side_bet_configs: Side-bet limits and payout tables
            player_id: Seat a default player under this id (None for an
                empty table)
            counting_system: Card counting system kept over the shoe
        """
        self.rules = rules or RuleSet()
        self.rng = rng or Random(seed)
        self.shuffle_method = ShuffleMethod(shuffle_method)
        self.starting_bankroll = _money(starting_bankroll)
        self.reshuffle_between_rounds = reshuffle_between_rounds
        self.side_bet_configs = dict(side_bet_configs or DEFAULT_SIDE_BETS)
        self.events = EventEmitter()
        self.counter = CardCounter(counting_system, self.rules.num_decks)
        self.strategy = BasicStrategy(self.rules)

        self.shoe = Shoe(
            num_decks=self.rules.num_decks,
            penetration=self.rules.penetration,
            rng=self.rng,
        )
        self.players: list[Player] = []
        self.dealer_hand = DealerHand()
        self.round_number = 0
        self.round_history: list[RoundSettlement] = []
        self.last_settled_round = 0

        self._active: tuple[int, int] | None = None
        self._dealer_moves: tuple[DealerMove, ...] = ()
        self._last_settlement: RoundSettlement | None = None
        self._last_round: dict[str, Any] | None = None

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=GamePhase.BETTING.value,
            auto_transitions=False,
            model_attribute="_phase",
            after_state_change="_on_phase_change",
        )

        self._reshuffle()
        if player_id is not None:
            self.add_player(player_id)

    # -- state -----------------------------------------------------------

    @property
    def phase(self) -> GamePhase:
        return GamePhase(self._phase)  # type: ignore[attr-defined]

    @property
    def active_hand(self) -> Hand | None:
        """The one hand awaiting a decision, or None."""
        if self._active is None:
            return None
        player_index, hand_index = self._active
        return self.players[player_index].hands[hand_index]

    @property
    def active_player(self) -> Player | None:
        if self._active is None:
            return None
        return self.players[self._active[0]]

    @property
    def dealer_moves(self) -> tuple[DealerMove, ...]:
        """The dealer's moves in the latest dealer turn."""
        return self._dealer_moves

    @property
    def last_settlement(self) -> RoundSettlement | None:
        return self._last_settlement

    def get_player(self, player_id: str) -> Player:
        for player in self.players:
            if player.id == player_id:
                return player
        raise InvalidConfigurationError(f"Unknown player: {player_id}")

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    def _on_phase_change(self) -> None:
        logger.debug("Round %d: phase -> %s", self.round_number, self._phase)  # type: ignore[attr-defined]
        self.events.emit_new(
            EventType.PHASE_CHANGED,
            phase=self.phase.value,
            round=self.round_number,
        )

    def _reject(self, action: str, reason: str) -> NoReturn:
        self.events.emit_new(
            EventType.INVALID_ACTION,
            action=action,
            reason=reason,
            phase=self.phase.value,
        )
        raise IllegalActionError(action, reason)

    def _require_phase(self, action: str, *phases: GamePhase) -> None:
        if self.phase not in phases:
            self._reject(action, f"not allowed during {self.phase.value}")

    def _require_cards(self, count: int) -> None:
        if self.shoe.cards_remaining < count:
            raise EmptyShoeError(
                f"Need {count} cards, shoe has {self.shoe.cards_remaining}"
            )

    def _require_funds(self, player: Player, amount: Decimal) -> None:
        if amount > player.bankroll:
            self.events.emit_new(
                EventType.INSUFFICIENT_FUNDS,
                player_id=player.id,
                required=str(amount),
                available=str(player.bankroll),
            )
            raise InsufficientFundsError(amount, player.bankroll)

    def _seated(self) -> list[Player]:
        return [player for player in self.players if player.has_bet]

    # -- table setup -----------------------------------------------------

    def add_player(self, player_id: str, bankroll: Decimal | int | None = None) -> Player:
        """Seat a player between rounds."""
        self._require_phase("add player", GamePhase.BETTING)
        if any(player.id == player_id for player in self.players):
            raise InvalidConfigurationError(f"Player {player_id} is already seated")
        if len(self.players) >= self.rules.max_players:
            raise InvalidConfigurationError("Table is full")

        amount = self.starting_bankroll if bankroll is None else _money(bankroll)
        if amount < 0:
            raise InvalidConfigurationError("Bankroll cannot be negative")

        player = Player(id=player_id, bankroll=amount)
        self.players.append(player)
        self.events.emit_new(EventType.PLAYER_JOINED, player_id=player_id, bankroll=str(amount))
        return player

    def reshuffle(self, method: ShuffleMethod | str | None = None, seed: int | None = None) -> None:
        """Reshuffle the whole shoe. Only allowed before any bet of a round."""
        self._require_phase("reshuffle", GamePhase.BETTING)
        if self._seated():
            self._reject("reshuffle", "bets are already on the table")
        self._reshuffle(method, seed)

    def _reshuffle(self, method: ShuffleMethod | str | None = None, seed: int | None = None) -> None:
        method = ShuffleMethod(method or self.shuffle_method)
        self.shoe.reshuffle(method, seed)
        self.counter.reset(self.rules.num_decks)
        self.events.emit_new(
            EventType.SHOE_SHUFFLED,
            method=method.value,
            cards=self.shoe.total_cards,
        )

    # -- betting and dealing ---------------------------------------------

    def _build_side_bet(
        self,
        wager: SideBet | Mapping[str, Any],
        player_id: str,
    ) -> SideBet:
        if isinstance(wager, SideBet):
            bet_type, amount, selection = wager.bet_type, wager.amount, wager.selection
        else:
            bet_type = wager.get("type") or wager.get("bet_type")
            amount, selection = wager.get("amount"), wager.get("selection")

        if amount is None:
            raise InvalidBetError("Side bet needs an amount")
        side_bet = create_side_bet(bet_type, amount, player_id, selection, self.side_bet_configs)
        if side_bet.bet_type == SideBetType.INSURANCE:
            raise InvalidBetError("Insurance is offered after the deal")
        return side_bet

    def place_bet(
        self,
        amount: Decimal | int | str,
        player_id: str = "player",
        side_bets: Iterable[SideBet | Mapping[str, Any]] = (),
    ) -> Hand:
        """
        Place a main bet, plus optional side bets, for the next round.

        The whole stake is taken from the bankroll now and credited back at
        settlement.

        Args:
            amount: Main wager, within the table limits
            player_id: Seated player placing the bet
            side_bets: Side wagers, as :class:`SideBet` objects or mappings
                with ``type``, ``amount`` and optional ``selection``

        Returns:
            The player's new (not yet dealt) hand
        """
        self._require_phase("bet", GamePhase.BETTING)
        player = self.get_player(player_id)
        if player.has_bet:
            self._reject("bet", "a bet is already placed this round")

        amount = _money(amount)
        if amount < self.rules.min_bet or amount > self.rules.max_bet:
            self.events.emit_new(
                EventType.INVALID_ACTION,
                action="bet",
                reason="outside table limits",
                phase=self.phase.value,
            )
            raise InvalidBetError(
                f"Bet must be between {self.rules.min_bet} and {self.rules.max_bet}"
            )

        wagers = [self._build_side_bet(wager, player.id) for wager in side_bets]
        if len({wager.bet_type for wager in wagers}) != len(wagers):
            raise InvalidBetError("Only one side bet of each type per round")

        total = amount + sum((wager.amount for wager in wagers), ZERO)
        self._require_funds(player, total)

        player.bankroll -= total
        hand = Hand(bet=amount, player_id=player.id)
        player.hands.append(hand)
        player.bets.append(Bet(amount=amount, hand_id=hand.id, player_id=player.id))
        player.side_bets = wagers
        player.last_bet = amount

        self.events.emit_new(
            EventType.BET_PLACED,
            player_id=player.id,
            hand_id=hand.id,
            amount=str(amount),
        )
        for wager in wagers:
            self.events.emit_new(
                EventType.SIDE_BET_PLACED,
                player_id=player.id,
                type=wager.bet_type.value,
                amount=str(wager.amount),
            )
        return hand

    def deal(self) -> None:
        """Deal player, dealer, player, dealer (hole card face down)."""
        self._require_phase("deal", GamePhase.BETTING)
        seated = self._seated()
        if not seated:
            self._reject("deal", "no bets have been placed")
        self._require_cards(2 * (len(seated) + 1))

        self.round_number += 1
        self._dealer_moves = ()
        self.dealer_hand = DealerHand(has_hidden_card=True)
        self.begin_dealing()
        self.events.emit_new(EventType.ROUND_STARTED, round=self.round_number)

        for face_up in (True, False):
            for player in seated:
                self._deal_to(player.hands[0])
            self._deal_to(self.dealer_hand, face_up=face_up)

        for player in seated:
            player.initial_cards = tuple(player.hands[0].cards)

        if self.rules.surrender == "early" and self._dealer_may_hold_blackjack():
            self.open_early_surrender()
            for player in seated:
                self.events.emit_new(EventType.SURRENDER_OFFERED, player_id=player.id)
            return

        self._offer_insurance()

    def bet(
        self,
        amount: Decimal | int | str,
        side_bets: Iterable[SideBet | Mapping[str, Any]] = (),
        player_id: str = "player",
    ) -> Hand:
        """Place a bet and deal straight away (single-player shortcut)."""
        self._require_phase("bet", GamePhase.BETTING)
        self._require_cards(2 * (len(self._seated()) + 2))
        hand = self.place_bet(amount, player_id, side_bets)
        self.deal()
        return hand

    def _deal_to(self, hand: Hand, face_up: bool = True) -> Card:
        card = self.shoe.draw(face_up=face_up)
        hand.add_card(card)
        self.counter.count_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            hand_id=hand.id,
            player_id=hand.player_id,
            card=card.to_dict(),
        )
        return card

    # -- early surrender -------------------------------------------------

    def _dealer_may_hold_blackjack(self) -> bool:
        up_card = self.dealer_hand.up_card
        return up_card is not None and (up_card.is_ace or up_card.is_ten_value)

    def take_early_surrender(self, player_id: str = "player") -> Hand:
        """
        Give up the hand for half the stake before the dealer checks for
        blackjack. Only offered under early-surrender rules against an Ace or
        ten-value up card.
        """
        player = self._pending_early_surrender(player_id)
        hand = player.hands[0]
        hand.status = HandStatus.SURRENDERED
        hand.actions_taken += 1
        player.surrender_decided = True
        self.events.emit_new(EventType.PLAYER_SURRENDER, player_id=player.id, hand_id=hand.id)
        self._close_early_surrender()
        return hand

    def decline_surrender(self, player_id: str = "player") -> None:
        player = self._pending_early_surrender(player_id)
        player.surrender_decided = True
        self.events.emit_new(EventType.SURRENDER_DECLINED, player_id=player.id)
        self._close_early_surrender()

    def _pending_early_surrender(self, player_id: str) -> Player:
        self._require_phase("surrender", GamePhase.EARLY_SURRENDER)
        player = self.get_player(player_id)
        if not player.has_bet or player.surrender_decided:
            self._reject("surrender", f"no surrender decision pending for {player_id}")
        return player

    def _close_early_surrender(self) -> None:
        if all(player.surrender_decided for player in self._seated()):
            self._offer_insurance()

    # -- insurance and peek ----------------------------------------------

    def _offer_insurance(self) -> None:
        """Open insurance when the dealer shows an Ace, else go on to the peek."""
        if not can_insure(self.dealer_hand.up_card, self.rules):
            self._peek_or_play()
            return

        self.open_insurance()
        for player in self._seated():
            if player.hands[0].is_surrendered:
                player.insurance_decided = True
                continue
            self.events.emit_new(
                EventType.INSURANCE_OFFERED,
                player_id=player.id,
                max_amount=str(player.hands[0].bet / 2),
            )
        self._close_insurance()

    def take_insurance(
        self,
        player_id: str = "player",
        amount: Decimal | int | str | None = None,
    ) -> Decimal:
        """
        Insure against a dealer blackjack.

        Args:
            player_id: Player taking insurance
            amount: Stake, up to half the main bet (defaults to half)

        Returns:
            The insurance stake taken
        """
        player = self._pending_insurance(player_id)
        max_amount = player.hands[0].bet / 2
        stake = max_amount if amount is None else _money(amount)
        if stake <= 0 or stake > max_amount:
            self.events.emit_new(
                EventType.INVALID_ACTION,
                action="insurance",
                reason="outside insurance limits",
                phase=self.phase.value,
            )
            raise InvalidBetError(f"Insurance must be more than 0 and at most {max_amount}")
        self._require_funds(player, stake)

        player.bankroll -= stake
        player.insurance_bet = stake
        player.insurance_decided = True
        self.events.emit_new(EventType.INSURANCE_TAKEN, player_id=player.id, amount=str(stake))
        self._close_insurance()
        return stake

    def decline_insurance(self, player_id: str = "player") -> None:
        player = self._pending_insurance(player_id)
        player.insurance_decided = True
        self.events.emit_new(EventType.INSURANCE_DECLINED, player_id=player.id)
        self._close_insurance()

    def _pending_insurance(self, player_id: str) -> Player:
        self._require_phase("insurance", GamePhase.INSURANCE)
        player = self.get_player(player_id)
        if not player.has_bet or player.insurance_decided:
            self._reject("insurance", f"no insurance decision pending for {player_id}")
        return player

    def _close_insurance(self) -> None:
        if all(player.insurance_decided for player in self._seated()):
            self._peek_or_play()

    def _peek_or_play(self) -> None:
        if self.rules.dealer_peeks and self._dealer_may_hold_blackjack():
            self._peek()
        else:
            self._start_player_turn()

    def _peek(self) -> None:
        """Check the hole card; a dealer blackjack ends the round at once."""
        has_blackjack = self.dealer_hand.holds_blackjack
        self.events.emit_new(EventType.DEALER_PEEKS, blackjack=has_blackjack)
        if not has_blackjack:
            self._start_player_turn()
            return

        self.events.emit_new(EventType.DEALER_BLACKJACK)
        self._mark_naturals()
        self._finish_player_turn()

    # -- player turn -----------------------------------------------------

    def _mark_naturals(self) -> None:
        for player in self._seated():
            hand = player.hands[0]
            if hand.is_active and hand.is_blackjack:
                hand.status = HandStatus.BLACKJACK
                self.events.emit_new(EventType.PLAYER_BLACKJACK, player_id=player.id, hand_id=hand.id)

    def _start_player_turn(self) -> None:
        self.begin_player_turn()
        self._mark_naturals()
        self._advance()

    def _advance(self) -> None:
        """Point at the first hand still awaiting a decision, or end the turn."""
        for player_index, player in enumerate(self.players):
            for hand_index, hand in enumerate(player.hands):
                if hand.is_active and hand.value == 21:
                    hand.status = HandStatus.STANDING
                if hand.is_active:
                    self._active = (player_index, hand_index)
                    return

        self._active = None
        self._finish_player_turn()

    def _rule_actions(self, player: Player, hand: Hand) -> frozenset[Action]:
        return resolve_legal_actions(
            hand,
            self.dealer_hand.up_card,
            self.rules,
            hand_count=len(player.hands),
            is_first_hand=hand is player.hands[0],
            insurance_offered=True,
        )

    def legal_actions(self, hand_id: str | None = None) -> frozenset[Action]:
        """
        Actions available right now.

        During the insurance phase this is ``{INSURANCE}`` for a player who
        has not decided yet, and likewise ``{SURRENDER}`` in the early
        surrender window. During the player turn it is the active hand's
        options, less double and split when the bankroll cannot cover them.
        Any other hand or phase gets an empty set.
        """
        offers = {
            GamePhase.EARLY_SURRENDER: (Action.SURRENDER, "surrender_decided"),
            GamePhase.INSURANCE: (Action.INSURANCE, "insurance_decided"),
        }
        if self.phase in offers:
            action, decided = offers[self.phase]
            pending = [p for p in self._seated() if not getattr(p, decided)]
            if hand_id is not None:
                pending = [p for p in pending if any(h.id == hand_id for h in p.hands)]
            return frozenset({action}) if pending else frozenset()

        hand = self.active_hand
        player = self.active_player
        if self.phase != GamePhase.PLAYER_TURN or hand is None or player is None:
            return frozenset()
        if hand_id is not None and hand_id != hand.id:
            return frozenset()

        actions = set(self._rule_actions(player, hand))
        if hand.bet > player.bankroll:
            actions -= {Action.DOUBLE, Action.SPLIT}
        return frozenset(actions)

    def _require_hand(self, action: Action, hand_id: str | None) -> tuple[Player, Hand]:
        self._require_phase(action.value, GamePhase.PLAYER_TURN)
        player, hand = self.active_player, self.active_hand
        assert player is not None and hand is not None, "player turn without an active hand"
        if hand_id is not None and hand_id != hand.id:
            self._reject(action.value, f"hand {hand_id} is not the active hand")
        if action not in self._rule_actions(player, hand):
            self._reject(action.value, "not allowed for this hand")
        return player, hand

    def hit(self, hand_id: str | None = None) -> Hand:
        """Take another card."""
        player, hand = self._require_hand(Action.HIT, hand_id)
        self._require_cards(1)

        self._deal_to(hand)
        hand.actions_taken += 1
        self.events.emit_new(EventType.PLAYER_HIT, hand_id=hand.id, value=hand.value)
        if hand.is_busted:
            hand.status = HandStatus.BUSTED
            self.events.emit_new(EventType.PLAYER_BUSTS, player_id=player.id, hand_id=hand.id)

        self._advance()
        return hand

    def stand(self, hand_id: str | None = None) -> Hand:
        player, hand = self._require_hand(Action.STAND, hand_id)
        hand.status = HandStatus.STANDING
        hand.actions_taken += 1
        self.events.emit_new(EventType.PLAYER_STAND, hand_id=hand.id, value=hand.value)
        self._advance()
        return hand

    def double_down(self, hand_id: str | None = None) -> Hand:
        """Double the stake, take exactly one card, and stand."""
        player, hand = self._require_hand(Action.DOUBLE, hand_id)
        self._require_funds(player, hand.bet)
        self._require_cards(1)

        player.bankroll -= hand.bet
        bet = player.bet_for(hand.id)
        if bet is not None:
            bet.amount += hand.bet
        hand.bet *= 2
        hand.is_doubled = True
        hand.actions_taken += 1

        self._deal_to(hand)
        hand.status = HandStatus.BUSTED if hand.is_busted else HandStatus.STANDING
        self.events.emit_new(
            EventType.PLAYER_DOUBLE,
            hand_id=hand.id,
            value=hand.value,
            bet=str(hand.bet),
        )
        if hand.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, player_id=player.id, hand_id=hand.id)

        self._advance()
        return hand

    def split(self, hand_id: str | None = None) -> Hand:
        """
        Split a pair into two hands, each with its own equal stake.

        Returns:
            The new hand holding the second card
        """
        player, hand = self._require_hand(Action.SPLIT, hand_id)
        self._require_funds(player, hand.bet)
        self._require_cards(2)

        player.bankroll -= hand.bet
        new_hand = Hand(
            cards=[hand.cards.pop()],
            bet=hand.bet,
            player_id=player.id,
            is_split_hand=True,
            split_from=hand.id,
        )
        hand.is_split_hand = True
        hand.actions_taken += 1
        player.hands.insert(player.hands.index(hand) + 1, new_hand)
        player.bets.append(Bet(amount=new_hand.bet, hand_id=new_hand.id, player_id=player.id))

        self._deal_to(hand)
        self._deal_to(new_hand)
        self.events.emit_new(
            EventType.PLAYER_SPLIT,
            hand_id=hand.id,
            new_hand_id=new_hand.id,
            values=[hand.value, new_hand.value],
        )

        # Split Aces get one card each; a new pair of Aces may be split again.
        for split_hand in (hand, new_hand):
            if is_split_ace(split_hand, self.rules) and not can_split(
                split_hand, self.rules, len(player.hands)
            ):
                split_hand.status = HandStatus.STANDING

        self._advance()
        return new_hand

    def surrender(self, hand_id: str | None = None) -> Hand:
        """Give up the hand for half the stake back."""
        if self.phase == GamePhase.EARLY_SURRENDER:
            if hand_id is None:
                owners = [p for p in self._seated() if not p.surrender_decided]
            else:
                owners = [p for p in self._seated() if any(h.id == hand_id for h in p.hands)]
            if not owners:
                self._reject("surrender", "no surrender decision pending")
            return self.take_early_surrender(owners[0].id)

        player, hand = self._require_hand(Action.SURRENDER, hand_id)
        hand.status = HandStatus.SURRENDERED
        hand.actions_taken += 1
        self.events.emit_new(EventType.PLAYER_SURRENDER, player_id=player.id, hand_id=hand.id)
        self._advance()
        return hand

    # -- dealer turn, settlement, cleanup ---------------------------------

    def _finish_player_turn(self) -> None:
        self._active = None
        self.begin_dealer_turn()

        hands = [hand for player in self._seated() for hand in player.hands]
        must_draw = any(hand.status == HandStatus.STANDING for hand in hands)
        try:
            play = play_dealer_hand(self.dealer_hand, self.shoe, self.rules, draw=must_draw)
        except EmptyShoeError:
            logger.warning("Shoe ran out during the dealer turn of round %d", self.round_number)
            self.void_round()
            raise
        self.dealer_hand = play.hand
        self._dealer_moves = play.moves

        for move in play.moves:
            if move.state == DealerState.REVEALING:
                self.counter.count_card(play.hand.cards[1])
            elif move.card is not None:
                self.counter.count_card(move.card)
            self.events.emit_new(
                _DEALER_EVENTS[move.state],
                card=move.card.to_dict() if move.card else None,
                value=move.value,
            )

        self._settle()

    def _settle(self) -> None:
        self.begin_settlement()
        seated = self._seated()

        settlement = settle_round(
            [hand for player in seated for hand in player.hands],
            self.dealer_hand.cards,
            self.rules.blackjack_ratio,
            insurance={p.id: p.insurance_bet for p in seated if p.insurance_bet > 0},
            side_bets=[bet for p in seated for bet in p.side_bets],
            initial_cards={p.id: p.initial_cards for p in seated},
            side_bet_configs=self.side_bet_configs,
        )

        for player in seated:
            main_net = ZERO
            for bet in player.bets:
                result = settlement.hand(bet.hand_id)
                if result is None:
                    continue
                bet.settle(bet_status_for(result.result), result.payout)
                main_net += result.net
                self.events.emit_new(
                    EventType.BET_RESOLVED,
                    player_id=player.id,
                    hand_id=bet.hand_id,
                    status=bet.status.value,
                    payout=str(bet.payout),
                )
                self.events.emit_new(
                    _RESULT_EVENTS[result.result],
                    player_id=player.id,
                    hand_id=result.hand_id,
                    result=result.result.value,
                    net=str(result.net),
                )

            player.bankroll += settlement.payout_for(player.id)
            if main_net > 0:
                player.history.append(Outcome.WIN)
            elif main_net < 0:
                player.history.append(Outcome.LOSS)
            else:
                player.history.append(Outcome.PUSH)

        for insurance in settlement.insurance:
            self.events.emit_new(
                EventType.INSURANCE_WINS if insurance.won else EventType.INSURANCE_LOSES,
                player_id=insurance.player_id,
                payout=str(insurance.payout),
            )
        for side_bet in settlement.side_bets:
            self.events.emit_new(
                EventType.SIDE_BET_RESOLVED,
                player_id=side_bet.player_id,
                type=side_bet.bet_type.value,
                combination=side_bet.combination,
                payout=str(side_bet.payout),
            )

        self._last_settlement = settlement
        self.last_settled_round = self.round_number
        self.round_history.append(settlement)
        self._last_round = {
            "round": self.round_number,
            "dealer": self.dealer_hand.to_dict(),
            "players": [player.to_dict() for player in seated],
            "settlement": settlement.to_dict(),
        }
        self.events.emit_new(
            EventType.ROUND_ENDED,
            round=self.round_number,
            net=str(settlement.net),
        )
        logger.info(
            "Round %d settled: dealer %d, net %s",
            self.round_number,
            settlement.dealer_total,
            settlement.net,
        )

        self._cleanup()

    def _cleanup(self) -> None:
        self.begin_cleanup()
        for player in self.players:
            player.reset_round()
        self._active = None
        self.dealer_hand = DealerHand()

        if self.reshuffle_between_rounds and self.shoe.needs_reshuffle:
            self._reshuffle()

        self.finish_round()

    def void_round(self) -> None:
        """
        Call off the round in progress.

        Every stake on the table (main bets with any doubles and splits, side
        bets and insurance) goes back to its player, the hands are cleared
        and the table returns to betting, so a reshuffle is possible again.
        Nothing is recorded in the round history.
        """
        if self.phase in (GamePhase.BETTING, GamePhase.SETTLEMENT, GamePhase.CLEANUP):
            self._reject("void round", f"no round to void during {self.phase.value}")

        refunds = {}
        for player in self._seated():
            refunds[player.id] = str(player.stake)
            player.bankroll += player.stake
        for player in self.players:
            player.reset_round()
        self._active = None
        self._dealer_moves = ()
        self.dealer_hand = DealerHand()

        self.abort_round()
        self.events.emit_new(EventType.ROUND_VOIDED, round=self.round_number, refunds=refunds)
        logger.warning("Round %d voided, stakes refunded", self.round_number)

    # -- advice and views ------------------------------------------------

    def suggest_next_bet(
        self,
        strategy: BettingStrategyType | str = BettingStrategyType.FLAT,
        player_id: str = "player",
        base_unit: Decimal | int | None = None,
    ) -> Decimal:
        """Next wager for a player under a progression, from their round history."""
        player = self.get_player(player_id)
        return next_bet(
            strategy,
            player.history,
            player.last_bet,
            base_unit if base_unit is not None else self.rules.min_bet,
            self.rules.min_bet,
            self.rules.max_bet,
            player.bankroll,
        )

    def advice(self) -> Advice | None:
        """
        Basic strategy for the decision the table is waiting on.

        Insurance advice follows the true count; the early-surrender window
        and the player turn follow the strategy charts for the table rules.
        """
        up_card = self.dealer_hand.up_card
        if up_card is None:
            return None

        if self.phase == GamePhase.INSURANCE:
            if not self.legal_actions():
                return None
            return insurance_advice(
                self.counter.true_count(self.shoe.decks_remaining),
                self.counter.INSURANCE_THRESHOLD,
            )

        if self.phase == GamePhase.EARLY_SURRENDER:
            pending = next((p for p in self._seated() if not p.surrender_decided), None)
            if pending is None:
                return None
            return self.strategy.early_surrender(pending.hands[0], up_card)

        hand = self.active_hand
        if self.phase != GamePhase.PLAYER_TURN or hand is None:
            return None
        return self.strategy.recommend(hand, up_card, self.legal_actions())

    def odds(self) -> dict[str, Any] | None:
        """
        Exact probabilities while the hole card is down.

        Works from the cards a player has not seen: the undealt shoe plus
        the hole card. Once the dealer has peeked, hole cards that would
        complete a blackjack are ruled out.

        Returns:
            The dealer outcome distribution, the dealer bust chance and the
            active hand's chance of busting on a hit; None outside a round
        """
        up_card = self.dealer_hand.up_card
        if up_card is None or not self.dealer_hand.has_hidden_card:
            return None

        unseen = self.shoe.remaining_composition()
        for card in self.dealer_hand.cards:
            if not card.face_up:
                unseen[card.value] += 1

        peeked = (
            self.phase == GamePhase.PLAYER_TURN
            and self.rules.dealer_peeks
            and self._dealer_may_hold_blackjack()
        )
        try:
            distribution = dealer_outcome_distribution(
                up_card, unseen, self.rules.dealer_hits_soft_17, peeked
            )
        except EmptyShoeError:
            logger.debug("No odds for round %d: too few unseen cards", self.round_number)
            return None

        hand = self.active_hand
        return {
            "dealer": distribution.to_dict(),
            "dealer_bust": distribution.bust,
            "player_bust_on_hit": (
                player_bust_probability(hand.cards, unseen) if hand is not None else None
            ),
        }

    def snapshot(self) -> dict[str, Any]:
        """
        Plain-data view of the table.

        The dealer's hole card is masked until it is revealed. Nothing in
        the result is shared with live game state.
        """
        active = self.active_hand
        advice = self.advice()
        return {
            "phase": self.phase.value,
            "round": self.round_number,
            "rules": self.rules.to_dict(),
            "shoe": {
                "cards_remaining": self.shoe.cards_remaining,
                "total_cards": self.shoe.total_cards,
                "cut_card_position": self.shoe.cut_card_position,
                "needs_reshuffle": self.shoe.needs_reshuffle,
                "decks_remaining": round(self.shoe.decks_remaining, 2),
            },
            "dealer": self.dealer_hand.to_dict(),
            "players": [player.to_dict() for player in self.players],
            "active_hand_id": active.id if active else None,
            "legal_actions": sorted(action.value for action in self.legal_actions()),
            "dealer_moves": [move.to_dict() for move in self._dealer_moves],
            "last_round": self._last_round,
            "count": self.counter.to_dict(self.shoe.decks_remaining),
            "advice": advice.to_dict() if advice else None,
            "odds": self.odds(),
        }
