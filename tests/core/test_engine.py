"""Tests for the game session engine.

Rounds are scripted by stacking the shoe. Deal order for one player is
player, dealer up card, player, dealer hole card, then any hits.
"""

import pytest
from decimal import Decimal

from blackjack.actions import Action
from blackjack.cards import Shoe, build_deck, cards_from_string
from blackjack.errors import (
    EmptyShoeError,
    IllegalActionError,
    InsufficientFundsError,
    InvalidBetError,
    InvalidConfigurationError,
)
from blackjack.game import BlackjackGame, EventType, GamePhase
from blackjack.hand import HandResult, HandStatus
from blackjack.betting import Outcome
from blackjack.rules import RuleSet


def stack(game: BlackjackGame, text: str) -> None:
    game.shoe.stack(cards_from_string(text))


def event_types(game: BlackjackGame) -> list[EventType]:
    return [event.event_type for event in game.events.history]


def result(game: BlackjackGame, index: int = 0) -> HandResult:
    return game.last_settlement.hands[index].result


def short_shoe_game(tail: str) -> BlackjackGame:
    """A single-deck table dealt down to its last few cards, in the given order."""
    game = BlackjackGame(rules=RuleSet(num_decks=1, penetration=1.0), seed=1)
    last = cards_from_string(tail)
    rest = [card for card in build_deck() if card not in last]
    game.shoe = Shoe.from_cards(
        rest + last, num_decks=1, penetration=1.0, cards_dealt=len(rest), rng=game.rng
    )
    return game


class TestSetup:
    def test_initial_state(self, game):
        assert game.phase == GamePhase.BETTING
        assert [p.id for p in game.players] == ["player"]
        assert game.get_player("player").bankroll == Decimal("1000")
        assert game.legal_actions() == frozenset()
        assert game.last_settlement is None

    def test_add_player(self, game):
        player = game.add_player("p2", 500)
        assert player.bankroll == Decimal("500")
        assert EventType.PLAYER_JOINED in event_types(game)

    def test_duplicate_player(self, game):
        with pytest.raises(InvalidConfigurationError):
            game.add_player("player")

    def test_table_full(self):
        game = BlackjackGame(rules=RuleSet(max_players=1))
        with pytest.raises(InvalidConfigurationError):
            game.add_player("p2")

    def test_unknown_player(self, game):
        with pytest.raises(InvalidConfigurationError):
            game.get_player("ghost")

    def test_seeded_games_deal_alike(self):
        first = BlackjackGame(seed=123)
        second = BlackjackGame(seed=123)
        assert first.shoe.remaining_cards() == second.shoe.remaining_cards()

        first.bet(10)
        second.bet(10)
        dealt = lambda g: [e.data["card"] for e in g.events.history if e.event_type == EventType.CARD_DEALT]
        assert dealt(first) == dealt(second)


class TestBetting:
    @pytest.mark.parametrize("amount", [5, 2000])
    def test_outside_table_limits(self, game, amount):
        with pytest.raises(InvalidBetError):
            game.bet(amount)
        assert game.get_player("player").bankroll == Decimal("1000")
        assert game.phase == GamePhase.BETTING
        assert EventType.INVALID_ACTION in event_types(game)

    def test_insufficient_funds(self):
        game = BlackjackGame(starting_bankroll=50)
        with pytest.raises(InsufficientFundsError):
            game.bet(100)
        assert game.get_player("player").bankroll == Decimal("50")
        assert EventType.INSUFFICIENT_FUNDS in event_types(game)

    def test_bet_twice(self, game):
        game.place_bet(10)
        with pytest.raises(IllegalActionError):
            game.place_bet(10)

    def test_deal_without_bets(self, game):
        with pytest.raises(IllegalActionError):
            game.deal()

    def test_stake_is_escrowed(self, game):
        game.place_bet(25)
        assert game.get_player("player").bankroll == Decimal("975")

    def test_duplicate_side_bet_type(self, game):
        wagers = [{"type": "21+3", "amount": 5}, {"type": "21+3", "amount": 5}]
        with pytest.raises(InvalidBetError):
            game.place_bet(10, side_bets=wagers)
        assert not game.get_player("player").has_bet

    def test_insurance_is_not_a_pre_deal_side_bet(self, game):
        with pytest.raises(InvalidBetError):
            game.place_bet(10, side_bets=[{"type": "insurance", "amount": 5}])

    def test_empty_shoe_refuses_round(self):
        game = BlackjackGame(rules=RuleSet(num_decks=1), seed=1)
        for _ in range(50):
            game.shoe.draw()
        with pytest.raises(EmptyShoeError):
            game.bet(10)
        assert game.get_player("player").bankroll == Decimal("1000")
        assert not game.get_player("player").has_bet


class TestRounds:
    def test_stand_and_win(self, game):
        stack(game, "10S 9C 9H 8D")
        game.bet(10)

        assert game.phase == GamePhase.PLAYER_TURN
        assert game.legal_actions() == {Action.HIT, Action.STAND, Action.DOUBLE, Action.SURRENDER}

        game.stand()
        assert game.phase == GamePhase.BETTING
        assert result(game) == HandResult.WIN
        assert game.get_player("player").bankroll == Decimal("1010")
        assert game.get_player("player").history == [Outcome.WIN]
        assert game.round_number == 1
        assert game.last_settled_round == 1

    def test_player_blackjack_pays_three_to_two(self, game):
        stack(game, "AS 9C KH 8D")
        game.bet(10)
        assert game.phase == GamePhase.BETTING
        assert result(game) == HandResult.BLACKJACK
        assert game.get_player("player").bankroll == Decimal("1015")
        assert EventType.PLAYER_BLACKJACK in event_types(game)

    def test_dealer_draws_nothing_when_every_hand_is_decided(self, game):
        stack(game, "AS 6C KH 10D")
        game.bet(10)
        assert len(game.last_settlement.hands) == 1
        assert game.last_settlement.dealer_total == 16
        assert [m.card for m in game.dealer_moves] == [None, None]

    def test_dealer_peeks_ten_and_wins(self, game):
        stack(game, "9S KC 8H AD")
        game.bet(10)
        assert game.phase == GamePhase.BETTING
        assert result(game) == HandResult.LOSS
        assert game.last_settlement.dealer_blackjack
        assert game.get_player("player").bankroll == Decimal("990")
        assert EventType.DEALER_BLACKJACK in event_types(game)

    def test_dealer_peeks_ten_without_blackjack(self, game):
        stack(game, "10S KC 9H 7D")
        game.bet(10)
        assert game.phase == GamePhase.PLAYER_TURN
        peeks = [e for e in game.events.history if e.event_type == EventType.DEALER_PEEKS]
        assert peeks[-1].data == {"blackjack": False}

    def test_no_peek_under_european_rules(self):
        game = BlackjackGame(rules=RuleSet.european(), seed=3)
        stack(game, "9S KC 8H AD")
        game.bet(10)
        assert game.phase == GamePhase.PLAYER_TURN

        game.stand()
        assert result(game) == HandResult.LOSS
        assert game.last_settlement.dealer_blackjack

    def test_hit_and_bust(self, game):
        stack(game, "10S 6C 6H 10D KC")
        game.bet(10)
        game.hit()
        assert result(game) == HandResult.LOSS
        assert game.last_settlement.dealer_total == 16
        assert len(game.dealer_moves) == 2
        assert game.get_player("player").bankroll == Decimal("990")
        assert EventType.PLAYER_BUSTS in event_types(game)

    def test_twenty_one_stands_automatically(self, game):
        stack(game, "5S 9C 6H 8D 10C")
        game.bet(10)
        game.hit()
        assert game.phase == GamePhase.BETTING
        assert result(game) == HandResult.WIN

    def test_dealer_hits_to_stand(self, game):
        stack(game, "10S 6C 7H 5D 7C")
        game.bet(10)
        game.stand()
        assert game.last_settlement.dealer_total == 18
        assert [m.state.value for m in game.dealer_moves] == ["revealing", "hitting", "standing"]
        assert result(game) == HandResult.LOSS

    def test_double_down(self, game):
        stack(game, "5S 9C 6H 8D 10C")
        game.bet(10)
        game.double_down()
        settlement = game.last_settlement.hands[0]
        assert settlement.result == HandResult.WIN
        assert settlement.bet == Decimal("20")
        assert settlement.payout == Decimal("40")
        assert game.get_player("player").bankroll == Decimal("1020")

    def test_no_double_without_funds(self):
        game = BlackjackGame(starting_bankroll=15, seed=1)
        stack(game, "5S 9C 6H 8D")
        game.bet(10)
        assert Action.DOUBLE not in game.legal_actions()
        with pytest.raises(InsufficientFundsError):
            game.double_down()
        assert game.active_hand.bet == Decimal("10")

    def test_split(self, game):
        stack(game, "8S 9C 8H 8D 3C 10H")
        game.bet(10)
        assert Action.SPLIT in game.legal_actions()

        first = game.active_hand
        new_hand = game.split()
        assert [str(c) for c in first.cards] == ["8♠", "3♣"]
        assert [str(c) for c in new_hand.cards] == ["8♥", "10♥"]
        assert game.active_hand is first
        assert game.get_player("player").bankroll == Decimal("980")

        game.stand(first.id)
        assert game.active_hand is new_hand
        game.stand(new_hand.id)

        assert [s.result for s in game.last_settlement.hands] == [HandResult.LOSS, HandResult.WIN]
        assert game.get_player("player").bankroll == Decimal("1000")

    def test_split_aces_take_one_card(self, game):
        stack(game, "AS 9C AH 8D KC KD")
        game.bet(10)
        game.split()
        assert game.phase == GamePhase.BETTING
        assert [s.result for s in game.last_settlement.hands] == [HandResult.WIN, HandResult.WIN]
        assert game.get_player("player").bankroll == Decimal("1020")

    def test_split_aces_dealt_an_ace_may_resplit(self):
        game = BlackjackGame(rules=RuleSet(resplit_aces=True), seed=7)
        stack(game, "AS 5C AH 9D AD 7C 8C 9C")
        game.bet(10)
        first = game.active_hand
        second = game.split()

        assert game.phase == GamePhase.PLAYER_TURN
        assert game.active_hand is first
        assert game.legal_actions() == {Action.SPLIT, Action.STAND}
        assert second.status == HandStatus.STANDING
        with pytest.raises(IllegalActionError):
            game.hit()

        third = game.split()
        assert [str(c) for c in first.cards] == ["A♠", "8♣"]
        assert [str(c) for c in third.cards] == ["A♦", "9♣"]
        assert third.split_from == first.id
        assert len(game.last_settlement.hands) == 3

    def test_split_aces_dealt_an_ace_stand_without_resplit(self, game):
        stack(game, "AS 5C AH 9D AD 7C")
        game.bet(10)
        game.split()
        assert game.phase == GamePhase.BETTING
        assert len(game.last_settlement.hands) == 2

    def test_split_hand_records_its_origin(self, game):
        stack(game, "8S 9C 8H 8D 3C 10H")
        game.bet(10)
        first = game.active_hand
        new_hand = game.split()

        assert new_hand.to_dict()["split_from"] == first.id
        hands = game.snapshot()["players"][0]["hands"]
        assert [h["split_from"] for h in hands] == [None, first.id]

    def test_surrender(self, game):
        stack(game, "10S 9C 6H 8D")
        game.bet(10)
        game.surrender()
        assert result(game) == HandResult.SURRENDER
        assert game.get_player("player").bankroll == Decimal("995")
        assert game.get_player("player").history == [Outcome.LOSS]

    def test_surrender_only_as_first_decision(self, game):
        stack(game, "2S 9C 3H 8D 4C")
        game.bet(10)
        game.hit()
        hand = game.active_hand
        with pytest.raises(IllegalActionError):
            game.surrender()
        assert len(hand.cards) == 3
        assert hand.status == HandStatus.ACTIVE

    def test_wrong_hand_id(self, game):
        stack(game, "10S 9C 6H 8D")
        game.bet(10)
        with pytest.raises(IllegalActionError):
            game.hit("not-a-hand")

    def test_actions_outside_player_turn(self, game):
        with pytest.raises(IllegalActionError):
            game.hit()
        assert EventType.INVALID_ACTION in event_types(game)


class TestInsurance:
    def test_insurance_phase(self, game):
        stack(game, "9S AC 8H KD")
        game.bet(10)
        assert game.phase == GamePhase.INSURANCE
        assert game.legal_actions() == {Action.INSURANCE}
        with pytest.raises(IllegalActionError):
            game.stand()

    def test_insurance_pays_on_dealer_blackjack(self, game):
        stack(game, "9S AC 8H KD")
        game.bet(10)
        assert game.take_insurance() == Decimal("5")
        assert game.phase == GamePhase.BETTING

        settlement = game.last_settlement
        assert settlement.hands[0].result == HandResult.LOSS
        assert settlement.insurance[0].payout == Decimal("15")
        assert game.get_player("player").bankroll == Decimal("1000")

    def test_declined_insurance_without_blackjack(self, game):
        stack(game, "9S AC 8H 7D")
        game.bet(10)
        game.decline_insurance()
        assert game.phase == GamePhase.PLAYER_TURN

        game.stand()
        assert result(game) == HandResult.LOSS
        assert game.last_settlement.insurance == ()
        assert game.get_player("player").bankroll == Decimal("990")

    def test_insurance_limit(self, game):
        stack(game, "9S AC 8H 7D")
        game.bet(10)
        with pytest.raises(InvalidBetError):
            game.take_insurance(amount=6)
        assert game.phase == GamePhase.INSURANCE

    def test_decide_once(self, game):
        stack(game, "9S AC 8H 7D")
        game.bet(10)
        game.decline_insurance()
        with pytest.raises(IllegalActionError):
            game.take_insurance()


class TestSideBets:
    def test_side_bet_pays_while_main_hand_loses(self, game):
        stack(game, "8H 9C 8D 8S")
        game.bet(10, side_bets=[{"type": "perfect-pairs", "amount": 5}])
        assert game.get_player("player").bankroll == Decimal("985")

        game.stand()
        settlement = game.last_settlement
        assert settlement.hands[0].result == HandResult.LOSS
        assert settlement.side_bets[0].combination == "colored-pair"
        assert settlement.side_bets[0].payout == Decimal("55")
        assert game.get_player("player").bankroll == Decimal("1040")

    def test_side_bets_judged_on_first_two_cards(self, game):
        stack(game, "8H 9C 8D 8S")
        game.bet(10, side_bets=[{"type": "perfect-pairs", "amount": 5}])
        game.split()
        while game.phase == GamePhase.PLAYER_TURN:
            game.stand()
        assert game.last_settlement.side_bets[0].won


class TestTable:
    def test_two_players(self, game):
        game.add_player("p2", 500)
        game.place_bet(10, "player")
        game.place_bet(20, "p2")
        stack(game, "10S 10C 9C 9H 7H 8D")
        game.deal()

        assert game.active_player.id == "player"
        game.stand()
        assert game.active_player.id == "p2"
        game.stand()

        assert [s.result for s in game.last_settlement.hands] == [HandResult.WIN, HandResult.PUSH]
        assert game.get_player("player").bankroll == Decimal("1010")
        assert game.get_player("p2").bankroll == Decimal("500")

    def test_reshuffle_only_between_rounds(self, game):
        game.reshuffle("riffle", seed=3)
        game.place_bet(10)
        with pytest.raises(IllegalActionError):
            game.reshuffle()

    def test_reshuffles_at_cleanup_past_cut_card(self):
        game = BlackjackGame(rules=RuleSet(num_decks=1, penetration=0.05), seed=2)
        stack(game, "10S 9C 9H 8D")
        game.bet(10)
        game.stand()
        assert game.shoe.cards_remaining == 52

    def test_no_reshuffle_when_disabled(self):
        game = BlackjackGame(
            rules=RuleSet(num_decks=1, penetration=0.05),
            seed=2,
            reshuffle_between_rounds=False,
        )
        stack(game, "10S 9C 9H 8D")
        game.bet(10)
        game.stand()
        assert game.shoe.cards_remaining == 48
        assert game.shoe.needs_reshuffle

    def test_round_events(self, game):
        stack(game, "10S 9C 9H 8D")
        game.bet(10)
        game.stand()
        types = event_types(game)
        assert types.index(EventType.ROUND_STARTED) < types.index(EventType.ROUND_ENDED)
        phases = [e.data["phase"] for e in game.events.history if e.event_type == EventType.PHASE_CHANGED]
        assert phases == [
            "dealing",
            "player_turn",
            "dealer_turn",
            "settlement",
            "cleanup",
            "betting",
        ]

    def test_suggest_next_bet(self, game):
        stack(game, "10S 9C 6H 8D")
        game.bet(10)
        game.surrender()
        assert game.suggest_next_bet("martingale") == Decimal("20")
        assert game.suggest_next_bet("flat") == Decimal("10")


class TestSnapshot:
    def test_hole_card_is_masked(self, game):
        stack(game, "10S 9C 9H 8D")
        game.bet(10)
        snapshot = game.snapshot()

        assert snapshot["phase"] == "player_turn"
        assert snapshot["dealer"]["cards"][1] == {"rank": None, "suit": None, "face_up": False}
        assert snapshot["dealer"]["value"] == 9
        assert snapshot["active_hand_id"] == game.active_hand.id
        assert snapshot["legal_actions"] == ["double", "hit", "stand", "surrender"]

    def test_snapshot_is_detached(self, game):
        stack(game, "10S 9C 9H 8D")
        game.bet(10)
        snapshot = game.snapshot()
        snapshot["players"][0]["hands"][0]["cards"].clear()
        assert len(game.active_hand.cards) == 2

    def test_last_round_kept_after_cleanup(self, game):
        stack(game, "10S 9C 9H 8D")
        game.bet(10)
        game.stand()
        snapshot = game.snapshot()
        assert snapshot["players"][0]["hands"] == []
        assert snapshot["last_round"]["settlement"]["hands"][0]["result"] == "win"
        assert snapshot["last_round"]["dealer"]["value"] == 17


class TestVoidRound:
    def test_shoe_running_out_in_dealer_turn_refunds_everything(self):
        game = short_shoe_game("10S 5C 9H 6D")
        game.bet(10, side_bets=[{"type": "perfect-pairs", "amount": 5}])
        assert game.get_player("player").bankroll == Decimal("985")

        with pytest.raises(EmptyShoeError):
            game.stand()

        player = game.get_player("player")
        assert game.phase == GamePhase.BETTING
        assert player.bankroll == Decimal("1000")
        assert not player.has_bet
        assert player.history == []
        assert game.dealer_hand.cards == []
        assert game.last_settlement is None
        assert EventType.ROUND_VOIDED in event_types(game)

        game.reshuffle()
        assert game.shoe.cards_remaining == 52

    def test_doubles_and_insurance_are_refunded(self):
        game = short_shoe_game("5S AC 6H 5D 10C")
        game.bet(10)
        game.take_insurance()
        assert game.phase == GamePhase.PLAYER_TURN

        with pytest.raises(EmptyShoeError):
            game.double_down()
        assert game.phase == GamePhase.BETTING
        assert game.get_player("player").bankroll == Decimal("1000")

    def test_void_mid_turn(self, game):
        stack(game, "10S 9C 6H 8D")
        game.bet(10)
        game.void_round()
        assert game.phase == GamePhase.BETTING
        assert game.active_hand is None
        assert game.round_history == []
        assert game.get_player("player").bankroll == Decimal("1000")

    def test_nothing_to_void_between_rounds(self, game):
        with pytest.raises(IllegalActionError):
            game.void_round()


class TestEarlySurrender:
    @pytest.fixture
    def game(self):
        return BlackjackGame(rules=RuleSet(surrender="early"), seed=7)

    def test_surrender_before_the_peek_saves_half(self, game):
        stack(game, "10S KC 6H AD")
        game.bet(10)
        assert game.phase == GamePhase.EARLY_SURRENDER
        assert game.legal_actions() == {Action.SURRENDER}
        with pytest.raises(IllegalActionError):
            game.hit()

        game.surrender()
        assert game.phase == GamePhase.BETTING
        assert result(game) == HandResult.SURRENDER
        assert game.last_settlement.dealer_blackjack
        assert game.get_player("player").bankroll == Decimal("995")

    def test_declining_loses_to_dealer_blackjack(self, game):
        stack(game, "10S KC 6H AD")
        game.bet(10)
        game.decline_surrender()
        assert result(game) == HandResult.LOSS
        assert game.get_player("player").bankroll == Decimal("990")

    def test_insurance_follows_declined_surrender_against_ace(self, game):
        stack(game, "10S AC 6H 7D")
        game.bet(10)
        assert game.phase == GamePhase.EARLY_SURRENDER
        game.decline_surrender()
        assert game.phase == GamePhase.INSURANCE
        game.decline_insurance()
        assert game.phase == GamePhase.PLAYER_TURN

    def test_surrendered_hand_is_not_offered_insurance(self, game):
        stack(game, "10S AC 6H 7D")
        game.bet(10)
        game.take_early_surrender()
        assert EventType.INSURANCE_OFFERED not in event_types(game)
        assert game.phase == GamePhase.BETTING
        assert game.get_player("player").bankroll == Decimal("995")

    def test_no_window_against_low_card(self, game):
        stack(game, "10S 6C 6H 7D")
        game.bet(10)
        assert game.phase == GamePhase.PLAYER_TURN
        assert Action.SURRENDER in game.legal_actions()

    def test_decide_once(self, game):
        stack(game, "10S KC 6H 7D")
        game.bet(10)
        game.decline_surrender()
        with pytest.raises(IllegalActionError):
            game.decline_surrender()


class TestPeek:
    def test_dealer_peeks_under_ace_without_insurance(self):
        game = BlackjackGame(rules=RuleSet(insurance_allowed=False), seed=7)
        stack(game, "9S AC 8H KD")
        game.bet(10)
        assert EventType.DEALER_PEEKS in event_types(game)
        assert game.phase == GamePhase.BETTING
        assert result(game) == HandResult.LOSS


class TestCountAndAdvice:
    def test_count_skips_the_hole_card_until_revealed(self, game):
        stack(game, "10S 5C 6H KD 3C")
        game.bet(10)
        count = game.snapshot()["count"]
        assert count["system"] == "hi-lo"
        assert count["running_count"] == 1
        assert count["cards_seen"] == 3

        game.stand()
        assert game.counter.running_count == 1
        assert game.counter.cards_seen == 5

    def test_reshuffle_resets_count(self, game):
        stack(game, "10S 5C 6H KD 3C")
        game.bet(10)
        game.stand()
        game.reshuffle()
        assert game.counter.cards_seen == 0
        assert game.counter.running_count == 0

    def test_counting_system_choice(self):
        game = BlackjackGame(counting_system="ko", seed=7)
        assert game.snapshot()["count"]["running_count"] == -20

    @pytest.mark.parametrize(
        "deal,action",
        [
            ("10S 5C 6H 9D", "stand"),
            ("5S 6C 6H 9D", "double"),
            ("10S 10C 6H 7D", "surrender"),
            ("8S 7C 8H 9D", "split"),
            ("9S 9C 3H 8D", "hit"),
        ],
    )
    def test_advice_for_active_hand(self, game, deal, action):
        stack(game, deal)
        game.bet(10)
        advice = game.snapshot()["advice"]
        assert advice["action"] == action
        assert advice["take"] is True
        assert "dealer" in advice["explanation"]

    def test_insurance_advice_follows_true_count(self, game):
        stack(game, "9S AC 8H 7D")
        game.bet(10)
        advice = game.advice()
        assert advice.action == Action.INSURANCE
        assert advice.take is False

    def test_no_advice_between_rounds(self, game):
        assert game.snapshot()["advice"] is None


class TestOdds:
    def test_odds_while_hole_card_is_down(self, game):
        stack(game, "10S 5C 6H 9D")
        game.bet(10)
        odds = game.snapshot()["odds"]

        assert sum(odds["dealer"].values()) == pytest.approx(1.0)
        assert odds["dealer"]["blackjack"] == 0
        assert odds["dealer_bust"] == odds["dealer"]["bust"]
        assert 0 < odds["dealer_bust"] < 1
        assert 0 < odds["player_bust_on_hit"] < 1

    def test_peeked_ten_rules_out_blackjack(self, game):
        stack(game, "10S KC 6H 7D")
        game.bet(10)
        assert game.odds()["dealer"]["blackjack"] == 0

    def test_insurance_phase_counts_blackjack_chance(self, game):
        stack(game, "9S AC 8H 7D")
        game.bet(10)
        odds = game.odds()
        assert odds["dealer"]["blackjack"] > 0
        assert odds["player_bust_on_hit"] is None

    def test_no_odds_between_rounds(self, game):
        assert game.odds() is None
        assert game.snapshot()["odds"] is None
