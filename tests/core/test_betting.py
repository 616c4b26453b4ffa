"""Tests for betting strategies."""

import pytest
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from blackjack.betting import (
    STRATEGIES,
    Bet,
    BetStatus,
    BettingStrategyType,
    Outcome,
    bet_status_for,
    clamp_bet,
    get_strategy,
    next_bet,
)
from blackjack.errors import InvalidConfigurationError
from blackjack.hand import HandResult

W, L, P = Outcome.WIN, Outcome.LOSS, Outcome.PUSH


def suggest(strategy, history, base=10, min_bet=10, max_bet=1000, balance=10000, current=0):
    return next_bet(strategy, history, current, base, min_bet, max_bet, balance)


class TestOutcome:
    def test_from_result(self):
        assert Outcome.from_result(HandResult.BLACKJACK) == W
        assert Outcome.from_result("surrender") == L
        assert Outcome.from_result("push") == P

    def test_bet_status_for(self):
        assert bet_status_for(HandResult.BLACKJACK) == BetStatus.WON
        assert bet_status_for(HandResult.SURRENDER) == BetStatus.SURRENDERED

    def test_bet_settle(self):
        bet = Bet(amount=Decimal("10"), hand_id="h1")
        bet.settle(BetStatus.WON, Decimal("25"))
        assert bet.payout_multiplier == Decimal("2.5")


class TestStrategies:
    def test_every_type_registered(self):
        assert set(STRATEGIES) == set(BettingStrategyType)

    def test_unknown_strategy(self):
        with pytest.raises(InvalidConfigurationError):
            get_strategy("labouchere")

    def test_flat_keeps_current_bet(self):
        assert suggest("flat", [L, L], current=25) == Decimal("25")
        assert suggest("flat", [L, L]) == Decimal("10")

    def test_martingale_capped_at_table_max(self):
        """Five losses from 10 would be 320; the table max holds it at 100."""
        assert suggest("martingale", [L] * 5, max_bet=100) == Decimal("100")

    def test_martingale_doubles_and_resets(self):
        assert suggest("martingale", [L, L, L]) == Decimal("80")
        assert suggest("martingale", [L, L, L, W]) == Decimal("10")

    def test_martingale_resumes_after_clamp(self):
        history = [L] * 6
        assert suggest("martingale", history, max_bet=100) == Decimal("100")
        assert suggest("martingale", history + [W], max_bet=100) == Decimal("10")

    def test_pushes_do_not_move_progression(self):
        assert suggest("martingale", [L, P, L, P]) == Decimal("40")

    def test_paroli(self):
        assert suggest("paroli", [W]) == Decimal("20")
        assert suggest("paroli", [W, W]) == Decimal("40")
        assert suggest("paroli", [W, W, W]) == Decimal("10")
        assert suggest("paroli", [W, L]) == Decimal("10")

    def test_dalembert(self):
        assert suggest("dalembert", [L, L, W]) == Decimal("20")
        assert suggest("dalembert", [W, W]) == Decimal("10")

    def test_fibonacci(self):
        assert suggest("fibonacci", [L, L, L, L]) == Decimal("50")
        assert suggest("fibonacci", [L, L, L, L, W]) == Decimal("20")

    def test_oscars_grind(self):
        assert suggest("oscars-grind", [L]) == Decimal("10")
        assert suggest("oscars-grind", [L, W]) == Decimal("10")
        assert suggest("oscars-grind", [L, L, W]) == Decimal("20")
        assert suggest("oscars-grind", [W]) == Decimal("10")

    def test_one_three_two_six(self):
        assert [suggest("1-3-2-6", [W] * n) for n in range(5)] == [
            Decimal("10"),
            Decimal("30"),
            Decimal("20"),
            Decimal("60"),
            Decimal("10"),
        ]

    def test_history_accepts_results(self):
        assert suggest("martingale", ["loss", HandResult.SURRENDER]) == Decimal("40")

    def test_balance_caps_bet(self):
        assert suggest("martingale", [L, L, L], balance=35) == Decimal("35")

    @pytest.mark.parametrize(
        "kwargs",
        [{"base": 0}, {"min_bet": 100, "max_bet": 10}, {"balance": -1}],
    )
    def test_invalid_inputs(self, kwargs):
        with pytest.raises(InvalidConfigurationError):
            suggest("flat", [], **kwargs)

    def test_clamp_bet(self):
        assert clamp_bet(Decimal("5"), Decimal("10"), Decimal("100"), Decimal("1000")) == 10
        assert clamp_bet(Decimal("500"), Decimal("10"), Decimal("100"), Decimal("1000")) == 100

    @given(
        st.sampled_from([t.value for t in BettingStrategyType]),
        st.lists(st.sampled_from(list(Outcome)), max_size=30),
        st.integers(1, 50),
    )
    def test_suggestion_within_limits(self, strategy, history, base):
        amount = suggest(strategy, history, base=base, min_bet=10, max_bet=500)
        assert Decimal("10") <= amount <= Decimal("500")
