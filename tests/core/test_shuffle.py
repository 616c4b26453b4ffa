"""Tests for shuffle algorithms."""

import pytest
from collections import Counter
from random import Random

from hypothesis import given, settings
from hypothesis import strategies as st

from blackjack.cards import build_deck
from blackjack.shuffle import ShuffleMethod, cut, fisher_yates, riffle, shuffle, strip

METHODS = list(ShuffleMethod)


class TestShuffle:
    """Every algorithm returns a permutation of its input."""

    @pytest.mark.parametrize("method", METHODS)
    def test_deck_is_permuted(self, method):
        deck = build_deck()
        result = shuffle(deck, method, seed=1)
        assert Counter(result) == Counter(deck)
        assert len(result) == 52

    @pytest.mark.parametrize("method", METHODS)
    def test_input_is_untouched(self, method):
        deck = build_deck()
        original = list(deck)
        shuffle(deck, method, seed=3)
        assert deck == original

    @pytest.mark.parametrize("method", METHODS)
    def test_seed_is_deterministic(self, method):
        deck = build_deck()
        assert shuffle(deck, method, seed=11) == shuffle(deck, method, seed=11)

    def test_method_by_name(self):
        deck = build_deck()
        assert shuffle(deck, "fisher-yates", seed=4) == fisher_yates(deck, seed=4)

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            shuffle([1, 2, 3], "washing-machine")

    def test_fisher_yates_changes_order(self):
        deck = build_deck()
        assert fisher_yates(deck, rng=Random(42)) != deck

    def test_fisher_yates_is_roughly_uniform(self):
        """Each item lands in first position about equally often."""
        rng = Random(0)
        firsts = Counter(fisher_yates(range(4), rng=rng)[0] for _ in range(4000))
        assert all(800 < count < 1200 for count in firsts.values())

    def test_cut_moves_bottom_to_top(self):
        assert cut([1, 2, 3, 4, 5], position=2) == [3, 4, 5, 1, 2]

    def test_cut_clamps_position(self):
        assert cut([1, 2, 3], position=0) == [2, 3, 1]

    def test_strip_small_input(self):
        assert strip([7]) == [7]

    @settings(max_examples=50)
    @given(st.lists(st.integers(), max_size=60), st.sampled_from(METHODS), st.integers(0, 2**16))
    def test_permutation_property(self, items, method, seed):
        assert Counter(shuffle(items, method, seed=seed)) == Counter(items)

    @settings(max_examples=30)
    @given(st.lists(st.integers(), min_size=2, max_size=40), st.integers(1, 5))
    def test_riffle_iterations_keep_items(self, items, iterations):
        assert sorted(riffle(items, iterations=iterations, seed=0)) == sorted(items)
