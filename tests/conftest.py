"""Pytest fixtures for blackjack engine tests."""

import pytest
from decimal import Decimal
from random import Random

from blackjack.cards import Card, Rank, Shoe, Suit
from blackjack.game import BlackjackGame
from blackjack.hand import Hand
from blackjack.rules import RuleSet


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled 6-deck shoe."""
    s = Shoe(num_decks=6, penetration=0.75, rng=rng)
    s.reshuffle()
    return s


@pytest.fixture
def rules():
    """Default table rules (H17, 3:2, late surrender, peek)."""
    return RuleSet()


@pytest.fixture
def game(rules):
    """A seeded single-player table with a 1000 bankroll."""
    return BlackjackGame(rules=rules, seed=7, starting_bankroll=Decimal("1000"))


@pytest.fixture
def empty_hand():
    """An empty player hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return Hand(cards=[Card(Rank.ACE, Suit.SPADES), Card(Rank.KING, Suit.HEARTS)], bet=Decimal("10"))


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return Hand(cards=[Card(Rank.ACE, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS)], bet=Decimal("10"))


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return Hand(cards=[Card(Rank.TEN, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS)], bet=Decimal("10"))


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    return Hand(cards=[Card(Rank.EIGHT, Suit.SPADES), Card(Rank.EIGHT, Suit.HEARTS)], bet=Decimal("10"))


@pytest.fixture
def bust_hand():
    """A busted hand (10-6-K)."""
    return Hand(
        cards=[Card(Rank.TEN, Suit.SPADES), Card(Rank.SIX, Suit.HEARTS), Card(Rank.KING, Suit.CLUBS)],
        bet=Decimal("10"),
    )
