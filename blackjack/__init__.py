"""Blackjack rules and session engine - UI-agnostic."""

from blackjack.actions import Action, legal_actions
from blackjack.betting import Bet, BetStatus, BettingStrategyType, next_bet
from blackjack.cards import Card, Rank, Shoe, Suit, create_shoe
from blackjack.counting import COUNTING_SYSTEMS, CardCounter, CountingSystem
from blackjack.dealer import DealerState, play_dealer_hand
from blackjack.errors import (
    BlackjackError,
    EmptyShoeError,
    IllegalActionError,
    InsufficientFundsError,
    InvalidBetError,
    InvalidConfigurationError,
)
from blackjack.hand import DealerHand, Hand, HandResult, HandStatus
from blackjack.rules import RuleSet
from blackjack.settlement import RoundSettlement, settle_round
from blackjack.shuffle import ShuffleMethod
from blackjack.side_bets import SideBet, SideBetType
from blackjack.strategy import Advice, BasicStrategy

__all__ = [
    "Action",
    "Advice",
    "BasicStrategy",
    "Bet",
    "BetStatus",
    "BettingStrategyType",
    "BlackjackError",
    "COUNTING_SYSTEMS",
    "Card",
    "CardCounter",
    "CountingSystem",
    "DealerHand",
    "DealerState",
    "EmptyShoeError",
    "Hand",
    "HandResult",
    "HandStatus",
    "IllegalActionError",
    "InsufficientFundsError",
    "InvalidBetError",
    "InvalidConfigurationError",
    "Rank",
    "RoundSettlement",
    "RuleSet",
    "Shoe",
    "ShuffleMethod",
    "SideBet",
    "SideBetType",
    "Suit",
    "create_shoe",
    "legal_actions",
    "next_bet",
    "play_dealer_hand",
    "settle_round",
]
