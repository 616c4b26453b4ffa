"""Game session and round state."""

from blackjack.game.events import EventEmitter, EventType, GameEvent
from blackjack.game.state import GamePhase
from blackjack.game.engine import BlackjackGame, Player

__all__ = [
    "EventEmitter",
    "EventType",
    "GameEvent",
    "GamePhase",
    "BlackjackGame",
    "Player",
]
