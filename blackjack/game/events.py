"""Game events for hosts that animate or record a round."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable


class EventType(Enum):
    """Types of game events."""

    # Round flow
    PHASE_CHANGED = "phase_changed"
    ROUND_STARTED = "round_started"
    ROUND_ENDED = "round_ended"
    ROUND_VOIDED = "round_voided"
    PLAYER_JOINED = "player_joined"

    # Wagers
    BET_PLACED = "bet_placed"
    BET_RESOLVED = "bet_resolved"
    SIDE_BET_PLACED = "side_bet_placed"
    SIDE_BET_RESOLVED = "side_bet_resolved"

    # Cards
    CARD_DEALT = "card_dealt"
    SHOE_SHUFFLED = "shoe_shuffled"

    # Player decisions
    PLAYER_HIT = "player_hit"
    PLAYER_STAND = "player_stand"
    PLAYER_DOUBLE = "player_double"
    PLAYER_SPLIT = "player_split"
    PLAYER_SURRENDER = "player_surrender"
    SURRENDER_OFFERED = "surrender_offered"
    SURRENDER_DECLINED = "surrender_declined"

    # Insurance
    INSURANCE_OFFERED = "insurance_offered"
    INSURANCE_TAKEN = "insurance_taken"
    INSURANCE_DECLINED = "insurance_declined"
    INSURANCE_WINS = "insurance_wins"
    INSURANCE_LOSES = "insurance_loses"

    # Dealer
    DEALER_PEEKS = "dealer_peeks"
    DEALER_REVEALS = "dealer_reveals"
    DEALER_HITS = "dealer_hits"
    DEALER_STANDS = "dealer_stands"
    DEALER_BUSTS = "dealer_busts"
    DEALER_BLACKJACK = "dealer_blackjack"

    # Hand outcomes
    PLAYER_BLACKJACK = "player_blackjack"
    PLAYER_BUSTS = "player_busts"
    PLAYER_WINS = "player_wins"
    PLAYER_LOSES = "player_loses"
    PUSH = "push"

    # Rejections
    INVALID_ACTION = "invalid_action"
    INSUFFICIENT_FUNDS = "insufficient_funds"


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable game event.

    Events report what the engine did; they never drive it.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"


EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Publishes game events to subscribers and keeps a bounded history.

    Handlers subscribe to one event type, or to ``None`` for every event.
    """

    def __init__(self, max_history: int | None = 1000) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._history: deque[GameEvent] = deque(maxlen=max_history)

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        """Record the event, then call type-specific handlers before catch-all ones."""
        self._history.append(event)
        for handler in list(self._handlers.get(event.event_type, [])):
            handler(event)
        for handler in list(self._handlers.get(None, [])):
            handler(event)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """
        Create and emit a new event.

        Args:
            event_type: Type of event
            **data: Event payload

        Returns:
            The created event
        """
        event = GameEvent(event_type=event_type, data=data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
