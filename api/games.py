"""Per-session game registry and persistence."""

import logging
import time
from decimal import Decimal
from typing import Annotated, Any

from fastapi import Depends, Header, HTTPException

from api.session import extract_session_id, get_session, update_session
from blackjack.betting import Outcome
from blackjack.cache import TimedCache
from blackjack.cards import Card, Shoe
from blackjack.game import BlackjackGame, GamePhase
from blackjack.rules import RuleSet
from config import config

logger = logging.getLogger(__name__)

# In-memory game cache (for performance, backed by session store)
_games: dict[str, BlackjackGame] = {}

# Per-session stats summaries, dropped whenever the game is saved
stats_cache: TimedCache[dict[str, Any]] = TimedCache(ttl=config.stats_cache_ttl)

# Session data keys
SESSION_KEY_GAME = "game"
SESSION_KEY_HISTORY = "history"
SESSION_KEY_SETTLED_ROUND = "settled_round"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"

MAX_HISTORY = 100


async def require_session(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> str:
    """Reject unsigned or expired session tokens."""
    if extract_session_id(session_id) is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return session_id


SessionID = Annotated[str, Depends(require_session)]


def new_game(
    rules: RuleSet | None = None,
    seed: int | None = None,
    shuffle_method: str | None = None,
    starting_bankroll: Decimal | None = None,
    counting_system: str | None = None,
) -> BlackjackGame:
    """Build a table from application defaults, overridden per argument."""
    return BlackjackGame(
        rules=rules or RuleSet.from_config(config.game),
        seed=seed,
        shuffle_method=shuffle_method or config.game.shuffle_method,
        starting_bankroll=(
            starting_bankroll
            if starting_bankroll is not None
            else Decimal(config.game.starting_bankroll)
        ),
        reshuffle_between_rounds=config.game.reshuffle_between_rounds,
        counting_system=counting_system or config.game.counting_system,
    )


def serialize_game(game: BlackjackGame) -> dict[str, Any]:
    """
    Serialize a table between rounds.

    Only the state that survives a round is kept: rules, shoe order and
    cursor, the card count, bankrolls and outcome history. Stakes placed
    but not yet dealt are refunded into the saved bankroll.
    """
    return {
        "rules": game.rules.to_dict(),
        "round": game.round_number,
        "shuffle_method": game.shuffle_method.value,
        "reshuffle_between_rounds": game.reshuffle_between_rounds,
        "shoe": game.shoe.to_dict(),
        "count": {
            "system": game.counter.system.key,
            "running_count": game.counter.running_count,
            "cards_seen": game.counter.cards_seen,
        },
        "players": [
            {
                "id": player.id,
                "bankroll": str(player.bankroll + player.stake),
                "last_bet": str(player.last_bet),
                "history": [outcome.value for outcome in player.history],
            }
            for player in game.players
        ],
    }


def deserialize_game(data: dict[str, Any]) -> BlackjackGame:
    """Restore a table saved by :func:`serialize_game`."""
    game = BlackjackGame(
        rules=RuleSet(**data["rules"]),
        shuffle_method=data["shuffle_method"],
        reshuffle_between_rounds=data["reshuffle_between_rounds"],
        player_id=None,
        counting_system=data["count"]["system"],
    )
    shoe = data["shoe"]
    game.shoe = Shoe.from_cards(
        [Card.from_string(card) for card in shoe["cards"]],
        num_decks=shoe["num_decks"],
        penetration=shoe["penetration"],
        cards_dealt=shoe["cards_dealt"],
        rng=game.rng,
    )
    game.counter.restore(data["count"]["running_count"], data["count"]["cards_seen"])
    game.round_number = data["round"]
    for entry in data["players"]:
        player = game.add_player(entry["id"], Decimal(entry["bankroll"]))
        player.last_bet = Decimal(entry["last_bet"])
        player.history = [Outcome(outcome) for outcome in entry["history"]]
    return game


async def load_session(session_id: str) -> dict[str, Any]:
    return await get_session(session_id) or {}


async def save_game(session_id: str, game: BlackjackGame, reset: bool = False) -> None:
    """
    Save the table and record a newly settled round.

    A game is only written while it is between rounds, so a restart
    mid-round restores the table as it was before that round's bets.
    """
    session_data = {} if reset else await load_session(session_id)
    now = int(time.time())

    settlement = game.last_settlement
    settled_round = game.last_settled_round
    if settlement is not None and session_data.get(SESSION_KEY_SETTLED_ROUND) != settled_round:
        history = session_data.get(SESSION_KEY_HISTORY, [])
        history.append(settlement.to_dict())
        session_data[SESSION_KEY_HISTORY] = history[-MAX_HISTORY:]
        session_data[SESSION_KEY_SETTLED_ROUND] = settled_round

    if game.phase == GamePhase.BETTING:
        session_data[SESSION_KEY_GAME] = serialize_game(game)
    session_data[SESSION_KEY_LAST_ACTIVITY] = now
    session_data.setdefault(SESSION_KEY_CREATED_AT, now)
    await update_session(session_id, session_data)
    stats_cache.invalidate(session_id)


async def get_game(session_id: str) -> BlackjackGame:
    """Get the session's game from memory, the session store, or start one."""
    if session_id in _games:
        return _games[session_id]

    session_data = await load_session(session_id)
    if SESSION_KEY_GAME in session_data:
        game = deserialize_game(session_data[SESSION_KEY_GAME])
        logger.debug("Restored game for session from store (round %d)", game.round_number)
    else:
        game = new_game()
        await save_game(session_id, game)

    _games[session_id] = game
    return game


def register_game(session_id: str, game: BlackjackGame) -> None:
    _games[session_id] = game
    stats_cache.invalidate(session_id)


def forget_games() -> None:
    """Drop every cached game (sessions stay in the store)."""
    _games.clear()
    stats_cache.clear()
