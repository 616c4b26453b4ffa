"""Statistics API endpoints."""

from decimal import Decimal
from typing import Any, Iterable

from fastapi import APIRouter

from api.games import SESSION_KEY_HISTORY, SessionID, get_game, load_session, stats_cache
from api.schemas import StatsSummaryResponse

router = APIRouter()

_RESULT_COUNTERS = {
    "win": "wins",
    "blackjack": "wins",
    "loss": "losses",
    "surrender": "losses",
    "push": "pushes",
}


def summarize(history: Iterable[dict[str, Any]], bankroll: Decimal) -> dict[str, Any]:
    """
    Aggregate settled rounds into a session summary.

    Args:
        history: Settlement dicts, oldest first
        bankroll: Current bankroll across all seats

    Returns:
        Field values for :class:`StatsSummaryResponse`
    """
    summary: dict[str, Any] = {
        "rounds_played": 0,
        "hands_played": 0,
        "wins": 0,
        "losses": 0,
        "pushes": 0,
        "blackjacks": 0,
        "surrenders": 0,
    }
    wagered = Decimal("0")
    returned = Decimal("0")

    for settlement in history:
        summary["rounds_played"] += 1
        wagered += Decimal(settlement["total_wagered"])
        returned += Decimal(settlement["total_payout"])
        for hand in settlement["hands"]:
            summary["hands_played"] += 1
            summary[_RESULT_COUNTERS[hand["result"]]] += 1
            if hand["result"] == "blackjack":
                summary["blackjacks"] += 1
            elif hand["result"] == "surrender":
                summary["surrenders"] += 1

    hands = summary["hands_played"]
    summary["win_rate"] = summary["wins"] / hands if hands else 0.0
    summary["total_wagered"] = wagered
    summary["total_returned"] = returned
    summary["net_result"] = returned - wagered
    summary["bankroll"] = bankroll
    return summary


@router.get("/summary")
async def session_summary(session_id: SessionID) -> StatsSummaryResponse:
    """Session statistics, cached until the next settled round."""
    game = await get_game(session_id)
    session_data = await load_session(session_id)
    history = session_data.get(SESSION_KEY_HISTORY, [])
    bankroll = sum((player.bankroll for player in game.players), Decimal("0"))

    summary = stats_cache.get_or_compute(session_id, lambda: summarize(history, bankroll))
    return StatsSummaryResponse(**summary)
