"""Betting strategy endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from api.games import SessionID, get_game
from api.schemas import NextBetRequest, NextBetResponse, StrategyInfo, StrategyName
from blackjack.betting import STRATEGIES, next_bet

router = APIRouter()


@router.get("/strategies")
async def list_strategies() -> list[StrategyInfo]:
    return [
        StrategyInfo(
            type=strategy.type.value,
            name=strategy.name,
            description=strategy.description,
            risk=strategy.risk,
        )
        for strategy in STRATEGIES.values()
    ]


@router.post("/next")
async def suggest_next_bet(request: NextBetRequest) -> NextBetResponse:
    """Suggest the next wager from an explicit outcome history."""
    amount = next_bet(
        request.strategy,
        request.history,
        request.current_bet,
        request.base_unit,
        request.min_bet,
        request.max_bet,
        request.balance,
    )
    return NextBetResponse(strategy=request.strategy, amount=amount)


@router.get("/suggest")
async def suggest_for_session(
    session_id: SessionID,
    strategy: Annotated[StrategyName, Query()] = "flat",
    player_id: Annotated[str, Query()] = "player",
) -> NextBetResponse:
    """Suggest the next wager from the session's own round history."""
    game = await get_game(session_id)
    amount = game.suggest_next_bet(strategy, player_id)
    return NextBetResponse(strategy=strategy, amount=amount)
