"""Game API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header, HTTPException

from api.games import SessionID, get_game, new_game, register_game, save_game
from api.schemas import (
    ActionRequest,
    BetRequest,
    GameStateResponse,
    InsuranceRequest,
    NewGameRequest,
    NewGameResponse,
    OddsResponse,
    ReshuffleRequest,
    SettlementResponse,
    SurrenderRequest,
)
from api.session import create_session, extract_session_id
from blackjack.game import BlackjackGame
from blackjack.rules import get_rules

router = APIRouter()


def _state(game: BlackjackGame) -> GameStateResponse:
    return GameStateResponse.model_validate(game.snapshot())


@router.post("/new")
async def start_game(
    request: NewGameRequest | None = None,
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> NewGameResponse:
    """Start a fresh table, reusing the session when its token is valid."""
    if session_id is None or extract_session_id(session_id) is None:
        session_id = await create_session()

    options = request or NewGameRequest()
    game = new_game(
        rules=get_rules(options.variant) if options.variant else None,
        seed=options.seed,
        shuffle_method=options.shuffle_method,
        starting_bankroll=options.starting_bankroll,
        counting_system=options.counting_system,
    )
    register_game(session_id, game)
    await save_game(session_id, game, reset=True)

    return NewGameResponse(session_id=session_id, state=_state(game))


@router.get("/state")
async def get_state(session_id: SessionID) -> GameStateResponse:
    game = await get_game(session_id)
    return _state(game)


@router.post("/bet")
async def place_bet(request: BetRequest, session_id: SessionID) -> GameStateResponse:
    """Place a bet (with optional side bets) and deal."""
    game = await get_game(session_id)
    game.bet(
        request.amount,
        side_bets=[side_bet.model_dump() for side_bet in request.side_bets],
        player_id=request.player_id,
    )
    await save_game(session_id, game)
    return _state(game)


@router.post("/action")
async def player_action(request: ActionRequest, session_id: SessionID) -> GameStateResponse:
    """Execute a player action on the active hand."""
    game = await get_game(session_id)

    actions = {
        "hit": game.hit,
        "stand": game.stand,
        "double": game.double_down,
        "split": game.split,
        "surrender": game.surrender,
    }
    actions[request.action](request.hand_id)

    await save_game(session_id, game)
    return _state(game)


@router.post("/early-surrender")
async def early_surrender(request: SurrenderRequest, session_id: SessionID) -> GameStateResponse:
    """Surrender or play on before the dealer checks for blackjack."""
    game = await get_game(session_id)
    if request.take:
        game.take_early_surrender(request.player_id)
    else:
        game.decline_surrender(request.player_id)

    await save_game(session_id, game)
    return _state(game)


@router.post("/insurance")
async def insurance(request: InsuranceRequest, session_id: SessionID) -> GameStateResponse:
    """Take or decline insurance while the dealer shows an Ace."""
    game = await get_game(session_id)
    if request.take:
        game.take_insurance(request.player_id, request.amount)
    else:
        game.decline_insurance(request.player_id)

    await save_game(session_id, game)
    return _state(game)


@router.post("/reshuffle")
async def reshuffle(session_id: SessionID, request: ReshuffleRequest | None = None) -> GameStateResponse:
    game = await get_game(session_id)
    options = request or ReshuffleRequest()
    game.reshuffle(options.method, options.seed)
    await save_game(session_id, game)
    return _state(game)


@router.get("/odds")
async def odds(session_id: SessionID) -> OddsResponse:
    """Dealer outcome and bust probabilities while the hole card is down."""
    game = await get_game(session_id)
    result = game.odds()
    if result is None:
        raise HTTPException(status_code=404, detail="No hand in play")
    return OddsResponse.model_validate(result)


@router.get("/settlement")
async def last_settlement(session_id: SessionID) -> SettlementResponse:
    """Payouts from the most recent round."""
    game = await get_game(session_id)
    if game.last_settlement is None:
        raise HTTPException(status_code=404, detail="No round has been settled yet")
    return SettlementResponse.model_validate(game.last_settlement.to_dict())
