"""Pydantic schemas for API requests and responses."""

from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field

SideBetName = Literal[
    "perfect-pairs",
    "21+3",
    "lucky-lucky",
    "royal-match",
    "over-under-13",
]
StrategyName = Literal[
    "flat",
    "martingale",
    "paroli",
    "dalembert",
    "fibonacci",
    "oscars-grind",
    "1-3-2-6",
]
ShuffleName = Literal["fisher-yates", "riffle", "overhand", "strip"]
VariantName = Literal["vegas", "downtown", "single-deck", "atlantic", "european"]
CountingName = Literal["hi-lo", "hi-opt-1", "hi-opt-2", "omega-2", "ko", "zen", "halves"]


# Game schemas
class NewGameRequest(BaseModel):
    """Options for a new table session."""

    variant: VariantName | None = None
    seed: int | None = None
    starting_bankroll: Decimal | None = Field(default=None, ge=0)
    shuffle_method: ShuffleName | None = None
    counting_system: CountingName | None = None


class SideBetRequest(BaseModel):
    type: SideBetName
    amount: Decimal = Field(..., gt=0)
    selection: Literal["over", "under", "exactly"] | None = None


class BetRequest(BaseModel):
    """Request to place a bet and deal."""

    amount: Decimal = Field(..., gt=0, description="Main bet amount")
    side_bets: list[SideBetRequest] = []
    player_id: str = "player"


class ActionRequest(BaseModel):
    """Request for player action."""

    action: Literal["hit", "stand", "double", "split", "surrender"]
    hand_id: str | None = None


class SurrenderRequest(BaseModel):
    """Early surrender decision, made before the dealer checks for blackjack."""

    take: bool
    player_id: str = "player"


class InsuranceRequest(BaseModel):
    take: bool
    amount: Decimal | None = Field(default=None, gt=0)
    player_id: str = "player"


class ReshuffleRequest(BaseModel):
    method: ShuffleName | None = None
    seed: int | None = None


class CardResponse(BaseModel):
    """A card; rank and suit are null while face down."""

    rank: str | None
    suit: str | None
    face_up: bool


class HandResponse(BaseModel):
    id: str
    player_id: str
    cards: list[CardResponse]
    totals: list[int]
    value: int
    is_soft: bool
    is_blackjack: bool
    is_busted: bool
    bet: Decimal
    status: str
    result: str | None
    is_doubled: bool
    is_split_hand: bool
    split_from: str | None = None


class SideBetResponse(BaseModel):
    id: str
    type: str
    amount: Decimal
    player_id: str
    selection: str | None
    status: str
    payout: Decimal
    winning_combination: str | None


class PlayerResponse(BaseModel):
    id: str
    bankroll: Decimal
    hands: list[HandResponse]
    insurance_bet: Decimal
    side_bets: list[SideBetResponse]


class ShoeResponse(BaseModel):
    cards_remaining: int
    total_cards: int
    cut_card_position: int
    needs_reshuffle: bool
    decks_remaining: float


class DealerMoveResponse(BaseModel):
    step: int
    state: str
    card: CardResponse | None
    cards: list[CardResponse]
    value: int
    is_soft: bool


class CountResponse(BaseModel):
    system: str
    name: str
    balanced: bool
    running_count: float
    true_count: float
    cards_seen: int
    bet_units: int


class AdviceResponse(BaseModel):
    """Basic strategy for the pending decision."""

    action: str
    take: bool
    explanation: str


class OddsResponse(BaseModel):
    """Exact probabilities from the unseen cards."""

    dealer: dict[str, float]
    dealer_bust: float
    player_bust_on_hit: float | None


class GameStateResponse(BaseModel):
    """Current table state, hole card masked."""

    phase: str
    round: int
    rules: dict[str, Any]
    shoe: ShoeResponse
    dealer: HandResponse
    players: list[PlayerResponse]
    active_hand_id: str | None
    legal_actions: list[str]
    dealer_moves: list[DealerMoveResponse]
    last_round: dict[str, Any] | None
    count: CountResponse
    advice: AdviceResponse | None
    odds: OddsResponse | None


class NewGameResponse(BaseModel):
    session_id: str
    state: GameStateResponse


class HandSettlementResponse(BaseModel):
    hand_id: str
    player_id: str
    result: str
    bet: Decimal
    payout: Decimal
    net: Decimal


class InsuranceSettlementResponse(BaseModel):
    player_id: str
    amount: Decimal
    won: bool
    payout: Decimal
    net: Decimal


class SideBetResultResponse(BaseModel):
    bet_id: str
    type: str
    player_id: str
    amount: Decimal
    won: bool
    combination: str | None
    multiplier: Decimal
    payout: Decimal


class SettlementResponse(BaseModel):
    """Everything paid out in the last round."""

    hands: list[HandSettlementResponse]
    insurance: list[InsuranceSettlementResponse]
    side_bets: list[SideBetResultResponse]
    dealer_total: int
    dealer_busted: bool
    dealer_blackjack: bool
    total_wagered: Decimal
    total_payout: Decimal
    net: Decimal


# Betting schemas
class NextBetRequest(BaseModel):
    """Inputs for a bet-progression suggestion."""

    strategy: StrategyName
    history: list[Literal["win", "loss", "push", "blackjack", "surrender"]] = []
    current_bet: Decimal = Field(default=Decimal("0"), ge=0)
    base_unit: Decimal = Field(..., gt=0)
    min_bet: Decimal = Field(..., gt=0)
    max_bet: Decimal = Field(..., gt=0)
    balance: Decimal = Field(..., ge=0)


class NextBetResponse(BaseModel):
    strategy: str
    amount: Decimal


class StrategyInfo(BaseModel):
    type: str
    name: str
    description: str
    risk: str


# Statistics schemas
class StatsSummaryResponse(BaseModel):
    """Per-session play summary."""

    rounds_played: int
    hands_played: int
    wins: int
    losses: int
    pushes: int
    blackjacks: int
    surrenders: int
    win_rate: float
    total_wagered: Decimal
    total_returned: Decimal
    net_result: Decimal
    bankroll: Decimal
