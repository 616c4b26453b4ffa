"""Blackjack rule variations."""

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Literal

from blackjack.errors import InvalidConfigurationError

if TYPE_CHECKING:
    from config import GameConfig


@dataclass(frozen=True)
class RuleSet:
    """
    Blackjack table rules configuration.

    Everything the engine needs to know about a table: shoe, limits, dealer
    behaviour, payouts and which player options are offered.
    """

    # Shoe configuration
    num_decks: int = 6
    penetration: float = 0.75

    # Betting limits
    min_bet: int = 10
    max_bet: int = 1000

    # Dealer rules
    dealer_hits_soft_17: bool = True  # H17 vs S17

    # Blackjack payout (3:2 = 1.5, 6:5 = 1.2)
    blackjack_payout: float = 1.5

    # Double down rules
    double_after_split: bool = True  # DAS
    double_on: Literal["any", "9-11", "10-11"] = "any"

    # Split rules
    resplit_aces: bool = False  # RSA
    hit_split_aces: bool = False  # Usually only one card to split aces
    max_splits: int = 4  # Maximum number of hands from splitting

    # Surrender rules
    surrender: Literal["none", "early", "late"] = "late"

    # Insurance (pays 2:1)
    insurance_allowed: bool = True

    # Peek rules (dealer checks for blackjack)
    dealer_peeks: bool = True  # US rules (ENHC = European No Hole Card if False)

    # Seats at the table
    max_players: int = 7

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.num_decks < 1 or self.num_decks > 8:
            raise InvalidConfigurationError("num_decks must be between 1 and 8")
        if not 0.0 < self.penetration <= 1.0:
            raise InvalidConfigurationError("penetration must be in (0, 1]")
        if self.min_bet < 1:
            raise InvalidConfigurationError("min_bet must be positive")
        if self.max_bet < self.min_bet:
            raise InvalidConfigurationError("max_bet must not be below min_bet")
        if self.blackjack_payout < 1.0:
            raise InvalidConfigurationError("blackjack_payout must be at least 1.0")
        if self.max_splits < 1:
            raise InvalidConfigurationError("max_splits must be at least 1")
        if self.double_on not in ("any", "9-11", "10-11"):
            raise InvalidConfigurationError(f"Unknown double_on rule: {self.double_on}")
        if self.surrender not in ("none", "early", "late"):
            raise InvalidConfigurationError(f"Unknown surrender rule: {self.surrender}")
        if self.max_players < 1:
            raise InvalidConfigurationError("max_players must be at least 1")

    @property
    def blackjack_ratio(self) -> Decimal:
        """Blackjack payout ratio as a Decimal."""
        return Decimal(str(self.blackjack_payout))

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view of the rules."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_config(cls, game_config: "GameConfig") -> "RuleSet":
        """Build the default table rules from application configuration."""
        return cls(
            num_decks=game_config.num_decks,
            penetration=game_config.penetration,
            min_bet=game_config.min_bet,
            max_bet=game_config.max_bet,
            dealer_hits_soft_17=game_config.dealer_hits_soft_17,
            blackjack_payout=game_config.blackjack_payout,
            double_after_split=game_config.double_after_split,
            resplit_aces=game_config.resplit_aces,
            surrender=game_config.surrender_allowed,
            max_splits=game_config.max_splits,
        )

    @classmethod
    def vegas_strip(cls) -> "RuleSet":
        """Standard Vegas Strip rules."""
        return cls(
            num_decks=6,
            dealer_hits_soft_17=False,
            blackjack_payout=1.5,
            double_after_split=True,
            double_on="any",
            resplit_aces=False,
            surrender="late",
        )

    @classmethod
    def downtown_vegas(cls) -> "RuleSet":
        """Downtown Las Vegas rules (typically H17)."""
        return cls(
            num_decks=6,
            dealer_hits_soft_17=True,
            blackjack_payout=1.5,
            double_after_split=True,
            double_on="any",
            resplit_aces=False,
            surrender="late",
        )

    @classmethod
    def single_deck(cls) -> "RuleSet":
        """Single deck rules, 6:5 blackjack."""
        return cls(
            num_decks=1,
            dealer_hits_soft_17=True,
            blackjack_payout=1.2,
            double_after_split=False,
            double_on="any",
            resplit_aces=False,
            surrender="none",
        )

    @classmethod
    def atlantic_city(cls) -> "RuleSet":
        """Atlantic City rules."""
        return cls(
            num_decks=8,
            dealer_hits_soft_17=False,
            blackjack_payout=1.5,
            double_after_split=True,
            double_on="any",
            resplit_aces=False,
            surrender="late",
        )

    @classmethod
    def european(cls) -> "RuleSet":
        """European rules: no hole card peek, double on 9-11 only, no surrender."""
        return cls(
            num_decks=6,
            dealer_hits_soft_17=False,
            blackjack_payout=1.5,
            double_after_split=True,
            double_on="9-11",
            resplit_aces=False,
            surrender="none",
            dealer_peeks=False,
        )


PRESETS = {
    "vegas": RuleSet.vegas_strip,
    "downtown": RuleSet.downtown_vegas,
    "single-deck": RuleSet.single_deck,
    "atlantic": RuleSet.atlantic_city,
    "european": RuleSet.european,
}


def get_rules(variant: str) -> RuleSet:
    """Look up a named rule preset."""
    try:
        factory = PRESETS[variant]
    except KeyError:
        raise InvalidConfigurationError(f"Unknown game variant: {variant}") from None
    return factory()
