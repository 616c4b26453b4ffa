"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


@dataclass(frozen=True)
class CORSConfig:
    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    enabled: bool = field(default_factory=lambda: _env_bool("RATE_LIMIT_ENABLED", "true"))
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "60"))
    )


@dataclass(frozen=True)
class SecurityConfig:
    """Secret used to sign session ids."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection configuration."""

    enabled: bool = field(default_factory=lambda: _env_bool("REDIS_ENABLED", "true"))
    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class GameConfig:
    """Default table configuration for new sessions."""

    num_decks: int = field(default_factory=lambda: int(os.getenv("GAME_NUM_DECKS", "6")))
    penetration: float = field(
        default_factory=lambda: float(os.getenv("GAME_PENETRATION", "0.75"))
    )
    min_bet: int = field(default_factory=lambda: int(os.getenv("GAME_MIN_BET", "10")))
    max_bet: int = field(default_factory=lambda: int(os.getenv("GAME_MAX_BET", "1000")))
    blackjack_payout: float = field(
        default_factory=lambda: float(os.getenv("GAME_BLACKJACK_PAYOUT", "1.5"))
    )
    dealer_hits_soft_17: bool = field(default_factory=lambda: _env_bool("GAME_H17", "true"))
    double_after_split: bool = True
    resplit_aces: bool = False
    surrender_allowed: str = field(default_factory=lambda: os.getenv("GAME_SURRENDER", "late"))
    max_splits: int = 4
    starting_bankroll: int = field(
        default_factory=lambda: int(os.getenv("GAME_STARTING_BANKROLL", "1000"))
    )
    shuffle_method: str = field(
        default_factory=lambda: os.getenv("GAME_SHUFFLE_METHOD", "fisher-yates")
    )
    reshuffle_between_rounds: bool = True
    counting_system: str = field(
        default_factory=lambda: os.getenv("GAME_COUNTING_SYSTEM", "hi-lo")
    )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", "false"))
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    session_ttl: int = 3600  # Session timeout in seconds
    stats_cache_ttl: float = field(
        default_factory=lambda: float(os.getenv("STATS_CACHE_TTL", "30"))
    )

    redis: RedisConfig = field(default_factory=RedisConfig)
    game: GameConfig = field(default_factory=GameConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global configuration instance
config = AppConfig()
