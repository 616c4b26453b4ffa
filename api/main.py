"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from api.routes import betting, game, stats
from blackjack.errors import (
    BlackjackError,
    EmptyShoeError,
    IllegalActionError,
    InsufficientFundsError,
    InvalidConfigurationError,
)
from config import config

logging.basicConfig(level=config.logging.level, format=config.logging.format)
logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    enabled=config.rate_limit.enabled,
    default_limits=[f"{config.rate_limit.requests_per_minute}/minute"],
)


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


def _engine_error_handler(request: Request, exc: BlackjackError) -> JSONResponse:
    """Translate engine errors: bad input is 400, wrong moment is 409."""
    if isinstance(exc, InvalidConfigurationError):
        status_code = 400
    elif isinstance(exc, (IllegalActionError, EmptyShoeError)):
        status_code = 409
    else:
        status_code = 500

    content: dict[str, object] = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, InsufficientFundsError):
        content["required"] = str(exc.required)
        content["available"] = str(exc.available)

    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=content)


app = FastAPI(
    title="Blackjack Table",
    description="Casino blackjack rules and session engine API",
    version="0.1.0",
    debug=config.debug,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(BlackjackError, _engine_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)


@app.get("/api/health")
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def health_check(request: Request) -> dict[str, str]:
    return {"status": "healthy"}


app.include_router(game.router, prefix="/api/game", tags=["game"])
app.include_router(betting.router, prefix="/api/betting", tags=["betting"])
app.include_router(stats.router, prefix="/api/stats", tags=["stats"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.host, port=config.port, log_level=config.logging.level.lower())
