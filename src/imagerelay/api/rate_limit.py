"""Per-client rate limiting for the generation endpoint.

A slowapi :class:`~slowapi.Limiter` keyed by the client address with the
``fixed-window`` strategy and in-memory storage.  Each client may pass one
request per one-second window; the storage increments counters under a
per-key lock, so concurrent bursts from one address are not undercounted.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from imagerelay.core.config import config
from imagerelay.core.errors import RATE_LIMIT_MESSAGE

GENERATION_RATE_LIMIT = "1/second"

limiter = Limiter(
    key_func=get_remote_address,
    strategy="fixed-window",
    enabled=config.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Convert slowapi's exception into the fixed 429 response."""
    return JSONResponse(status_code=429, content={"error": RATE_LIMIT_MESSAGE})
