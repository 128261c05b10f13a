"""Image Relay — FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, its routes, the exception handlers that turn every
failure into a JSON ``{"error": ...}`` body, and the ``main()`` CLI function
that launches the uvicorn server.

Architecture
------------
The service is a stateless relay:

- **Configuration** is loaded once by :mod:`imagerelay.core.config` and read
  only here; components receive their settings through constructors.
- **The pipeline** (:class:`~imagerelay.core.pipeline.RelayPipeline`) is
  built in the lifespan around one shared ``httpx.AsyncClient`` and stored
  on ``app.state.pipeline``.
- **Rate limiting** is slowapi's fixed-window limiter, one request per
  second per client address, applied to the generation route only.
- **Static assets** (the moderation placeholder) are served by FastAPI's
  ``StaticFiles`` under ``/static``.

Endpoints
---------
========  ========================  =========================================
Method    Path                      Purpose
========  ========================  =========================================
POST      ``/generate-image``       Moderate a prompt and generate an image
GET       ``/health``               Liveness and configuration check
GET       ``/static/{file}``        Placeholder image and other assets
========  ========================  =========================================

Usage
-----
CLI (installed entry point)::

    imagerelay

Direct invocation::

    python -m imagerelay.api.main
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from imagerelay import __version__
from imagerelay.api.models import (
    ErrorResponse,
    GenerateImageRequest,
    ImageB64Response,
    ImageUrlResponse,
)
from imagerelay.api.rate_limit import (
    GENERATION_RATE_LIMIT,
    limiter,
    rate_limit_exceeded_handler,
)
from imagerelay.core.config import config
from imagerelay.core.errors import (
    INTERNAL_ERROR_MESSAGE,
    INVALID_PROMPT_MESSAGE,
    ConfigurationError,
    RelayError,
)
from imagerelay.core.generation import TogetherImageGenerator
from imagerelay.core.moderation import TogetherModerator
from imagerelay.core.pipeline import RelayPipeline
from imagerelay.core.placeholder import PlaceholderResponder
from imagerelay.core.provider import create_http_client

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("imagerelay.access")


# ---------------------------------------------------------------------------
# Application lifecycle — provider client setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the relay pipeline on startup and close its HTTP client on shutdown.

    A missing provider credential is reported here, once, so operators see
    it at boot.  The service still starts; generation requests then fail
    fast with a configuration error instead of reaching the provider.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    # --- Startup -----------------------------------------------------------
    if not config.api_key:
        logger.warning(
            "No provider API key configured (set TOGETHER_API_KEY or IMAGERELAY_API_KEY); "
            "generation requests will fail."
        )

    http_client = create_http_client(config)
    app.state.pipeline = RelayPipeline(
        moderator=TogetherModerator(http_client, config),
        generator=TogetherImageGenerator(http_client, config),
        placeholder=PlaceholderResponder(
            response_field=config.response_format,
            placeholder_path=config.placeholder_path,
            placeholder_url=config.placeholder_url,
        ),
    )
    logger.info(
        f"Relay pipeline ready (response_format={config.response_format}, "
        f"provider={config.api_base_url})"
    )

    yield  # Application runs here.

    # --- Shutdown ----------------------------------------------------------
    await http_client.aclose()
    logger.info("Provider HTTP client closed on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Image Relay",
    description="Moderated text-to-image relay in front of a hosted generation API.",
    version=__version__,
    lifespan=lifespan,
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=str(config.static_dir)), name="static")


# ---------------------------------------------------------------------------
# Access logging.
# ---------------------------------------------------------------------------


def _client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _log_access(request: Request, status_code: int, started: float) -> None:
    outcome = getattr(request.state, "outcome", None)
    if outcome is None:
        outcome = "ok" if status_code < 400 else "failed"
    duration_ms = (time.perf_counter() - started) * 1000
    access_logger.info(
        f"method={request.method} path={request.url.path} "
        f"client={_client_address(request)} status={status_code} "
        f"outcome={outcome} duration_ms={duration_ms:.1f}"
    )


@app.middleware("http")
async def access_log(request: Request, call_next):
    """Emit one structured log line per request."""
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        _log_access(request, 500, started)
        raise
    _log_access(request, response.status_code, started)
    return response


# ---------------------------------------------------------------------------
# Exception handlers — every failure becomes ``{"error": message}``.
# ---------------------------------------------------------------------------


@app.exception_handler(RequestValidationError)
async def invalid_request_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map any body validation failure to the fixed 400 response."""
    request.state.outcome = "rejected"
    logger.info(f"Rejected request from {_client_address(request)}: {len(exc.errors())} error(s)")
    return JSONResponse(status_code=400, content={"error": INVALID_PROMPT_MESSAGE})


@app.exception_handler(RateLimitExceeded)
async def rate_limited_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    request.state.outcome = "rate_limited"
    return await rate_limit_exceeded_handler(request, exc)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Convert a pipeline failure into its terminal JSON response."""
    if isinstance(exc, ConfigurationError):
        request.state.outcome = "misconfigured"
        logger.error("Request failed: provider credential missing")
    else:
        request.state.outcome = "failed"
        logger.warning(f"Request failed with {type(exc).__name__} ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.post(
    "/generate-image",
    response_model=None,
    responses={
        200: {
            "model": Union[ImageUrlResponse, ImageB64Response],
            "description": "Generated image, or the placeholder if moderation rejected the prompt.",
        },
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
@limiter.limit(GENERATION_RATE_LIMIT)
async def generate_image(request: Request, body: GenerateImageRequest) -> dict:
    """Moderate a prompt and relay the generated image.

    This endpoint:

    1. Validates the body (handled by FastAPI, mapped to 400).
    2. Admits at most one request per second per client address (429).
    3. Asks the moderator whether the prompt is appropriate.
    4. Returns the placeholder if the moderator answered ``no``.
    5. Otherwise generates the image and relays the first result.

    Args:
        request: The incoming request (used by the rate limiter).
        body: Validated :class:`GenerateImageRequest` payload.

    Returns:
        ``{"url": ...}`` or ``{"b64_json": ...}`` depending on the
        deployment's ``response_format``.

    Raises:
        RelayError: Converted to a JSON error by :func:`relay_error_handler`.
    """
    pipeline: RelayPipeline = request.app.state.pipeline
    result = await pipeline.run(body.prompt)
    request.state.outcome = result.outcome
    return result.image.as_response()


@app.get("/health")
async def health() -> dict:
    """Report liveness and whether the provider credential is set."""
    return {
        "status": "ok",
        "version": __version__,
        "configured": bool(config.api_key),
        "response_format": config.response_format,
    }


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~imagerelay.core.config.config`
    (``IMAGERELAY_SERVER_HOST``, ``PORT`` / ``IMAGERELAY_SERVER_PORT``,
    ``IMAGERELAY_LOG_LEVEL``).  Defaults to ``0.0.0.0:3000``.

    This function is registered as the ``imagerelay`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Server listening on port {config.server_port}")

    uvicorn.run(
        "imagerelay.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
