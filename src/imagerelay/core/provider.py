"""Shared HTTP plumbing for the remote provider clients.

Both the moderation and the image client talk to the same OpenAI-compatible
REST API with the same bearer credential.  This module builds the single
``httpx.AsyncClient`` the application shares between them, and the helper
that refuses to issue a call without a credential.
"""

from __future__ import annotations

import logging

import httpx

from imagerelay.core.config import RelayConfig
from imagerelay.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


def create_http_client(config: RelayConfig) -> httpx.AsyncClient:
    """Create the async HTTP client used for every provider call.

    ``httpx.Timeout`` bounds each phase (connect, read, write, pool) on its
    own.  A provider that trickles bytes can outlast it, so the clients also
    wrap each call in ``asyncio.wait_for`` with the same value as a total
    deadline.

    Args:
        config: Loaded relay configuration.

    Returns:
        A new ``httpx.AsyncClient``; the caller owns and must close it.
    """
    return httpx.AsyncClient(
        base_url=config.api_base_url.rstrip("/"),
        timeout=httpx.Timeout(config.request_timeout),
        headers={"Content-Type": "application/json"},
    )


def auth_headers(api_key: str | None) -> dict[str, str]:
    """Return the Authorization header for *api_key*.

    Raises:
        ConfigurationError: If no credential is configured.
    """
    if not api_key:
        logger.error("Provider API key is not configured; refusing to call the provider.")
        raise ConfigurationError()
    return {"Authorization": f"Bearer {api_key}"}
