"""Text-to-image generation through a remote provider.

The relay does not run a diffusion model itself.  It forwards the approved
prompt to a hosted text-to-image endpoint with fixed generation parameters
and relays the first result item verbatim, either as a hosted URL or as an
inline base64 string.  Which of the two is chosen once per deployment via
``RelayConfig.response_format``; the same field name is used for the
rejection placeholder so callers cannot tell the two apart by shape.

Failure mapping
---------------
- non-2xx status: :class:`GenerationUpstreamError` carrying the provider's
  status code and its error message (``error`` string or ``error.message``),
  falling back to a generic message;
- transport failure, timeout, or a 2xx body without a result item:
  :class:`ImageGenerationUnavailable` (HTTP 500).
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal

import httpx

from imagerelay.core.config import RelayConfig
from imagerelay.core.errors import (
    GENERATION_ERROR_MESSAGE,
    GenerationUpstreamError,
    ImageGenerationUnavailable,
)
from imagerelay.core.provider import auth_headers

logger = logging.getLogger(__name__)

ResponseField = Literal["url", "b64_json"]


@dataclass(frozen=True)
class ImageResult:
    """A single image payload ready to be relayed.

    Attributes:
        field: Response field name (``"url"`` or ``"b64_json"``).
        value: Hosted URL or base64-encoded image bytes.
    """

    field: ResponseField
    value: str

    def as_response(self) -> dict[str, str]:
        return {self.field: self.value}


def extract_upstream_error(payload: Any) -> str:
    """Return the provider's error message from a failed response body.

    Accepts ``{"error": "text"}`` and ``{"error": {"message": "text"}}``.
    Anything else yields the generic generation error message.
    """
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, str) and error:
            return error
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message:
                return message
    return GENERATION_ERROR_MESSAGE


class ImageGenerator(ABC):
    """Capability interface for text-to-image generation."""

    @abstractmethod
    async def generate(self, prompt: str) -> ImageResult:
        """Generate one image for *prompt*.

        Raises:
            GenerationUpstreamError: The provider rejected the request.
            ImageGenerationUnavailable: The call failed in transport.
        """


class TogetherImageGenerator(ImageGenerator):
    """Image generator backed by the Together AI images endpoint.

    Args:
        client: Shared async HTTP client whose ``base_url`` points at the
            provider API.
        config: Relay configuration supplying the credential, model,
            dimensions, step count and response format.
    """

    endpoint = "/images/generations"

    def __init__(self, client: httpx.AsyncClient, config: RelayConfig) -> None:
        self._client = client
        self._api_key = config.api_key
        self._deadline = config.request_timeout
        self.response_field: ResponseField = config.response_format
        self._params = {
            "model": config.image_model,
            "width": config.image_width,
            "height": config.image_height,
            "steps": config.image_steps,
            "n": 1,
            "response_format": config.response_format,
        }

    def build_payload(self, prompt: str) -> dict:
        """Build the image generation request body for *prompt*."""
        return {"prompt": prompt, **self._params}

    async def generate(self, prompt: str) -> ImageResult:
        headers = auth_headers(self._api_key)

        try:
            response = await asyncio.wait_for(
                self._client.post(
                    self.endpoint,
                    json=self.build_payload(prompt),
                    headers=headers,
                ),
                timeout=self._deadline,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Image request exceeded {self._deadline}s")
            raise ImageGenerationUnavailable() from e
        except httpx.HTTPError as e:
            logger.error(f"Error generating image: {e!r}")
            raise ImageGenerationUnavailable() from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            message = extract_upstream_error(payload)
            logger.warning(f"Image provider returned HTTP {response.status_code}: {message}")
            raise GenerationUpstreamError(message, status_code=response.status_code)

        try:
            value = payload["data"][0][self.response_field]
        except (TypeError, KeyError, IndexError) as e:
            logger.error(f"Image provider response has no '{self.response_field}' result item")
            raise ImageGenerationUnavailable() from e

        if not isinstance(value, str):
            logger.error(f"Image provider returned a non-string '{self.response_field}'")
            raise ImageGenerationUnavailable()

        logger.info(f"Image generated ({self.response_field})")
        return ImageResult(field=self.response_field, value=value)
