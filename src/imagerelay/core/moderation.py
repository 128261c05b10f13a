"""Prompt moderation through a remote chat-completion model.

The relay asks an LLM whether a prompt is appropriate for image generation
and expects a one-word ``yes`` or ``no``.  The answer is consumed with a
deliberately asymmetric policy:

- only the exact answer ``"no"`` (after trimming and lower-casing) rejects;
- every other answer, including ``"yes"``, ``"maybe"``, an empty string or
  a rambling sentence, approves.

This is a fail-open policy.  An ambiguous or unexpected moderator answer
must not block legitimate generation; tightening it is a behaviour change.

Components
----------
ContentModerator
    Minimal capability interface: ``await classify(prompt) -> ModerationVerdict``.
    The pipeline depends only on this, so tests and alternate providers can
    substitute their own implementation.
TogetherModerator
    Default implementation against the Together AI chat completions API.
extract_moderation_answer / verdict_from_answer
    Pure parsing helpers, exposed for direct testing.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from imagerelay.core.config import RelayConfig
from imagerelay.core.errors import ModerationFormatError, ModerationUnavailable
from imagerelay.core.provider import auth_headers

logger = logging.getLogger(__name__)

MODERATION_SYSTEM_PROMPT = (
    "You are a content moderator for a text-to-image pipeline. "
    "Your job is to decide if the content is appropriate for image generation.\n\n"
    "**You answer with `yes` or `no` only.**"
)

REJECTION_ANSWER = "no"


@dataclass(frozen=True)
class ModerationVerdict:
    """Outcome of one moderation call.

    Attributes:
        approved: ``False`` only when the moderator answered exactly ``no``.
        answer: The normalised (trimmed, lower-cased) answer text.
    """

    approved: bool
    answer: str


def extract_moderation_answer(payload: Any) -> str:
    """Pull the moderator's answer text out of a provider response body.

    Two shapes are accepted, checked in order:

    1. a top-level ``result`` string (simplified client responses);
    2. an OpenAI-style ``choices`` list, reading
       ``choices[0]["message"]["content"]``.

    Args:
        payload: Decoded JSON response body.

    Returns:
        The raw answer text, not yet normalised.

    Raises:
        ModerationFormatError: If neither shape yields a string.
    """
    if not isinstance(payload, dict):
        raise ModerationFormatError()

    result = payload.get("result")
    if isinstance(result, str) and result:
        return result

    choices = payload.get("choices")
    if isinstance(choices, list) and choices:
        first = choices[0]
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, str):
            return content

    raise ModerationFormatError()


def verdict_from_answer(answer: str) -> ModerationVerdict:
    """Apply the fail-open policy to a raw moderator answer."""
    normalised = answer.strip().lower()
    return ModerationVerdict(approved=normalised != REJECTION_ANSWER, answer=normalised)


class ContentModerator(ABC):
    """Capability interface for prompt moderation."""

    @abstractmethod
    async def classify(self, prompt: str) -> ModerationVerdict:
        """Classify *prompt* as appropriate or not.

        Raises:
            ModerationUnavailable: If the verdict could not be obtained.
        """


class TogetherModerator(ContentModerator):
    """Moderator backed by the Together AI chat completions endpoint.

    Args:
        client: Shared async HTTP client whose ``base_url`` points at the
            provider API.
        config: Relay configuration supplying the credential, model and
            sampling parameters.
    """

    endpoint = "/chat/completions"

    def __init__(self, client: httpx.AsyncClient, config: RelayConfig) -> None:
        self._client = client
        self._api_key = config.api_key
        self._deadline = config.request_timeout
        self._model = config.moderation_model
        self._sampling = {
            "max_tokens": config.moderation_max_tokens,
            "temperature": config.moderation_temperature,
            "top_p": config.moderation_top_p,
            "top_k": config.moderation_top_k,
            "repetition_penalty": config.moderation_repetition_penalty,
            "stop": list(config.moderation_stop),
        }

    def build_payload(self, prompt: str) -> dict:
        """Build the chat completion request body for *prompt*."""
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": MODERATION_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            **self._sampling,
            "stream": False,
        }

    async def classify(self, prompt: str) -> ModerationVerdict:
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
            response.raise_for_status()
        except asyncio.TimeoutError as e:
            logger.error(f"Moderation request exceeded {self._deadline}s")
            raise ModerationUnavailable() from e
        except httpx.HTTPStatusError as e:
            logger.error(f"Moderation provider returned HTTP {e.response.status_code}")
            raise ModerationUnavailable() from e
        except httpx.HTTPError as e:
            logger.error(f"Moderation request failed: {e!r}")
            raise ModerationUnavailable() from e

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("Moderation provider returned a non-JSON body")
            raise ModerationFormatError() from e

        try:
            answer = extract_moderation_answer(payload)
        except ModerationFormatError:
            shape = sorted(payload) if isinstance(payload, dict) else type(payload).__name__
            logger.error(f"Unexpected format from moderation response: {shape}")
            raise

        verdict = verdict_from_answer(answer)
        logger.info(f"Content moderation result: {verdict.answer!r} (approved={verdict.approved})")
        return verdict
