"""Placeholder image returned when moderation rejects a prompt.

A rejection is not an error: the caller gets HTTP 200 and a payload under
the same field as a generated image.  In ``url`` mode that is the relative
path the placeholder is statically served from; in ``b64_json`` mode it is
the placeholder file's bytes, base64-encoded.  No remote call is made.
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path

from imagerelay.core.generation import ImageResult, ResponseField

logger = logging.getLogger(__name__)


class PlaceholderResponder:
    """Build the rejection payload for one deployment's response format.

    Args:
        response_field: ``"url"`` or ``"b64_json"``.
        placeholder_path: Placeholder image on disk.
        placeholder_url: Relative URL the placeholder is served from.
    """

    def __init__(
        self,
        response_field: ResponseField,
        placeholder_path: Path,
        placeholder_url: str,
    ) -> None:
        self.response_field = response_field
        self.placeholder_path = placeholder_path
        self.placeholder_url = placeholder_url
        self._encoded: str | None = None

    def _encode(self) -> str:
        # The file never changes at runtime, so it is read once.
        if self._encoded is None:
            self._encoded = base64.b64encode(self.placeholder_path.read_bytes()).decode("ascii")
            logger.debug(f"Cached placeholder image from {self.placeholder_path}")
        return self._encoded

    def respond(self) -> ImageResult:
        """Return the placeholder payload."""
        if self.response_field == "b64_json":
            return ImageResult(field="b64_json", value=self._encode())
        return ImageResult(field="url", value=self.placeholder_url)
