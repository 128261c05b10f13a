"""Tests for imagerelay.api.models — Pydantic request/response models.

Tests cover:
- Strict string validation of ``prompt`` (no coercion from other types).
- Rejection of empty prompts.
- Success and error response models.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from imagerelay.api.models import (
    ErrorResponse,
    GenerateImageRequest,
    ImageB64Response,
    ImageUrlResponse,
)


class TestGenerateImageRequest:
    """Test GenerateImageRequest Pydantic model."""

    def test_valid_prompt(self):
        req = GenerateImageRequest(prompt="a red bicycle")
        assert req.prompt == "a red bicycle"

    def test_whitespace_prompt_is_kept_verbatim(self):
        """Only emptiness is rejected; the prompt is forwarded unmodified."""
        req = GenerateImageRequest(prompt="  a cat  ")
        assert req.prompt == "  a cat  "

    def test_missing_prompt_raises(self):
        with pytest.raises(ValidationError):
            GenerateImageRequest()

    def test_empty_prompt_raises(self):
        with pytest.raises(ValidationError):
            GenerateImageRequest(prompt="")

    @pytest.mark.parametrize("value", [42, 4.2, True, None, ["a"], {"text": "a"}, b"bytes"])
    def test_non_string_prompt_raises(self, value):
        """Non-string values must not be coerced into a prompt."""
        with pytest.raises(ValidationError):
            GenerateImageRequest(prompt=value)


class TestResponseModels:
    def test_url_response(self):
        assert ImageUrlResponse(url="https://x/img.png").model_dump() == {"url": "https://x/img.png"}

    def test_b64_response(self):
        assert ImageB64Response(b64_json="R0lG").model_dump() == {"b64_json": "R0lG"}

    def test_error_response(self):
        assert ErrorResponse(error="boom").model_dump() == {"error": "boom"}
