"""Pydantic request and response models for the Image Relay API.

FastAPI uses these for request validation and OpenAPI documentation.

Models
------
GenerateImageRequest
    Payload for ``POST /generate-image``.
ImageUrlResponse / ImageB64Response
    Success payloads; a deployment exposes exactly one of them, for both
    generated images and the moderation placeholder.
ErrorResponse
    Body of every 4xx/5xx response.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictStr


class GenerateImageRequest(BaseModel):
    """Request body for the ``POST /generate-image`` endpoint.

    Attributes:
        prompt: Text description of the image.  Must be a non-empty JSON
            string; numbers, nulls and other types are not coerced.
    """

    prompt: StrictStr = Field(
        ...,
        min_length=1,
        description="Text prompt describing the image to generate.",
    )


class ImageUrlResponse(BaseModel):
    """Success body in ``url`` mode."""

    url: str = Field(..., description="Hosted image URL or the placeholder path.")


class ImageB64Response(BaseModel):
    """Success body in ``b64_json`` mode."""

    b64_json: str = Field(..., description="Base64-encoded image bytes.")


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str = Field(..., description="Human-readable error message.")
