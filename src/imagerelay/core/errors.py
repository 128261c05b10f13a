"""Error taxonomy for the relay pipeline.

Every failure the pipeline can produce is a :class:`RelayError` carrying the
HTTP status and the caller-facing message.  The FastAPI layer converts these
to ``{"error": message}`` responses in a single exception handler, so no
provider body or stack trace ever reaches the caller.

============================  ======  =========================================
Exception                     Status  Raised when
============================  ======  =========================================
InvalidPrompt                 400     ``prompt`` missing, empty or not a string
ConfigurationError            500     provider credential not configured
ModerationUnavailable         500     moderation call failed in transport
ModerationFormatError         500     moderation body had no usable answer
GenerationUpstreamError       relay   image provider returned a non-2xx status
ImageGenerationUnavailable    500     image call failed in transport
============================  ======  =========================================

Rate limiting is handled by slowapi's ``RateLimitExceeded`` and is not part
of this hierarchy.
"""

from __future__ import annotations

INVALID_PROMPT_MESSAGE = "Missing or invalid 'prompt' in request body."
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Only one image per second allowed."
CONFIGURATION_MESSAGE = "Image service is not configured."
MODERATION_FAILED_MESSAGE = "Content moderation failed. Please try again later."
GENERATION_ERROR_MESSAGE = "Error generating image."
INTERNAL_ERROR_MESSAGE = "Internal Server Error"


class RelayError(Exception):
    """Base class for failures that terminate a relay request.

    Attributes:
        message: Caller-facing message placed in the ``error`` field.
        status_code: HTTP status of the terminal response.
    """

    status_code: int = 500
    default_message: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InvalidPrompt(RelayError):
    """The request body does not carry a usable ``prompt`` string."""

    status_code = 400
    default_message = INVALID_PROMPT_MESSAGE


class ConfigurationError(RelayError):
    """The provider credential is missing from the process configuration."""

    default_message = CONFIGURATION_MESSAGE


class ModerationUnavailable(RelayError):
    """The moderation call could not be completed."""

    default_message = MODERATION_FAILED_MESSAGE


class ModerationFormatError(ModerationUnavailable):
    """The moderation response had neither a ``result`` nor ``choices``."""


class GenerationUpstreamError(RelayError):
    """The image provider rejected the request.

    The provider's status code and error message are relayed as-is.
    """

    default_message = GENERATION_ERROR_MESSAGE


class ImageGenerationUnavailable(RelayError):
    """The image call failed in transport or returned an unreadable body."""
