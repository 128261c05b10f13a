"""The moderate-then-generate request pipeline.

One call to :meth:`RelayPipeline.run` takes a validated prompt through:

1. moderation, via a :class:`~imagerelay.core.moderation.ContentModerator`;
2. on rejection, the placeholder from :class:`PlaceholderResponder`;
3. on approval, generation via an
   :class:`~imagerelay.core.generation.ImageGenerator`.

Failures propagate as :class:`~imagerelay.core.errors.RelayError`
subclasses; the HTTP layer turns them into terminal responses.  Nothing is
retried and nothing is kept between requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from imagerelay.core.generation import ImageGenerator, ImageResult
from imagerelay.core.moderation import ContentModerator
from imagerelay.core.placeholder import PlaceholderResponder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Successful terminal outcome of one request.

    Attributes:
        outcome: ``"generated"`` for a real image, ``"moderated"`` for the
            rejection placeholder.
        image: Payload to relay to the caller.
    """

    outcome: Literal["generated", "moderated"]
    image: ImageResult


class RelayPipeline:
    """Sequential moderation and generation for a single prompt.

    Args:
        moderator: Prompt classifier.
        generator: Image generator, only called for approved prompts.
        placeholder: Rejection payload builder.
    """

    def __init__(
        self,
        moderator: ContentModerator,
        generator: ImageGenerator,
        placeholder: PlaceholderResponder,
    ) -> None:
        self.moderator = moderator
        self.generator = generator
        self.placeholder = placeholder

    async def run(self, prompt: str) -> PipelineResult:
        """Moderate *prompt* and return either a generated image or the placeholder.

        Raises:
            RelayError: Any moderation, configuration or generation failure.
        """
        verdict = await self.moderator.classify(prompt)

        if not verdict.approved:
            logger.info("Prompt rejected by moderation; returning placeholder")
            return PipelineResult(outcome="moderated", image=self.placeholder.respond())

        image = await self.generator.generate(prompt)
        return PipelineResult(outcome="generated", image=image)
