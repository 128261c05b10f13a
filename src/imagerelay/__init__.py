"""Image Relay - moderated text-to-image relay in front of a hosted generation API."""

__version__ = "0.1.0"

from imagerelay.core.config import RelayConfig, config
from imagerelay.core.pipeline import PipelineResult, RelayPipeline

__all__ = [
    "PipelineResult",
    "RelayConfig",
    "RelayPipeline",
    "config",
]
