"""Core relay components.

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with IMAGERELAY_ in .env files

2. **Provider Layer** (provider.py, moderation.py, generation.py):
   - ``ContentModerator`` and ``ImageGenerator`` capability interfaces
   - Together AI implementations over a shared ``httpx.AsyncClient``

3. **Pipeline Layer** (pipeline.py, placeholder.py):
   - Moderate, then either generate or return the placeholder

4. **Errors** (errors.py):
   - ``RelayError`` hierarchy carrying status code and message
"""

from imagerelay.core.config import RelayConfig, config
from imagerelay.core.errors import RelayError
from imagerelay.core.generation import ImageGenerator, ImageResult
from imagerelay.core.moderation import ContentModerator, ModerationVerdict
from imagerelay.core.pipeline import PipelineResult, RelayPipeline

__all__ = [
    "ContentModerator",
    "ImageGenerator",
    "ImageResult",
    "ModerationVerdict",
    "PipelineResult",
    "RelayConfig",
    "RelayError",
    "RelayPipeline",
    "config",
]
