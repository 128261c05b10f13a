"""Configuration management for the Image Relay service.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the IMAGERELAY_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (IMAGERELAY_* prefix)
2. .env file in the project root
3. Default values defined in RelayConfig

Two settings also accept the conventional unprefixed names used by hosting
platforms and the Together AI tooling:

- ``api_key``: ``IMAGERELAY_API_KEY`` or ``TOGETHER_API_KEY``
- ``server_port``: ``IMAGERELAY_SERVER_PORT`` or ``PORT``

Example .env file:
    TOGETHER_API_KEY=tgp_v1_xxxxxxxx
    IMAGERELAY_RESPONSE_FORMAT=url
    IMAGERELAY_REQUEST_TIMEOUT=30

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
Only the application lifespan and the CLI entry point read it; the
moderation and generation clients receive the values they need through
their constructors, so they can be built in tests with injected settings.

Usage Example
-------------
    from imagerelay.core.config import config

    print(config.server_port)
    print(config.response_format)

    # Configuration is immutable after initialization
    # To change values, set environment variables and restart
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


class RelayConfig(BaseSettings):
    """Main configuration for the Image Relay service.

    Attributes
    ----------
    Provider Settings:
        api_key : str | None
            Bearer credential for the moderation and image provider
        api_base_url : str
            Base URL of the OpenAI-compatible provider API
        request_timeout : float
            Upper bound in seconds for each remote call

    Moderation Settings:
        moderation_model : str
            Chat model used to classify prompts
        moderation_max_tokens, moderation_temperature, moderation_top_p,
        moderation_top_k, moderation_repetition_penalty
            Sampling parameters biased toward a one-word answer
        moderation_stop : list[str]
            Stop sequences that cut off over-generation

    Image Settings:
        image_model : str
            Text-to-image model identifier
        image_width, image_height : int
            Output dimensions in pixels
        image_steps : int
            Diffusion step count
        response_format : Literal["url", "b64_json"]
            Field the relay exposes images under, fixed per deployment

    Server Settings:
        server_host : str
            Bind address
        server_port : int
            Listening port (default 3000)
        rate_limit_enabled : bool
            Enable the per-client one-request-per-second gate
        static_dir : Path
            Directory served under ``/static``
        placeholder_filename : str
            Placeholder asset returned when moderation rejects a prompt
        log_level : str
            Root log level used by the CLI entry point

    Notes
    -----
    - A missing ``api_key`` does not prevent startup; requests fail fast
      with a configuration error instead of an opaque provider failure
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="IMAGERELAY_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Provider settings
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("IMAGERELAY_API_KEY", "TOGETHER_API_KEY"),
        description="Provider API key (Together AI)",
    )
    api_base_url: str = Field(
        default="https://api.together.xyz/v1",
        description="Base URL of the provider's OpenAI-compatible API",
    )
    request_timeout: float = Field(
        default=30.0,
        description="Per-phase timeout and total deadline in seconds for each remote call",
        gt=0,
        le=300,
    )

    # Moderation settings
    moderation_model: str = Field(
        default="meta-llama/Llama-3.3-70B-Instruct-Turbo-Free",
        description="Chat completion model used as the content moderator",
    )
    moderation_max_tokens: int = Field(default=10, ge=1, le=64)
    moderation_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    moderation_top_p: float = Field(default=0.7, gt=0.0, le=1.0)
    moderation_top_k: int = Field(default=50, ge=1)
    moderation_repetition_penalty: float = Field(default=1.0, gt=0.0)
    moderation_stop: list[str] = Field(
        default_factory=lambda: ["<|eot_id|>", "<|eom_id|>"],
        description="Stop sequences for the moderation completion",
    )

    # Image settings
    image_model: str = Field(
        default="black-forest-labs/FLUX.1-schnell-Free",
        description="Text-to-image model identifier",
    )
    image_width: int = Field(default=1024, ge=64, le=2048)
    image_height: int = Field(default=768, ge=64, le=2048)
    image_steps: int = Field(default=1, ge=1, le=50)
    response_format: Literal["url", "b64_json"] = Field(
        default="url",
        description="Response field for images: hosted URL or inline base64",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=3000,
        validation_alias=AliasChoices("IMAGERELAY_SERVER_PORT", "PORT"),
        description="Server port",
        ge=1,
        le=65535,
    )
    rate_limit_enabled: bool = Field(
        default=True,
        description="Limit each client address to one request per second",
    )
    static_dir: Path = Field(
        default=_PACKAGE_DIR / "static",
        description="Directory served under /static",
    )
    placeholder_filename: str = Field(
        default="nonono.gif",
        description="Placeholder image returned for rejected prompts",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    @property
    def placeholder_path(self) -> Path:
        """Absolute path of the placeholder asset on disk."""
        return self.static_dir / self.placeholder_filename

    @property
    def placeholder_url(self) -> str:
        """Relative URL the placeholder is served from."""
        return f"/static/{self.placeholder_filename}"


# Global configuration instance
# Loads values from environment variables (IMAGERELAY_* prefix) and .env file.
config = RelayConfig()
