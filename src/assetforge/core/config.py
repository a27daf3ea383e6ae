"""Configuration management for Asset Forge.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the ASSETFORGE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (ASSETFORGE_* prefix)
2. .env file in the project root
3. Default values defined in AssetForgeConfig

The API credential is the one exception to the prefix rule: it is also read
from ``GEMINI_API_KEY`` and ``API_KEY`` so that a key provisioned for other
tooling is picked up without renaming.

Example .env file:
    ASSETFORGE_API_KEY=...
    ASSETFORGE_IMAGEN_MODEL=imagen-4.0-generate-001
    ASSETFORGE_SERVER_PORT=7860

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
Constructing it never fails on a missing credential; the credential is checked
when the generation client is created (see ``GenAIClient.create``), which the
API does once at startup.

Usage Example
-------------
    from assetforge.core.config import config

    print(config.image_model)
    print(config.max_variants)

Model Selection
---------------
Three model roles exist:

- ``image_model``: multimodal model used for drafts, edits and any request
  that carries image parts (reference, mask, UV layout).
- ``imagen_model``: high-fidelity text-to-image model used for final-tier
  text-only requests.
- ``reasoning_model`` / ``vision_model``: text models used for the art
  director, critiques and image analysis.
"""

from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AssetForgeConfig(BaseSettings):
    """Main configuration for Asset Forge.

    Attributes
    ----------
    Credential:
        api_key : SecretStr | None
            Key for the hosted generative service. Required at startup.

    Models:
        image_model : str
            Multimodal image model (drafts, edits, reference-driven work)
        imagen_model : str
            Final-tier text-to-image model
        reasoning_model : str
            Text model for the art director and engine critiques
        vision_model : str
            Model used to describe and analyze uploaded images

    Generation Settings:
        refine_thinking_budget : int
            Thinking budget for the art director rewrite
        analysis_thinking_budget : int
            Thinking budget for engine critiques
        default_aspect_ratio : str
            Aspect ratio used when a request does not name one
        max_variants : int
            Upper bound on concurrent variant requests (1-4)
        refine_prompts : bool
            Enable the art director step on final-tier requests

    Server:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        log_level : str
            Root logging level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ASSETFORGE_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("ASSETFORGE_API_KEY", "GEMINI_API_KEY", "API_KEY"),
        description="Credential for the hosted generative service",
    )

    # Model identifiers
    image_model: str = Field(
        default="gemini-2.5-flash-image",
        description="Multimodal image model for drafts, edits and reference work",
    )
    imagen_model: str = Field(
        default="imagen-4.0-generate-001",
        description="High-fidelity text-to-image model for final-tier assets",
    )
    reasoning_model: str = Field(
        default="gemini-3-pro-preview",
        description="Text model for prompt refinement and critiques",
    )
    vision_model: str = Field(
        default="gemini-2.5-flash-image",
        description="Model used to analyze uploaded images",
    )

    # Generation settings
    refine_thinking_budget: int = Field(default=2048, ge=0)
    analysis_thinking_budget: int = Field(default=4096, ge=0)
    default_aspect_ratio: Literal["1:1", "3:4", "4:3", "9:16", "16:9"] = Field(
        default="1:1",
        description="Aspect ratio used when a request does not specify one",
    )
    max_variants: int = Field(
        default=4,
        ge=1,
        le=4,
        description="Maximum number of concurrent variant requests",
    )
    refine_prompts: bool = Field(
        default=True,
        description="Run the art director rewrite before final-tier image requests",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    def credential(self) -> str | None:
        """Return the raw credential string, or ``None`` when unset."""
        if self.api_key is None:
            return None
        return self.api_key.get_secret_value()


# Global configuration instance
# Loads values from environment variables (ASSETFORGE_* prefix) and .env file.
config = AssetForgeConfig()
