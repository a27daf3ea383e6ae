"""Asset Forge - game-art asset generation on top of a hosted multimodal model."""

__version__ = "0.1.0"

from assetforge.core.config import AssetForgeConfig, config

__all__ = [
    "AssetForgeConfig",
    "config",
]
