"""Core asset generation pipeline.

This package holds everything that does not depend on the HTTP layer:

- **AssetForgeConfig** / **config**: settings loaded from ``ASSETFORGE_*``
  environment variables.
- **Encoder** (encoding.py): uploaded files to base64 payloads.
- **Mask rasterizer** (mask.py): brush strokes to a binary edit stencil.
- **Composer** (prompts.py, categories.py): requests to prompt text and parts.
- **GenAIClient** (genai_client.py): the only module that talks to the hosted
  model service.
- **Dispatcher** / **extractor**: routing to the right model and turning
  response envelopes into data URLs, text or validated JSON.
- **AssetRegistry**: the in-memory session gallery.
- **AssetStudio**: one coroutine per studio feature, tying the above together.

Usage Example
-------------
::

    import asyncio

    from assetforge.core import AssetStudio, GenAIClient, GenerationRequest, config
    from assetforge.core.categories import Category

    studio = AssetStudio(GenAIClient.create(config.credential()), config)
    asset = asyncio.run(
        studio.generate_asset(GenerationRequest(Category.TEXTURE, "mossy stone wall"))
    )
    print(asset.data_url[:40])
"""

from assetforge.core.config import AssetForgeConfig, config
from assetforge.core.genai_client import GenAIClient
from assetforge.core.prompts import GenerationRequest, compose
from assetforge.core.registry import AssetRegistry, GeneratedAsset
from assetforge.core.studio import AssetStudio

__all__ = [
    "AssetForgeConfig",
    "AssetRegistry",
    "AssetStudio",
    "GenAIClient",
    "GeneratedAsset",
    "GenerationRequest",
    "compose",
    "config",
]
