"""Client for the hosted generative-AI service.

This module provides :class:`GenAIClient`, the single boundary between Asset
Forge and the external model service. It wraps the ``google-genai`` SDK's
async surface and exposes three calls:

- :meth:`GenAIClient.generate_image`: multimodal parts in, image out.
- :meth:`GenAIClient.generate_images`: text-to-image with a dedicated model.
- :meth:`GenAIClient.generate_text`: parts in, plain text or JSON out.
  :meth:`GenAIClient.analyze_image` is the same call with an image prepended.

Every method returns the raw SDK response envelope; turning it into a data
URL, text or validated JSON is the job of :mod:`assetforge.core.extractor`.

Lifecycle
---------
The client is constructed explicitly from a credential, once, at startup::

    client = GenAIClient.create(config.credential())

A missing credential raises :class:`MissingCredentialError` immediately
rather than on the first request. Tests substitute a fake object that has the
same four coroutine methods.

Errors
------
SDK API errors, unparseable service responses and network errors are
re-raised as :class:`TransportError`. Nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from assetforge.core.encoding import EncodedImage
from assetforge.core.errors import MissingCredentialError, TransportError

logger = logging.getLogger(__name__)


class ResponseFormat(str, Enum):
    PLAIN = "plain"
    JSON = "json"


def to_sdk_part(part: EncodedImage | str) -> types.Part:
    """Convert a composer part into an SDK ``Part``."""
    if isinstance(part, EncodedImage):
        return types.Part.from_bytes(data=part.raw_bytes(), mime_type=part.mime_type)
    return types.Part.from_text(text=part)


def to_contents(parts: Sequence[EncodedImage | str]) -> list[types.Content]:
    """Wrap ordered parts into a single user turn."""
    return [types.Content(role="user", parts=[to_sdk_part(p) for p in parts])]


class GenAIClient:
    """Async wrapper around ``google.genai.Client``.

    Attributes:
        _client: The underlying SDK client.
    """

    def __init__(self, sdk_client: genai.Client) -> None:
        self._client = sdk_client

    @classmethod
    def create(cls, credential: str | None) -> GenAIClient:
        """Build a client from an API credential.

        Raises:
            MissingCredentialError: If ``credential`` is empty.
        """
        if not credential or not credential.strip():
            raise MissingCredentialError(
                "API key not set. Export ASSETFORGE_API_KEY (or GEMINI_API_KEY) before starting."
            )
        logger.info("Creating generative service client.")
        return cls(genai.Client(api_key=credential.strip()))

    async def _call(self, label: str, coro) -> Any:
        try:
            return await coro
        except genai_errors.APIError as e:
            logger.exception("%s call rejected by the service.", label)
            raise TransportError(f"The generation service returned an error: {e}") from e
        except genai_errors.UnknownApiResponseError as e:
            logger.exception("%s call returned an unreadable response.", label)
            raise TransportError(f"The generation service returned an unreadable response: {e}") from e
        except httpx.HTTPError as e:
            logger.exception("%s call failed to reach the service.", label)
            raise TransportError(f"Could not reach the generation service: {e}") from e

    async def generate_image(
        self,
        parts: Sequence[EncodedImage | str],
        *,
        model: str,
        aspect_ratio: str | None = None,
    ) -> types.GenerateContentResponse:
        """Request an image from a multimodal model.

        Args:
            parts: Ordered parts, image parts first and the instruction last.
            model: Model identifier.
            aspect_ratio: Optional output aspect ratio.
        """
        image_config = types.ImageConfig(aspect_ratio=aspect_ratio) if aspect_ratio else None
        config = types.GenerateContentConfig(
            response_modalities=["IMAGE"],
            image_config=image_config,
        )
        logger.info("generate_image: model=%s parts=%d aspect=%s", model, len(parts), aspect_ratio)
        return await self._call(
            "generate_image",
            self._client.aio.models.generate_content(
                model=model, contents=to_contents(parts), config=config
            ),
        )

    async def generate_images(
        self,
        prompt: str,
        *,
        model: str,
        aspect_ratio: str = "1:1",
        number_of_images: int = 1,
        output_mime_type: str = "image/jpeg",
    ) -> types.GenerateImagesResponse:
        """Request images from a dedicated text-to-image model."""
        config = types.GenerateImagesConfig(
            number_of_images=number_of_images,
            aspect_ratio=aspect_ratio,
            output_mime_type=output_mime_type,
        )
        logger.info(
            "generate_images: model=%s n=%d aspect=%s", model, number_of_images, aspect_ratio
        )
        return await self._call(
            "generate_images",
            self._client.aio.models.generate_images(model=model, prompt=prompt, config=config),
        )

    async def generate_text(
        self,
        parts: Sequence[EncodedImage | str],
        *,
        model: str,
        response_format: ResponseFormat = ResponseFormat.PLAIN,
        response_schema: Any = None,
        thinking_budget: int | None = None,
    ) -> types.GenerateContentResponse:
        """Request text, or JSON when ``response_format`` is JSON."""
        config_kwargs: dict[str, Any] = {}
        if response_format is ResponseFormat.JSON:
            config_kwargs["response_mime_type"] = "application/json"
            if response_schema is not None:
                config_kwargs["response_schema"] = response_schema
        if thinking_budget is not None:
            config_kwargs["thinking_config"] = types.ThinkingConfig(thinking_budget=thinking_budget)

        logger.info(
            "generate_text: model=%s parts=%d format=%s", model, len(parts), response_format.value
        )
        return await self._call(
            "generate_text",
            self._client.aio.models.generate_content(
                model=model,
                contents=to_contents(parts),
                config=types.GenerateContentConfig(**config_kwargs) if config_kwargs else None,
            ),
        )

    async def analyze_image(
        self,
        image: EncodedImage,
        instruction: str,
        *,
        model: str,
        response_format: ResponseFormat = ResponseFormat.PLAIN,
        response_schema: Any = None,
        thinking_budget: int | None = None,
    ) -> types.GenerateContentResponse:
        """:meth:`generate_text` with ``image`` prepended to the instruction."""
        return await self.generate_text(
            [image, instruction],
            model=model,
            response_format=response_format,
            response_schema=response_schema,
            thinking_budget=thinking_budget,
        )
