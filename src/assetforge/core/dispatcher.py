"""Request dispatch.

:class:`RequestDispatcher` picks the model and response modality for a
composed prompt, submits it through the client, and hands the envelope to the
extractor.

Routing
-------
========================================  ===========================  =================
Request                                   Client call                  Model
========================================  ===========================  =================
image, final tier, text-only              ``generate_images``          ``imagen_model``
image, draft tier or with image parts     ``generate_image``           ``image_model``
text                                      ``generate_text``            caller's choice
JSON                                      ``generate_text`` (JSON)     caller's choice
========================================  ===========================  =================

Fan-out
-------
:meth:`RequestDispatcher.fan_out` runs N independent coroutines at once and
joins them with :func:`join_all`: the batch succeeds only if every call does,
otherwise the first failure (in submission order) is raised and no partial
result escapes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from assetforge.core.categories import Modality, Tier
from assetforge.core.config import AssetForgeConfig
from assetforge.core.errors import InputValidationError
from assetforge.core.extractor import (
    extract_generated_image,
    extract_image_data_url,
    extract_json,
    extract_text,
)
from assetforge.core.genai_client import ResponseFormat
from assetforge.core.prompts import ComposedPrompt

logger = logging.getLogger(__name__)

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


def join_all(results: Sequence[T | BaseException]) -> list[T]:
    """All-or-nothing join over gathered results.

    Args:
        results: Output of ``asyncio.gather(..., return_exceptions=True)``.

    Returns:
        The results in submission order when none failed.

    Raises:
        BaseException: The first failure, in submission order.
    """
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)  # type: ignore[arg-type]


class RequestDispatcher:
    """Submits composed prompts to the right endpoint and extracts the result."""

    def __init__(self, client, config: AssetForgeConfig) -> None:
        self._client = client
        self._config = config

    async def dispatch_image(
        self,
        composed: ComposedPrompt,
        *,
        tier: Tier | str = Tier.FINAL,
        aspect_ratio: str | None = None,
        failure_message: str | None = None,
    ) -> str:
        """Generate one image and return it as a data URL.

        Raises:
            TransportError: If the call fails.
            GenerationFailedError: If the response carries no image.
        """
        spec = composed.spec
        if spec.modality is not Modality.IMAGE:
            raise ValueError(f"{composed.category.value} does not produce images")

        message = failure_message or (
            f"{spec.label.capitalize()} generation failed. "
            "No image was generated; the model may have refused the request."
        )

        if spec.tiered and Tier(tier) is Tier.FINAL and not composed.has_images:
            logger.info(
                "Dispatching %s to %s (final tier).", composed.category.value,
                self._config.imagen_model,
            )
            response = await self._client.generate_images(
                composed.text,
                model=self._config.imagen_model,
                aspect_ratio=aspect_ratio or self._config.default_aspect_ratio,
                number_of_images=1,
                output_mime_type="image/jpeg",
            )
            return extract_generated_image(response, message)

        logger.info(
            "Dispatching %s to %s (%d parts).", composed.category.value,
            self._config.image_model, len(composed.parts),
        )
        response = await self._client.generate_image(
            composed.parts,
            model=self._config.image_model,
            aspect_ratio=aspect_ratio,
        )
        return extract_image_data_url(response, message)

    async def dispatch_text(
        self,
        composed: ComposedPrompt,
        *,
        model: str | None = None,
        thinking_budget: int | None = None,
    ) -> str:
        """Run a text request and return the first text payload."""
        response = await self._client.generate_text(
            composed.parts,
            model=model or self._config.vision_model,
            response_format=ResponseFormat.PLAIN,
            thinking_budget=thinking_budget,
        )
        return extract_text(response, f"The {composed.spec.label} returned no text.")

    async def dispatch_json(
        self,
        composed: ComposedPrompt,
        model_cls: type[ModelT],
        *,
        schema: Any = None,
        model: str | None = None,
        thinking_budget: int | None = None,
    ) -> ModelT:
        """Run a JSON request and validate the payload as ``model_cls``.

        Raises:
            MalformedResponseError: If the payload does not match ``model_cls``.
        """
        response = await self._client.generate_text(
            composed.parts,
            model=model or self._config.reasoning_model,
            response_format=ResponseFormat.JSON,
            response_schema=schema,
            thinking_budget=thinking_budget,
        )
        return extract_json(response, model_cls)

    async def fan_out(self, factory: Callable[[], Awaitable[T]], count: int) -> list[T]:
        """Run ``count`` independent calls concurrently, all or nothing.

        Args:
            factory: Zero-argument callable returning a fresh awaitable per call.
            count: Number of calls (1 to ``config.max_variants``).

        Raises:
            InputValidationError: If ``count`` is out of range.
        """
        if count < 1 or count > self._config.max_variants:
            raise InputValidationError(
                f"Variant count must be between 1 and {self._config.max_variants}, got {count}"
            )

        logger.info("Fanning out %d concurrent requests.", count)
        results = await asyncio.gather(*(factory() for _ in range(count)), return_exceptions=True)
        return join_all(results)
