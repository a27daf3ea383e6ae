"""Response extraction.

Pulls the usable payload out of a model response envelope:

- :func:`extract_image_data_url` for multimodal ``generate_content`` responses
  (first inline image among the first candidate's parts).
- :func:`extract_generated_image` for text-to-image ``generate_images``
  responses.
- :func:`extract_text` for the first text payload.
- :func:`extract_json` for schema-constrained responses, validated with a
  pydantic model.

A missing payload is a :class:`GenerationFailedError`; JSON that does not
parse or validate is a :class:`MalformedResponseError`. Neither is ever
replaced by a default value.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, Field, ValidationError

from assetforge.core.errors import GenerationFailedError, MalformedResponseError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

REFUSAL_MESSAGE = "No image was generated. The model may have refused the request."


class AnalysisReport(BaseModel):
    """Engine-targeted critique of an uploaded asset.

    Fields validate by their camelCase alias only, the keys of the response
    schema.
    """

    critique: str
    technical_issues: list[str] = Field(alias="technicalIssues")
    engine_suggestions: str = Field(alias="engineSuggestions")
    remaster_prompt: str = Field(alias="remasterPrompt")


class AssetInsight(BaseModel):
    """Short style and mood read-out shown next to the editor."""

    style: str
    mood: str


def _first_parts(response: Any) -> list[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def _to_base64(data: bytes | str) -> str:
    # The SDK hands back raw bytes; fakes and JSON transports may already be base64.
    if isinstance(data, str):
        return data
    return base64.b64encode(data).decode("ascii")


def extract_image_data_url(response: Any, failure_message: str = REFUSAL_MESSAGE) -> str:
    """Return the first inline image of ``response`` as a data URL.

    Raises:
        GenerationFailedError: If there are no candidates or no inline image.
    """
    for part in _first_parts(response):
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            mime_type = inline.mime_type or "image/png"
            return f"data:{mime_type};base64,{_to_base64(inline.data)}"

    logger.warning("Response carried no inline image data.")
    raise GenerationFailedError(failure_message)


def extract_generated_image(response: Any, failure_message: str = REFUSAL_MESSAGE) -> str:
    """Return the first image of a ``generate_images`` response as a data URL.

    Raises:
        GenerationFailedError: If no image bytes were returned.
    """
    generated = getattr(response, "generated_images", None) or []
    for item in generated:
        image = getattr(item, "image", None)
        if image is not None and image.image_bytes:
            mime_type = image.mime_type or "image/jpeg"
            return f"data:{mime_type};base64,{_to_base64(image.image_bytes)}"

    logger.warning("Image generation response was empty.")
    raise GenerationFailedError(failure_message)


def extract_text(response: Any, failure_message: str = "The model returned no text.") -> str:
    """Return the first non-empty text part of ``response``.

    Raises:
        GenerationFailedError: If the response carries no text.
    """
    for part in _first_parts(response):
        text = getattr(part, "text", None)
        if text and text.strip() and not getattr(part, "thought", False):
            return text

    raise GenerationFailedError(failure_message)


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3]
    return stripped.strip()


def parse_json_payload(text: str, model_cls: type[ModelT]) -> ModelT:
    """Parse ``text`` as JSON and validate it against ``model_cls``.

    Raises:
        MalformedResponseError: If the text is not JSON or a required key is
            absent or of the wrong type.
    """
    try:
        payload = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as e:
        logger.error("Failed to parse JSON response: %s", text)
        raise MalformedResponseError(
            "The model did not return valid JSON.", raw_text=text
        ) from e

    try:
        return model_cls.model_validate(payload)
    except ValidationError as e:
        missing = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        logger.error("Structured response failed validation (%s): %s", missing, text)
        raise MalformedResponseError(
            f"The model's response is missing or has invalid fields: "
            f"{', '.join(missing) or 'root object'}",
            raw_text=text,
        ) from e


def extract_json(response: Any, model_cls: type[ModelT]) -> ModelT:
    """Extract the text payload and validate it as ``model_cls``.

    Raises:
        GenerationFailedError: If there is no text at all.
        MalformedResponseError: If the text is not the contracted shape.
    """
    return parse_json_payload(extract_text(response), model_cls)
