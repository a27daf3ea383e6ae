"""Pydantic request models for the Asset Forge API.

JSON endpoints validate their bodies with these models. Multipart endpoints
(anything that uploads an image) take form fields instead; their brush
strokes arrive as a JSON string and are parsed with :data:`STROKE_LIST`.

Models
------
GenerateRequest
    Payload for ``POST /api/generate`` and ``POST /api/prompt/compile``.
VariantsRequest
    Payload for ``POST /api/generate/variants``.
RemasterRequest
    Payload for ``POST /api/remaster``.
VisualElementRequest
    Payload for ``POST /api/ui/element``.
VfxRequest
    Payload for ``POST /api/vfx``.
BrainstormRequest
    Payload for ``POST /api/brainstorm``.
StrokeModel
    One brush stroke of the edit canvas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, TypeAdapter

from assetforge.core.categories import Category, Tier
from assetforge.core.mask import Stroke
from assetforge.core.prompts import GenerationRequest
from assetforge.core.studio import VfxParams


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    Attributes:
        category: Asset category to produce.
        prompt: The user's concept.
        style: Optional style goal (e.g. ``"Pixel Art"``).
        palette: Optional color palette description.
        negative: Optional list of elements to avoid.
        aspect_ratio: Output aspect ratio.
        tier: ``"draft"`` for a fast preview or ``"final"`` for full quality.
    """

    category: Category = Field(
        ...,
        description="Asset category (logo, banner, texture, ui, ...).",
    )
    prompt: str = Field(
        ...,
        description="Concept to generate.",
    )
    style: str | None = Field(
        default=None,
        description="Style goal, e.g. 'Dark Fantasy'.",
    )
    palette: str | None = Field(
        default=None,
        description="Optional color palette.",
    )
    negative: str | None = Field(
        default=None,
        description="Optional elements to avoid.",
    )
    aspect_ratio: str = Field(
        default="1:1",
        description="Aspect ratio, e.g. '1:1' or '16:9'.",
    )
    tier: Tier = Field(
        default=Tier.FINAL,
        description="Quality tier: 'draft' or 'final'.",
    )

    def to_generation_request(self) -> GenerationRequest:
        options = {"style": self.style, "palette": self.palette, "negative": self.negative}
        return GenerationRequest(
            category=self.category,
            user_text=self.prompt,
            style_options={k: v for k, v in options.items() if v},
            aspect_ratio=self.aspect_ratio,
        )


class VariantsRequest(GenerateRequest):
    """Request body for ``POST /api/generate/variants``."""

    count: int = Field(
        default=4,
        description="Number of variants to generate in parallel.",
    )


class RemasterRequest(BaseModel):
    remaster_prompt: str = Field(
        ...,
        description="Remaster prompt, typically from an engine critique.",
    )
    aspect_ratio: str = Field(default="1:1", description="Output aspect ratio.")
    tier: Tier = Field(default=Tier.FINAL, description="Quality tier.")


class VisualElementRequest(BaseModel):
    style_guide: str = Field(
        ...,
        description="Visual style description, e.g. from /api/style/extract.",
    )
    item: str = Field(..., description="What to draw, e.g. 'health potion icon'.")
    tier: Tier = Field(default=Tier.FINAL, description="Quality tier.")


class VfxRequest(BaseModel):
    """Request body for ``POST /api/vfx``.

    Noise maps read ``scale``, ``contrast`` and ``complexity``; light cookies
    read ``edge``, ``aperture`` and ``vibe``.
    """

    category: Category = Field(default=Category.NOISE, description="'noise' or 'cookie'.")
    type: str = Field(..., description="Noise type or cookie pattern, e.g. 'Perlin'.")
    scale: str = "Standard"
    contrast: str = "High"
    complexity: str = "Standard"
    edge: str = "Sharp"
    aperture: str = "Square"
    vibe: str = "Clean"
    tier: Tier = Field(default=Tier.FINAL, description="Quality tier.")

    def to_params(self) -> VfxParams:
        return VfxParams(**self.model_dump(exclude={"tier"}))


class BrainstormRequest(BaseModel):
    concept: str = Field(..., description="Game concept to brainstorm mechanics for.")


class StrokeModel(BaseModel):
    """One brush stroke in canvas coordinates."""

    x: float
    y: float
    radius: float = Field(..., gt=0, description="Brush radius in canvas pixels.")
    erase: bool = False

    def to_stroke(self) -> Stroke:
        return Stroke(x=self.x, y=self.y, radius=self.radius, erase=self.erase)


STROKE_LIST = TypeAdapter(list[StrokeModel])
