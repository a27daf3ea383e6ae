"""Feature orchestration for the asset studios.

:class:`AssetStudio` wires the composer, dispatcher, art director and
registry together, one coroutine per user-facing feature:

==============================  ===========================================
Method                          Feature
==============================  ===========================================
``generate_asset``              logo / banner / texture / UI / reference concept
``generate_variants``           N concepts in parallel, all or nothing
``edit_asset``                  masked or global edit of an uploaded asset
``extract_texture``             material analysis, then texture re-synthesis
``analyze_for_engine``          engine-targeted critique (:class:`AnalysisReport`)
``remaster``                    regenerate from a critique's remaster prompt
``analyze_asset``               quick style/mood read-out (:class:`AssetInsight`)
``extract_visual_style``        "visual style clone" description
``generate_visual_element``     text-free UI art in a given style
``reverse_engineer_prompt``     image to prompt
``generate_vfx_asset``          noise maps and light cookies, draft or final
``paint_uv_texture``            texture painted onto a UV layout
``brainstorm_mechanics``        game mechanic ideation
==============================  ===========================================

Image features register their result only after extraction succeeded; a
failed call (or any failed call of a fan-out) registers nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from google.genai import types
from pydantic import BaseModel

from assetforge.core.categories import Category, Tier, get_spec
from assetforge.core.config import AssetForgeConfig
from assetforge.core.dispatcher import RequestDispatcher
from assetforge.core.encoding import EncodedImage
from assetforge.core.errors import InputValidationError
from assetforge.core.extractor import AnalysisReport, AssetInsight
from assetforge.core.mask import Stroke, build_mask
from assetforge.core.prompts import (
    ArtDirector,
    ComposedPrompt,
    GenerationRequest,
    compose,
    concept_text,
    with_text,
)
from assetforge.core.registry import AssetRegistry, GeneratedAsset

logger = logging.getLogger(__name__)

_STRING = types.Schema(type=types.Type.STRING)

ANALYSIS_REPORT_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "critique": _STRING,
        "technicalIssues": types.Schema(type=types.Type.ARRAY, items=_STRING),
        "engineSuggestions": _STRING,
        "remasterPrompt": _STRING,
    },
    required=["critique", "technicalIssues", "engineSuggestions", "remasterPrompt"],
)

ASSET_INSIGHT_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={"style": _STRING, "mood": _STRING},
    required=["style", "mood"],
)


@dataclass
class VfxParams:
    """Parameters of the VFX studio (noise maps and light cookies)."""

    type: str
    category: Category = Category.NOISE
    scale: str = "Standard"
    contrast: str = "High"
    complexity: str = "Standard"
    edge: str = "Sharp"
    aperture: str = "Square"
    vibe: str = "Clean"

    def to_request(self) -> GenerationRequest:
        category = Category(self.category)
        if category is Category.NOISE:
            options = {"scale": self.scale, "contrast": self.contrast, "complexity": self.complexity}
        elif category is Category.COOKIE:
            options = {"edge": self.edge, "aperture": self.aperture, "vibe": self.vibe}
        else:
            raise InputValidationError(f"VFX category must be noise or cookie, got {category.value}")
        return GenerationRequest(
            category=category,
            user_text=self.type,
            style_options={"style": "Technical Art", **options},
            aspect_ratio="1:1",
        )


class TextureExtraction(BaseModel):
    asset: GeneratedAsset
    material_analysis: str


class AssetStudio:
    """Runs studio features against an injected generation client.

    Attributes:
        registry: Session registry receiving every generated asset.
        dispatcher: Request dispatcher bound to the client.
        art_director: Optional prompt refinement step.
    """

    def __init__(
        self,
        client,
        config: AssetForgeConfig,
        registry: AssetRegistry | None = None,
    ) -> None:
        self._config = config
        self.registry = registry if registry is not None else AssetRegistry()
        self.dispatcher = RequestDispatcher(client, config)
        self.art_director = ArtDirector(
            client, config.reasoning_model, config.refine_thinking_budget
        )

    # -- Image pipeline -----------------------------------------------------

    async def prepare(self, request: GenerationRequest, tier: Tier | str = Tier.FINAL) -> ComposedPrompt:
        """Compose ``request`` and, when eligible, run the art director.

        Only final-tier, text-only requests of refinable categories are
        refined. The refined text replaces the whole instruction; on failure
        the original concept is used verbatim.

        On that path the category constraint and the palette and negative
        clauses reach the art director only as context. The image model sees
        them only if the refined paragraph restates them, and never after a
        fallback. Callers that need them enforced should set
        ``refine_prompts`` to false or use the draft tier.
        """
        tier = Tier(tier)
        composed = compose(request, tier)
        spec = composed.spec

        if (
            self._config.refine_prompts
            and spec.refinable
            and tier is Tier.FINAL
            and not composed.has_images
        ):
            style = request.option("style", "unspecified")
            context = f"Generating a professional {spec.label} for a video game. Style goal: {style}."
            refined = await self.art_director.refine(concept_text(request), context, composed.text)
            composed = with_text(composed, refined)

        return composed

    def _aspect_ratio(self, request: GenerationRequest) -> str | None:
        if get_spec(request.category).requires_image:
            # Edits keep the source image's framing.
            return None
        return request.aspect_ratio or self._config.default_aspect_ratio

    def _asset_category(self, request: GenerationRequest) -> Category:
        category = get_spec(request.category).asset_category
        if category is None:
            raise InputValidationError(f"{Category(request.category).value} does not produce an image")
        return category

    async def generate_asset(
        self, request: GenerationRequest, tier: Tier | str = Tier.FINAL
    ) -> GeneratedAsset:
        """Generate one image asset and register it."""
        asset_category = self._asset_category(request)
        composed = await self.prepare(request, tier)
        data_url = await self.dispatcher.dispatch_image(
            composed, tier=tier, aspect_ratio=self._aspect_ratio(request)
        )
        return self.registry.append(asset_category, data_url, composed.text)

    async def generate_variants(
        self, request: GenerationRequest, count: int, tier: Tier | str = Tier.FINAL
    ) -> list[GeneratedAsset]:
        """Generate ``count`` variants concurrently.

        The prompt is prepared once and the same request is issued ``count``
        times. If any call fails the whole batch fails and nothing is
        registered.
        """
        asset_category = self._asset_category(request)
        composed = await self.prepare(request, tier)
        aspect_ratio = self._aspect_ratio(request)

        data_urls = await self.dispatcher.fan_out(
            lambda: self.dispatcher.dispatch_image(composed, tier=tier, aspect_ratio=aspect_ratio),
            count,
        )
        return self.registry.extend(asset_category, data_urls, composed.text)

    async def edit_asset(
        self,
        image: EncodedImage,
        instruction: str,
        *,
        strokes: list[Stroke] | None = None,
        canvas_size: tuple[int, int] | None = None,
        mask: EncodedImage | None = None,
    ) -> GeneratedAsset:
        """Apply ``instruction`` to ``image``, inside the painted region if any.

        Args:
            image: Asset being edited.
            instruction: The change to apply.
            strokes: Brush strokes painted over the image. Rasterized fresh on
                every call; an empty or sub-threshold log means a global edit.
            canvas_size: Size of the paint canvas; defaults to the image size.
            mask: Pre-rasterized stencil, used instead of ``strokes``.
        """
        if mask is None and strokes:
            width, height = canvas_size or image.to_pil().size
            mask = build_mask(strokes, width, height)
        logger.info("Edit request (%s).", "masked" if mask is not None else "global")

        request = GenerationRequest(
            category=Category.EDIT,
            user_text=instruction,
            reference_image=image,
            mask_image=mask,
        )
        return await self.generate_asset(request)

    async def paint_uv_texture(
        self, uv_image: EncodedImage, object_type: str, style: str, colors: str
    ) -> GeneratedAsset:
        """Paint a diffuse texture that follows the islands of a UV layout."""
        request = GenerationRequest(
            category=Category.UV_PAINT,
            user_text=object_type,
            style_options={"style": style, "palette": colors},
            reference_image=uv_image,
        )
        composed = compose(request)
        data_url = await self.dispatcher.dispatch_image(
            composed,
            failure_message="UV Painting failed. Please try a different image or prompt.",
        )
        return self.registry.append(Category.UV_PAINT, data_url, composed.text)

    async def generate_vfx_asset(
        self, params: VfxParams, tier: Tier | str = Tier.FINAL
    ) -> GeneratedAsset:
        """Generate a noise map or light cookie."""
        return await self.generate_asset(params.to_request(), tier)

    async def generate_visual_element(
        self, style_guide: str, item_description: str, tier: Tier | str = Tier.FINAL
    ) -> GeneratedAsset:
        """Generate text-free UI art matching ``style_guide``."""
        request = GenerationRequest(
            category=Category.UI_ELEMENT,
            user_text=item_description,
            style_options={"style_guide": style_guide},
            aspect_ratio="1:1",
        )
        return await self.generate_asset(request, tier)

    async def remaster(
        self,
        remaster_prompt: str,
        *,
        reference: EncodedImage | None = None,
        aspect_ratio: str = "1:1",
        tier: Tier | str = Tier.FINAL,
    ) -> GeneratedAsset:
        """Regenerate an asset from a critique's remaster prompt."""
        request = GenerationRequest(
            category=Category.REMASTER,
            user_text=remaster_prompt,
            reference_image=reference,
            aspect_ratio=aspect_ratio,
        )
        return await self.generate_asset(request, tier)

    async def extract_texture(
        self, reference: EncodedImage, make_seamless: bool = False
    ) -> TextureExtraction:
        """Describe the material in ``reference`` and re-synthesize it as a texture."""
        analysis_request = GenerationRequest(
            category=Category.MATERIAL_ANALYSIS,
            reference_image=reference,
            style_options={"make_seamless": "true" if make_seamless else "false"},
        )
        description = await self.dispatcher.dispatch_text(
            compose(analysis_request), model=self._config.vision_model
        )

        texture_request = GenerationRequest(
            category=Category.TEXTURE,
            user_text=description,
            style_options={
                "style": "Seamless Tiled PBR Material" if make_seamless else "Photorealistic PBR"
            },
            aspect_ratio="1:1",
        )
        asset = await self.generate_asset(texture_request)
        return TextureExtraction(asset=asset, material_analysis=description)

    # -- Text and analysis --------------------------------------------------

    async def analyze_for_engine(self, image: EncodedImage, engine: str) -> AnalysisReport:
        """Critique ``image`` against ``engine`` standards."""
        request = GenerationRequest(
            category=Category.CRITIQUE,
            reference_image=image,
            style_options={"engine": engine},
        )
        return await self.dispatcher.dispatch_json(
            compose(request),
            AnalysisReport,
            schema=ANALYSIS_REPORT_SCHEMA,
            model=self._config.reasoning_model,
            thinking_budget=self._config.analysis_thinking_budget,
        )

    async def analyze_asset(self, image: EncodedImage) -> AssetInsight:
        """Return a short style/mood read-out for an uploaded asset."""
        request = GenerationRequest(category=Category.ASSET_INSIGHT, reference_image=image)
        return await self.dispatcher.dispatch_json(
            compose(request),
            AssetInsight,
            schema=ASSET_INSIGHT_SCHEMA,
            model=self._config.reasoning_model,
        )

    async def extract_visual_style(self, image: EncodedImage) -> str:
        """Describe the art style of ``image`` so new objects can match it."""
        request = GenerationRequest(category=Category.STYLE_EXTRACTION, reference_image=image)
        return await self.dispatcher.dispatch_text(compose(request), model=self._config.vision_model)

    async def reverse_engineer_prompt(self, image: EncodedImage) -> str:
        """Write a prompt that would reproduce ``image``."""
        request = GenerationRequest(category=Category.REVERSE_PROMPT, reference_image=image)
        return await self.dispatcher.dispatch_text(compose(request), model=self._config.vision_model)

    async def brainstorm_mechanics(self, concept: str) -> str:
        """Brainstorm gameplay mechanics for a game concept."""
        request = GenerationRequest(category=Category.BRAINSTORM, user_text=concept)
        return await self.dispatcher.dispatch_text(
            compose(request), model=self._config.reasoning_model
        )
