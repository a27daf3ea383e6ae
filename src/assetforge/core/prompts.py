"""Prompt composition for every asset category.

The composer turns a :class:`GenerationRequest` into the exact instruction
text and multimodal part list sent to the hosted model. It never calls the
model itself and is fully deterministic: the same request always produces the
same prompt.

Prompt Structure
----------------
Sections are joined with blank lines so the model can tell instruction
classes apart::

    [Reference analysis instruction]        (only when a style reference is given)

    [Preview qualifier]                     (draft tier only)

    [Category body: subject, style, parameters]

    [Fixed: category constraint clause]

    Color palette: ...                      (optional)

    Avoid the following elements: ...       (optional)

Part Order
----------
Image parts come first, the instruction text last::

    [reference or subject image, mask, text]

Art Director
------------
Final-tier requests for refinable categories may first go through
:class:`ArtDirector`, a text-only call that rewrites the user's concept into
a dense production prompt. The rewrite is an enhancement only: if it fails or
comes back empty, the original concept is used verbatim.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from assetforge.core.categories import (
    BASE_IMAGE_CONSTRAINT,
    Category,
    CategorySpec,
    Tier,
    get_spec,
)
from assetforge.core.encoding import EncodedImage
from assetforge.core.errors import AssetForgeError, InputValidationError
from assetforge.core.extractor import extract_text

logger = logging.getLogger(__name__)

PromptPart = EncodedImage | str

REFERENCE_ANALYSIS_CLAUSE = (
    "First, analyze the provided reference image: study its art style, color palette, "
    "lighting and composition. Then generate the new asset so that it matches that "
    "reference's visual language."
)

MASKED_EDIT_TEMPLATE = (
    'Game Asset Editing Task. Using the mask, apply this change only inside the masked '
    '(white) region: "{instruction}". Every pixel outside the white region must remain '
    "pixel-identical to the original image."
)
GLOBAL_EDIT_TEMPLATE = (
    'Game Asset Editing Task. Apply this change globally: "{instruction}". '
    "Maintain visual consistency."
)

PALETTE_LABEL = "Color palette:"
NEGATIVE_LABEL = "Avoid the following elements:"
PREVIEW_QUALIFIER = "Generate a preview {label}."

SHARP_EDGE_CLAUSE = "Edges: sharp, clearly defined for shadow projection. No greyscale."
SOFT_EDGE_CLAUSE = "Edges: soft falloff; greyscale is allowed only along the shape edges."
FLASHLIGHT_CLAUSE = (
    "MUST be a circular beam in the center of a black square. Edges must fade to black."
)

# Text is the subject for these categories and must not be blank.
_TEXT_REQUIRED = {
    Category.LOGO,
    Category.BANNER,
    Category.TEXTURE,
    Category.UI,
    Category.UI_ELEMENT,
    Category.NOISE,
    Category.COOKIE,
    Category.UV_PAINT,
    Category.EDIT,
    Category.REMASTER,
    Category.BRAINSTORM,
}

_MISSING_TEXT_MESSAGES = {
    Category.EDIT: "Please describe the change to apply",
    Category.NOISE: "Please choose a noise type",
    Category.COOKIE: "Please choose a cookie pattern",
    Category.UV_PAINT: "Please describe the target object",
    Category.BRAINSTORM: "Please describe a game concept",
}


@dataclass
class GenerationRequest:
    """Everything the user supplied for one generation action.

    Attributes:
        category: Asset category being produced or analyzed.
        user_text: Free text (concept, edit instruction, pattern type ...).
        style_options: Recognized option name to value. Common names are
            ``style``, ``palette`` and ``negative``; categories add their own
            (``scale``, ``aperture``, ``engine``, ``style_guide`` ...).
        reference_image: Optional style reference, or the required subject
            image for edit/analysis categories.
        mask_image: Optional edit stencil (edit category only).
        aspect_ratio: Output aspect ratio, e.g. ``"16:9"``.
    """

    category: Category
    user_text: str = ""
    style_options: dict[str, str] = field(default_factory=dict)
    reference_image: EncodedImage | None = None
    mask_image: EncodedImage | None = None
    aspect_ratio: str = "1:1"

    def option(self, name: str, default: str = "") -> str:
        value = self.style_options.get(name)
        if value is None:
            return default
        value = str(value).strip()
        return value or default


@dataclass(frozen=True)
class ComposedPrompt:
    """Composer output: the instruction text plus the ordered part list."""

    category: Category
    text: str
    parts: list[PromptPart]

    @property
    def has_images(self) -> bool:
        return any(isinstance(part, EncodedImage) for part in self.parts)

    @property
    def spec(self) -> CategorySpec:
        return get_spec(self.category)


# ---------------------------------------------------------------------------
# Category bodies.
# Each returns the category-specific sections, without the shared clauses.
# ---------------------------------------------------------------------------


def _asset_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    body = f"Create a professional {spec.label} for a video game: {req.user_text.strip()}"
    style = req.option("style")
    if style:
        body += f"\nStyle goal: {style}."
    return [body]


def _ui_element_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    sections = [f"Create a Game UI Visual Asset: {req.user_text.strip()}."]
    style_guide = req.option("style_guide") or req.option("style")
    if style_guide:
        sections.append(f"Target Visual Style:\n{style_guide}")
    sections.append(
        "CRITICAL CONSTRAINTS:\n"
        "- The image must be PURELY graphical/pictorial.\n"
        "- If the request implies a button or panel, draw ONLY the background shape, "
        "frame, or icon art."
    )
    return sections


def _noise_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    return [
        f"Seamless tileable {req.user_text.strip()} noise texture. "
        f"Scale: {req.option('scale', 'Standard')}. "
        f"Contrast: {req.option('contrast', 'High')}. "
        f"Complexity: {req.option('complexity', 'Standard')}."
    ]


def _cookie_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    aperture = req.option("aperture", "Square")
    edge = req.option("edge", "Sharp")
    sections = [
        f"Light cookie texture (gobo) pattern: {req.user_text.strip()}. "
        f"Aperture Shape: {aperture}. "
        f"Edge Softness: {edge}. "
        f"Cleanliness: {req.option('vibe', 'Clean')}.",
        SOFT_EDGE_CLAUSE if "soft" in edge.lower() else SHARP_EDGE_CLAUSE,
    ]
    if aperture == "Circular (Flashlight)":
        sections.append(FLASHLIGHT_CLAUSE)
    return sections


def _uv_paint_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    return [
        "Act as a 3D Texture Artist.\n"
        "Task: Paint a diffuse texture map based directly on the provided UV Layout image.",
        f"Target Object: {req.user_text.strip()}\n"
        f"Art Style: {req.option('style', 'Hand-painted')}",
        "Instructions:\n"
        "1. Analyze the UV islands (wireframe shapes) in the input image to understand "
        "the 3D geometry.\n"
        "2. Generate a full-color texture map that perfectly aligns with these UV islands.\n"
        "3. Apply detailed materials (e.g., metal scratches, fabric weave, skin pores) "
        "inside the islands.",
    ]


def _edit_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    instruction = req.user_text.strip()
    if req.mask_image is not None:
        return [MASKED_EDIT_TEMPLATE.format(instruction=instruction)]
    return [GLOBAL_EDIT_TEMPLATE.format(instruction=instruction)]


def _style_extraction_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    return [
        'Analyze the visual art style of this image to create a "Visual Style Clone" '
        "description.",
        "Focus ONLY on:\n"
        "- Rendering technique (e.g., flat vector, 3D glossy, hand-painted, pixel art, "
        "holographic).\n"
        "- Material properties (e.g., brushed metal, glass, neon light, stone, wood).\n"
        "- Lighting and effects (e.g., bloom, rim lighting, soft shadows).\n"
        "- Shape language (e.g., rounded corners, sharp angular spikes, intricate filigree).\n"
        "- Color palette.",
        "Summarize this into a single, dense visual description paragraph that can be used "
        "to generate NEW objects in this EXACT style.",
    ]


def _critique_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    engine = req.option("engine", "Unreal Engine 5")
    return [
        f"Act as a Senior Technical Artist specializing in {engine}.\nAnalyze this game asset.",
        f"1. Critique: Evaluate the visual quality, style consistency, and suitability for "
        f"{engine}.\n"
        '2. Technical Issues: List specific flaws (e.g., "Low texel density", "Baked-in '
        'lighting shadows", "Noisy normals", "Bad composition").\n'
        f'3. Improvements: Suggest specific changes to meet {engine} "AAA" standards.\n'
        "4. Remaster Prompt: Write a highly detailed image generation prompt to recreate this "
        "asset with all the suggested improvements applied.",
    ]


def _reverse_prompt_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    return [
        "Act as a Prompt Engineer. Analyze this image and write the exact prompt used to "
        "generate it.\n"
        "Include details on: Subject, Art Style, Lighting, Color Palette, and Composition."
    ]


def _material_analysis_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    sections = [
        "Analyze this image for game texture usage.\n"
        "Describe the surface material in technical detail (Albedo, Roughness, Normal details)."
    ]
    if req.option("make_seamless").lower() in ("1", "true", "yes"):
        sections.append(
            "Explicitly describe how to make this pattern seamless and tileable, removing any "
            "vignetting or uneven lighting."
        )
    return sections


def _asset_insight_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    return [
        "Act as a Lead Game Artist reviewing an uploaded asset before it is edited.\n"
        "Describe its art style (rendering technique, era, genre) in one short phrase and its "
        "mood (emotional tone, atmosphere) in one short phrase."
    ]


def _brainstorm_body(req: GenerationRequest, spec: CategorySpec) -> list[str]:
    return [
        "Act as a Lead Game Designer.\n"
        f"Game concept: {req.user_text.strip()}",
        "Brainstorm 5 core gameplay mechanics for this concept. For each, give the mechanic "
        "name, how it plays moment to moment, and why it is fun. Finish with one unique "
        "selling point.",
    ]


_BODY_BUILDERS = {
    Category.LOGO: _asset_body,
    Category.BANNER: _asset_body,
    Category.TEXTURE: _asset_body,
    Category.UI: _asset_body,
    Category.REMASTER: _asset_body,
    Category.UI_ELEMENT: _ui_element_body,
    Category.NOISE: _noise_body,
    Category.COOKIE: _cookie_body,
    Category.UV_PAINT: _uv_paint_body,
    Category.EDIT: _edit_body,
    Category.STYLE_EXTRACTION: _style_extraction_body,
    Category.CRITIQUE: _critique_body,
    Category.REVERSE_PROMPT: _reverse_prompt_body,
    Category.MATERIAL_ANALYSIS: _material_analysis_body,
    Category.ASSET_INSIGHT: _asset_insight_body,
    Category.BRAINSTORM: _brainstorm_body,
}


# ---------------------------------------------------------------------------
# Composer.
# ---------------------------------------------------------------------------


def validate_request(request: GenerationRequest) -> CategorySpec:
    """Check a request before anything is composed or sent.

    Raises:
        InputValidationError: For missing text, a missing subject image, or an
            image/mask the category does not accept.
    """
    spec = get_spec(request.category)
    category = Category(request.category)

    if category in _TEXT_REQUIRED and not request.user_text.strip():
        raise InputValidationError(
            _MISSING_TEXT_MESSAGES.get(category, f"Please describe the {spec.label}")
        )

    if spec.requires_image and request.reference_image is None:
        raise InputValidationError("No image selected")

    if spec.image_role == "none" and request.reference_image is not None:
        raise InputValidationError(f"{spec.label} requests do not accept an image")

    if request.mask_image is not None and category is not Category.EDIT:
        raise InputValidationError("A mask can only be used with edit requests")

    return spec


def compose(request: GenerationRequest, tier: Tier | str = Tier.FINAL) -> ComposedPrompt:
    """Compose the instruction text and part list for ``request``.

    Args:
        request: The user's request.
        tier: Quality tier. Draft adds a preview qualifier and nothing else.

    Returns:
        The composed prompt.

    Raises:
        InputValidationError: If the request is incomplete (see
            :func:`validate_request`).
    """
    spec = validate_request(request)
    category = Category(request.category)
    sections: list[str] = []

    # --- Reference analysis (style references only) ------------------------
    if spec.image_role == "style" and request.reference_image is not None:
        sections.append(REFERENCE_ANALYSIS_CLAUSE)

    # --- Preview qualifier (draft tier only) -------------------------------
    if spec.tiered and Tier(tier) is Tier.DRAFT:
        sections.append(PREVIEW_QUALIFIER.format(label=spec.label))

    # --- Category body ------------------------------------------------------
    sections.extend(_BODY_BUILDERS[category](request, spec))

    # --- Fixed constraint clause -------------------------------------------
    if spec.produces_image and spec.image_role != "subject":
        sections.append(f"{BASE_IMAGE_CONSTRAINT} {spec.constraint_clause}")
    else:
        sections.append(spec.constraint_clause)

    # --- Labelled optional clauses -----------------------------------------
    palette = request.option("palette")
    if palette:
        sections.append(f"{PALETTE_LABEL} {palette}")

    negative = request.option("negative")
    if negative:
        sections.append(f"{NEGATIVE_LABEL} {negative}")

    text = "\n\n".join(sections)
    return ComposedPrompt(category=category, text=text, parts=_order_parts(spec, request, text))


def _order_parts(spec: CategorySpec, request: GenerationRequest, text: str) -> list[PromptPart]:
    available: dict[str, Any] = {
        "reference": request.reference_image,
        "mask": request.mask_image,
        "text": text,
    }
    return [available[slot] for slot in spec.part_order if available[slot] is not None]


def concept_text(request: GenerationRequest) -> str:
    """Return the concept handed to the art director.

    Plain asset categories pass the user's text untouched; parameterised
    categories (VFX maps, visual elements) pass their assembled description.
    """
    category = Category(request.category)
    builder = _BODY_BUILDERS[category]
    if builder is _asset_body:
        return request.user_text
    return "\n\n".join(builder(request, get_spec(category)))


def with_text(composed: ComposedPrompt, text: str) -> ComposedPrompt:
    """Return a copy of ``composed`` whose instruction text is replaced."""
    parts: list[PromptPart] = [p for p in composed.parts if isinstance(p, EncodedImage)]
    parts.append(text)
    return ComposedPrompt(category=composed.category, text=text, parts=parts)


# ---------------------------------------------------------------------------
# Art director (optional refinement).
# ---------------------------------------------------------------------------


def build_art_director_prompt(concept: str, context: str, constraints: str) -> str:
    """Build the rewrite instruction for the art director call."""
    return (
        "You are an expert Lead Game Artist and Technical Artist.\n"
        "Your task is to take a basic user concept and rewrite it into a highly detailed, "
        "professional image generation prompt suitable for high-end image models.\n\n"
        f"Context: {context}\n"
        f'User Concept: "{concept}"\n'
        f"Specific Constraints: {constraints}\n\n"
        "Rules:\n"
        "1. Describe lighting, composition, material properties (PBR), and rendering style "
        '(e.g., "Unreal Engine 5", "Vector", "Hand-painted").\n'
        "2. Ensure the output is a single, coherent paragraph.\n"
        "3. Do NOT add conversational text. Output ONLY the prompt."
    )


class ArtDirector:
    """Rewrites terse concepts into production-grade prompts.

    Refinement is never load-bearing: any failure returns the concept
    unchanged.
    """

    def __init__(self, client, model: str, thinking_budget: int | None = None) -> None:
        self._client = client
        self._model = model
        self._thinking_budget = thinking_budget

    async def refine(self, concept: str, context: str, constraints: str) -> str:
        """Return the refined prompt, or ``concept`` verbatim on failure."""
        prompt = build_art_director_prompt(concept, context, constraints)
        try:
            response = await self._client.generate_text(
                [prompt],
                model=self._model,
                thinking_budget=self._thinking_budget,
            )
            refined = extract_text(response).strip()
        except AssetForgeError as e:
            logger.warning("Art director refinement failed (%s); using the original concept.", e)
            return concept

        if not refined:
            logger.warning("Art director returned an empty prompt; using the original concept.")
            return concept

        logger.info("[Art Director] Enhanced prompt: %s", refined)
        return refined
