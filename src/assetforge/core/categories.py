"""Asset category table.

Each category the studio can produce or analyze has exactly one row in
:data:`CATEGORY_SPECS`. The composer, dispatcher and registry all consult the
table instead of switching on category names, so adding a category means
adding a row.

Columns
-------
label
    Human-readable name used inside prompts ("logo", "light cookie" ...).
constraint_clause
    Hard technical constraints appended verbatim to every prompt of the
    category. Never optional.
modality
    What the model is asked to return: an image, free text, or JSON.
image_role
    ``"none"``: no image input. ``"style"``: an optional reference whose
    style should be studied. ``"subject"``: a required input image the
    instruction operates on.
refinable
    Whether final-tier requests pass through the art director first.
tiered
    Whether the draft/final quality switch applies.
asset_category
    Registry category for successful results, ``None`` for text tasks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    """Every kind of request the composer understands."""

    LOGO = "logo"
    BANNER = "banner"
    TEXTURE = "texture"
    UI = "ui"
    UI_ELEMENT = "ui-element"
    NOISE = "noise"
    COOKIE = "cookie"
    UV_PAINT = "uv-paint"
    EDIT = "edit"
    REMASTER = "remaster"
    STYLE_EXTRACTION = "style-extraction"
    CRITIQUE = "critique"
    REVERSE_PROMPT = "reverse-prompt"
    MATERIAL_ANALYSIS = "material-analysis"
    ASSET_INSIGHT = "asset-insight"
    BRAINSTORM = "brainstorm"


class Modality(str, Enum):
    IMAGE = "image"
    TEXT = "text"
    JSON = "json"


class Tier(str, Enum):
    """Quality tier. Draft is fast and low fidelity, final is slow and high fidelity."""

    DRAFT = "draft"
    FINAL = "final"


PART_ORDER: tuple[str, ...] = ("reference", "mask", "text")

BASE_IMAGE_CONSTRAINT = "Ensure the asset is high-resolution."

LOGO_CONSTRAINT = "Vector style, clean lines, iconic."
BANNER_CONSTRAINT = "Cinematic, atmospheric, highly detailed environment."
TEXTURE_CONSTRAINT = "Seamless, tileable, PBR material, flat lighting."
UI_CONSTRAINT = "Isolatable elements on plain background, user interface design."
UI_ELEMENT_CONSTRAINT = (
    "STRICTLY NO TEXT. NO NUMBERS. NO LETTERS. NO SYMBOLS. Purely graphical game asset. "
    "High fidelity rendering. Isolated on a solid plain background (easy to mask). "
    "Focus on material, shape, and lighting. Iconography or abstract UI shapes only."
)
NOISE_CONSTRAINT = (
    "Grayscale heightmap, high contrast, mathematical procedural pattern, flat lighting, "
    "no shading, square 1:1. Suitable for VFX shaders."
)
COOKIE_CONSTRAINT = (
    "High contrast Black and White only (Gobo). Pure black background (blocks light), "
    "white shapes = aperture (allows light). Defines shadow projection."
)
UV_PAINT_CONSTRAINT = (
    "Maintain the exact position and scale of the UV islands. "
    "Background (void space) should be distinct from the texture."
)
EDIT_CONSTRAINT = "Maintain the existing art style perfectly."
REMASTER_CONSTRAINT = "AAA production quality, clean topology-friendly detail, no baked-in lighting."
STYLE_EXTRACTION_CONSTRAINT = "IGNORE all text, numbers, fonts, and labels. Pretend they do not exist."
CRITIQUE_CONSTRAINT = (
    'Output Format: JSON with keys: "critique", "technicalIssues" (array of strings), '
    '"engineSuggestions", "remasterPrompt".'
)
INSIGHT_CONSTRAINT = 'Output Format: JSON with keys: "style", "mood".'


@dataclass(frozen=True)
class CategorySpec:
    label: str
    constraint_clause: str
    modality: Modality
    image_role: str = "none"
    refinable: bool = False
    tiered: bool = False
    asset_category: Category | None = None
    part_order: tuple[str, ...] = PART_ORDER

    @property
    def produces_image(self) -> bool:
        return self.modality is Modality.IMAGE

    @property
    def requires_image(self) -> bool:
        return self.image_role == "subject"


CATEGORY_SPECS: dict[Category, CategorySpec] = {
    Category.LOGO: CategorySpec(
        label="logo",
        constraint_clause=LOGO_CONSTRAINT,
        modality=Modality.IMAGE,
        image_role="style",
        refinable=True,
        tiered=True,
        asset_category=Category.LOGO,
    ),
    Category.BANNER: CategorySpec(
        label="banner",
        constraint_clause=BANNER_CONSTRAINT,
        modality=Modality.IMAGE,
        image_role="style",
        refinable=True,
        tiered=True,
        asset_category=Category.BANNER,
    ),
    Category.TEXTURE: CategorySpec(
        label="texture",
        constraint_clause=TEXTURE_CONSTRAINT,
        modality=Modality.IMAGE,
        image_role="style",
        refinable=True,
        tiered=True,
        asset_category=Category.TEXTURE,
    ),
    Category.UI: CategorySpec(
        label="ui",
        constraint_clause=UI_CONSTRAINT,
        modality=Modality.IMAGE,
        image_role="style",
        refinable=True,
        tiered=True,
        asset_category=Category.UI,
    ),
    Category.UI_ELEMENT: CategorySpec(
        label="ui-visual",
        constraint_clause=UI_ELEMENT_CONSTRAINT,
        modality=Modality.IMAGE,
        image_role="style",
        refinable=True,
        tiered=True,
        asset_category=Category.UI_ELEMENT,
    ),
    Category.NOISE: CategorySpec(
        label="noise",
        constraint_clause=NOISE_CONSTRAINT,
        modality=Modality.IMAGE,
        refinable=True,
        tiered=True,
        asset_category=Category.NOISE,
    ),
    Category.COOKIE: CategorySpec(
        label="cookie",
        constraint_clause=COOKIE_CONSTRAINT,
        modality=Modality.IMAGE,
        refinable=True,
        tiered=True,
        asset_category=Category.COOKIE,
    ),
    Category.UV_PAINT: CategorySpec(
        label="UV texture",
        constraint_clause=UV_PAINT_CONSTRAINT,
        modality=Modality.IMAGE,
        image_role="subject",
        asset_category=Category.UV_PAINT,
    ),
    Category.EDIT: CategorySpec(
        label="edit",
        constraint_clause=EDIT_CONSTRAINT,
        modality=Modality.IMAGE,
        image_role="subject",
        asset_category=Category.EDIT,
    ),
    Category.REMASTER: CategorySpec(
        label="remastered asset",
        constraint_clause=REMASTER_CONSTRAINT,
        modality=Modality.IMAGE,
        image_role="style",
        refinable=True,
        tiered=True,
        asset_category=Category.REMASTER,
    ),
    Category.STYLE_EXTRACTION: CategorySpec(
        label="style extraction",
        constraint_clause=STYLE_EXTRACTION_CONSTRAINT,
        modality=Modality.TEXT,
        image_role="subject",
    ),
    Category.CRITIQUE: CategorySpec(
        label="engine critique",
        constraint_clause=CRITIQUE_CONSTRAINT,
        modality=Modality.JSON,
        image_role="subject",
    ),
    Category.REVERSE_PROMPT: CategorySpec(
        label="reverse prompt",
        constraint_clause="Format it as a single, high-quality prompt string ready for an image generator.",
        modality=Modality.TEXT,
        image_role="subject",
    ),
    Category.MATERIAL_ANALYSIS: CategorySpec(
        label="material analysis",
        constraint_clause="Focus on the pattern, material age, and surface imperfections.",
        modality=Modality.TEXT,
        image_role="subject",
    ),
    Category.ASSET_INSIGHT: CategorySpec(
        label="asset insight",
        constraint_clause=INSIGHT_CONSTRAINT,
        modality=Modality.JSON,
        image_role="subject",
    ),
    Category.BRAINSTORM: CategorySpec(
        label="mechanics brainstorm",
        constraint_clause="Use **bold** for mechanic names.",
        modality=Modality.TEXT,
    ),
}


def get_spec(category: Category | str) -> CategorySpec:
    """Look up a category row.

    Raises:
        KeyError: If the category is unknown.
    """
    try:
        return CATEGORY_SPECS[Category(category)]
    except ValueError:
        available = ", ".join(c.value for c in Category)
        raise KeyError(f"Unknown category '{category}'. Available categories: {available}") from None


def image_categories() -> list[Category]:
    """Categories that produce registry assets."""
    return [c for c, spec in CATEGORY_SPECS.items() if spec.asset_category is not None]
