"""Asset Forge FastAPI Application.

This module is the single entry point for the web service. It defines the
FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
- **Generation** is delegated to one :class:`~assetforge.core.studio.AssetStudio`
  per process, created in the lifespan handler from the configured
  credential and stored on ``app.state``.
- **The gallery** is the studio's in-memory
  :class:`~assetforge.core.registry.AssetRegistry`. Nothing is persisted;
  restarting the server empties it.
- **Uploads** arrive as multipart form data and are encoded to base64
  payloads before anything is sent to the model.
- **Errors** from the core are mapped to HTTP status codes by a single
  exception handler (see :data:`ERROR_STATUS`).

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/config``               Categories, presets, aspect ratios
POST      ``/api/prompt/compile``       Preview the composed prompt
POST      ``/api/generate``             Generate one asset
POST      ``/api/generate/variants``    Generate N variants in parallel
POST      ``/api/generate/reference``   Generate with a style reference
POST      ``/api/edit``                 Masked or global edit
POST      ``/api/analyze``              Engine-targeted critique
POST      ``/api/analyze/insight``      Style and mood read-out
POST      ``/api/remaster``             Regenerate from a critique
POST      ``/api/texture/extract``      Texture extraction from a photo
POST      ``/api/style/extract``        Visual style clone description
POST      ``/api/ui/element``           Text-free UI visual element
POST      ``/api/reverse-prompt``       Image to prompt
POST      ``/api/vfx``                  Noise map or light cookie
POST      ``/api/uv-paint``             Paint a texture onto a UV layout
POST      ``/api/brainstorm``           Game mechanics ideation
GET       ``/api/gallery``              Paginated gallery listing
GET       ``/api/gallery/{id}``         Single gallery asset
DELETE    ``/api/gallery/{id}``         Remove an asset (idempotent)
GET       ``/api/stats``                Gallery statistics
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    assetforge

Direct invocation::

    python -m assetforge.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from assetforge import __version__
from assetforge.api.models import (
    STROKE_LIST,
    BrainstormRequest,
    GenerateRequest,
    RemasterRequest,
    VariantsRequest,
    VfxRequest,
    VisualElementRequest,
)
from assetforge.core.categories import Category, get_spec, image_categories
from assetforge.core.config import config
from assetforge.core.encoding import (
    EncodedImage,
    decode_data_url,
    encode_image_bytes,
    verify_image,
)
from assetforge.core.errors import AssetForgeError, InputValidationError, MalformedResponseError
from assetforge.core.genai_client import GenAIClient
from assetforge.core.mask import MAX_MASK_SIZE, Stroke
from assetforge.core.prompts import compose
from assetforge.core.registry import filter_assets, paginate_assets
from assetforge.core.studio import AssetStudio

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Presets served to the front end.
# ---------------------------------------------------------------------------
ASPECT_RATIOS = ["1:1", "3:4", "4:3", "9:16", "16:9"]

STYLE_PRESETS = [
    "Photorealistic",
    "Pixel Art",
    "Hand-painted",
    "Low Poly",
    "Cel Shaded",
    "Dark Fantasy",
    "Sci-Fi",
    "Cyberpunk",
    "Vector",
]

ENGINES = ["Unreal Engine 5", "Unity", "Godot"]

NOISE_TYPES = ["Perlin", "Simplex", "Voronoi", "Worley", "Fractal Brownian Motion", "Ridged"]
COOKIE_PATTERNS = ["Window Blinds", "Tree Canopy", "Flashlight", "Stained Glass", "Caustics"]

ERROR_STATUS = {
    "invalid_input": 400,
    "missing_credential": 503,
    "transport": 503,
    "generation_failed": 502,
    "malformed_response": 502,
}

# ---------------------------------------------------------------------------
# Application lifecycle.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the generation client and studio on startup.

    A missing credential is fatal: :class:`MissingCredentialError` propagates
    and the server refuses to start.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    client = GenAIClient.create(config.credential())
    app.state.studio = AssetStudio(client, config)
    logger.info("AssetStudio initialised (image model: %s).", config.image_model)

    yield

    app.state.studio.registry.clear()
    logger.info("Session registry cleared on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Asset Forge",
    description="Game-art asset generation API backed by a hosted multimodal model.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so the front end can be served from a different
# port during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AssetForgeError)
async def handle_asset_forge_error(request: Request, exc: AssetForgeError) -> JSONResponse:
    """Map core errors to HTTP responses with a user-facing message."""
    status = ERROR_STATUS.get(exc.code, 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body = {"error": exc.code, "detail": str(exc)}
    if isinstance(exc, MalformedResponseError) and exc.raw_text:
        body["raw_text"] = exc.raw_text
    return JSONResponse(status_code=status, content=body)


# ---------------------------------------------------------------------------
# Request helpers.
# ---------------------------------------------------------------------------


def _studio() -> AssetStudio:
    return app.state.studio


async def _read_upload(upload: UploadFile) -> EncodedImage:
    """Read an uploaded file, check that it is an image and encode it."""
    data = await upload.read()
    return verify_image(encode_image_bytes(data, upload.content_type))


def _parse_strokes(raw: str | None) -> list[Stroke]:
    """Parse the ``strokes`` form field (a JSON array of stroke objects)."""
    if not raw or not raw.strip():
        return []
    try:
        return [s.to_stroke() for s in STROKE_LIST.validate_json(raw)]
    except ValidationError as e:
        raise InputValidationError(f"Invalid strokes: {e.errors()[0]['msg']}") from e


def _check_image_category(category: Category) -> None:
    if not get_spec(category).produces_image:
        raise InputValidationError(f"{category.value} does not produce an image")


# ---------------------------------------------------------------------------
# Configuration and prompt preview.
# ---------------------------------------------------------------------------


@app.get("/api/config")
async def get_config() -> dict:
    """Return the presets the front end needs to build its forms.

    Returns:
        Dictionary with ``version``, ``categories``, ``aspect_ratios``,
        ``style_presets``, ``engines``, ``noise_types``, ``cookie_patterns``
        and ``max_variants``.
    """
    return {
        "version": __version__,
        "categories": [c.value for c in image_categories()],
        "aspect_ratios": ASPECT_RATIOS,
        "style_presets": STYLE_PRESETS,
        "engines": ENGINES,
        "noise_types": NOISE_TYPES,
        "cookie_patterns": COOKIE_PATTERNS,
        "max_variants": config.max_variants,
    }


@app.post("/api/prompt/compile")
async def compile_prompt(req: GenerateRequest) -> dict:
    """Preview the composed prompt without calling the model.

    Returns:
        Dictionary with ``compiled_prompt`` and ``tier``.
    """
    composed = compose(req.to_generation_request(), req.tier)
    return {"compiled_prompt": composed.text, "tier": req.tier.value}


# ---------------------------------------------------------------------------
# Generation.
# ---------------------------------------------------------------------------


@app.post("/api/generate")
async def generate_asset(req: GenerateRequest) -> dict:
    """Generate one asset and add it to the gallery.

    Returns:
        Dictionary with ``success`` and ``asset``.
    """
    _check_image_category(req.category)
    asset = await _studio().generate_asset(req.to_generation_request(), req.tier)
    return {"success": True, "asset": asset.model_dump(mode="json")}


@app.post("/api/generate/variants")
async def generate_variants(req: VariantsRequest) -> dict:
    """Generate ``count`` variants in parallel.

    Either every variant is returned or the request fails as a whole and
    nothing is added to the gallery.
    """
    _check_image_category(req.category)
    assets = await _studio().generate_variants(req.to_generation_request(), req.count, req.tier)
    return {"success": True, "assets": [a.model_dump(mode="json") for a in assets]}


@app.post("/api/generate/reference")
async def generate_with_reference(
    reference: UploadFile = File(...),
    category: Category = Form(...),
    prompt: str = Form(...),
    style: str = Form(""),
    palette: str = Form(""),
    negative: str = Form(""),
    aspect_ratio: str = Form("1:1"),
) -> dict:
    """Generate an asset whose style follows an uploaded reference image."""
    _check_image_category(category)
    req = GenerateRequest(
        category=category,
        prompt=prompt,
        style=style or None,
        palette=palette or None,
        negative=negative or None,
        aspect_ratio=aspect_ratio,
    )
    request = req.to_generation_request()
    request.reference_image = await _read_upload(reference)
    asset = await _studio().generate_asset(request)
    return {"success": True, "asset": asset.model_dump(mode="json")}


@app.post("/api/edit")
async def edit_asset(
    instruction: str = Form(...),
    image: UploadFile | None = File(None),
    source_asset_id: str | None = Form(None),
    strokes: str | None = Form(None),
    canvas_width: int | None = Form(None, gt=0, le=MAX_MASK_SIZE),
    canvas_height: int | None = Form(None, gt=0, le=MAX_MASK_SIZE),
) -> dict:
    """Edit an uploaded image, or a gallery asset by id.

    ``strokes`` is a JSON array of ``{x, y, radius, erase}`` objects in
    canvas coordinates. With no effective strokes the edit applies globally.

    Raises:
        HTTPException: 404 if ``source_asset_id`` is not in the gallery.
    """
    studio = _studio()
    if image is not None:
        source = await _read_upload(image)
    elif source_asset_id:
        entry = studio.registry.get(source_asset_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="Asset not found")
        source = decode_data_url(entry.data_url)
    else:
        raise InputValidationError("No image selected")

    canvas_size = None
    if canvas_width and canvas_height:
        canvas_size = (canvas_width, canvas_height)

    asset = await studio.edit_asset(
        source, instruction, strokes=_parse_strokes(strokes), canvas_size=canvas_size
    )
    return {"success": True, "asset": asset.model_dump(mode="json")}


# ---------------------------------------------------------------------------
# Analysis and specialised studios.
# ---------------------------------------------------------------------------


@app.post("/api/analyze")
async def analyze_for_engine(
    image: UploadFile = File(...),
    engine: str = Form("Unreal Engine 5"),
) -> dict:
    """Critique an asset against a game engine's standards."""
    report = await _studio().analyze_for_engine(await _read_upload(image), engine)
    return {"engine": engine, "report": report.model_dump(by_alias=True)}


@app.post("/api/analyze/insight")
async def analyze_asset(image: UploadFile = File(...)) -> dict:
    insight = await _studio().analyze_asset(await _read_upload(image))
    return insight.model_dump()


@app.post("/api/remaster")
async def remaster(req: RemasterRequest) -> dict:
    """Regenerate an asset from a critique's remaster prompt."""
    asset = await _studio().remaster(
        req.remaster_prompt, aspect_ratio=req.aspect_ratio, tier=req.tier
    )
    return {"success": True, "asset": asset.model_dump(mode="json")}


@app.post("/api/texture/extract")
async def extract_texture(
    image: UploadFile = File(...),
    make_seamless: bool = Form(False),
) -> dict:
    """Describe the material in a photo and re-synthesize it as a texture."""
    result = await _studio().extract_texture(await _read_upload(image), make_seamless)
    return {"success": True, **result.model_dump(mode="json")}


@app.post("/api/style/extract")
async def extract_visual_style(image: UploadFile = File(...)) -> dict:
    style_guide = await _studio().extract_visual_style(await _read_upload(image))
    return {"style_guide": style_guide}


@app.post("/api/ui/element")
async def generate_visual_element(req: VisualElementRequest) -> dict:
    asset = await _studio().generate_visual_element(req.style_guide, req.item, req.tier)
    return {"success": True, "asset": asset.model_dump(mode="json")}


@app.post("/api/reverse-prompt")
async def reverse_engineer_prompt(image: UploadFile = File(...)) -> dict:
    prompt = await _studio().reverse_engineer_prompt(await _read_upload(image))
    return {"prompt": prompt}


@app.post("/api/vfx")
async def generate_vfx_asset(req: VfxRequest) -> dict:
    """Generate a noise map or light cookie."""
    asset = await _studio().generate_vfx_asset(req.to_params(), req.tier)
    return {"success": True, "asset": asset.model_dump(mode="json")}


@app.post("/api/uv-paint")
async def paint_uv_texture(
    image: UploadFile = File(...),
    object_type: str = Form(...),
    style: str = Form("Hand-painted"),
    colors: str = Form(""),
) -> dict:
    """Paint a texture that follows the islands of an uploaded UV layout."""
    asset = await _studio().paint_uv_texture(
        await _read_upload(image), object_type, style, colors
    )
    return {"success": True, "asset": asset.model_dump(mode="json")}


@app.post("/api/brainstorm")
async def brainstorm_mechanics(req: BrainstormRequest) -> dict:
    ideas = await _studio().brainstorm_mechanics(req.concept)
    return {"ideas": ideas}


# ---------------------------------------------------------------------------
# Gallery.
# ---------------------------------------------------------------------------


@app.get("/api/gallery")
async def get_gallery(
    page: int = 1,
    per_page: int = 20,
    category: Category | None = None,
) -> dict:
    """Return a paginated listing of this session's assets, newest first.

    Args:
        page: Page number (1-indexed). Out-of-range pages are clamped.
        per_page: Number of assets per page.
        category: If provided, return only assets of this category.

    Returns:
        Dictionary with keys ``total``, ``page``, ``per_page``, ``pages``,
        and ``assets``.
    """
    assets = filter_assets(_studio().registry.list_assets(), category=category)
    result = paginate_assets(assets, page, per_page)
    result["assets"] = [a.model_dump(mode="json") for a in result["assets"]]
    return result


@app.get("/api/gallery/{asset_id}")
async def get_asset(asset_id: str) -> dict:
    """Return a single gallery asset.

    Raises:
        HTTPException: 404 if the asset is not found.
    """
    asset = _studio().registry.get(asset_id)
    if asset is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    return asset.model_dump(mode="json")


@app.delete("/api/gallery/{asset_id}")
async def delete_asset(asset_id: str) -> dict:
    """Remove an asset from the gallery.

    Deleting an unknown id succeeds with ``removed`` set to ``False``.
    """
    removed = _studio().registry.remove(asset_id)
    return {"success": True, "deleted": asset_id, "removed": removed}


@app.get("/api/stats")
async def get_stats() -> dict:
    """Return gallery statistics.

    Returns:
        Dictionary with ``total_assets`` and ``category_counts`` (a mapping
        of category to count).
    """
    return _studio().registry.stats()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~assetforge.core.config.config`
    (``ASSETFORGE_SERVER_HOST``, ``ASSETFORGE_SERVER_PORT``,
    ``ASSETFORGE_LOG_LEVEL``). Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``assetforge`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        "assetforge.api.main:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
