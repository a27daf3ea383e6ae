"""Edit-mask rasterization.

The editor lets the user paint over an image with a translucent brush. Those
strokes are kept as a replayable log of :class:`Stroke` records, and turned
into a strict black/white stencil right before each edit is submitted:

1. Paint the strokes onto a transparent overlay with the brush ink.
2. Composite the overlay over an all-black canvas of the same size.
3. Threshold the red channel (the ink's dominant channel): anything above
   :data:`MASK_THRESHOLD` becomes opaque white, everything else opaque black.
4. If no pixel is white, there is no mask. An all-black stencil is never
   returned.

White marks the editable region; black must be preserved.

Usage
-----
::

    strokes = [Stroke(x=120, y=80, radius=15), Stroke(x=130, y=84, radius=15)]
    mask = build_mask(strokes, width=512, height=512)
    if mask is None:
        ...  # global edit
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from PIL import Image, ImageDraw

from assetforge.core.encoding import EncodedImage, encode_pil_image
from assetforge.core.errors import InputValidationError

# rgba(255, 0, 255, 0.5): the editor's magenta brush.
BRUSH_INK: tuple[int, int, int, int] = (255, 0, 255, 128)
ERASE_INK: tuple[int, int, int, int] = (0, 0, 0, 0)

# Red-channel intensity above which a composited pixel counts as painted.
MASK_THRESHOLD = 50

# Largest canvas side accepted for rasterization, in pixels.
MAX_MASK_SIZE = 8192

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


@dataclass(frozen=True)
class Stroke:
    """One brush dab: a filled circle centred on ``(x, y)``."""

    x: float
    y: float
    radius: float
    erase: bool = False


def _check_size(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise InputValidationError(f"Mask size must be positive, got {width}x{height}")
    if width > MAX_MASK_SIZE or height > MAX_MASK_SIZE:
        raise InputValidationError(
            f"Mask size {width}x{height} exceeds the {MAX_MASK_SIZE}px limit"
        )


def paint_overlay(strokes: Iterable[Stroke], width: int, height: int) -> Image.Image:
    """Replay a stroke log onto a transparent RGBA overlay.

    Strokes are applied in order; erase strokes clear previously painted ink.
    """
    _check_size(width, height)
    overlay = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)

    for stroke in strokes:
        r = max(stroke.radius, 0.5)
        bbox = (stroke.x - r, stroke.y - r, stroke.x + r, stroke.y + r)
        draw.ellipse(bbox, fill=ERASE_INK if stroke.erase else BRUSH_INK)

    return overlay


def binarize_overlay(overlay: Image.Image) -> Image.Image | None:
    """Turn a painted overlay into a two-valued stencil.

    Args:
        overlay: Paint layer of any mode; converted to RGBA.

    Returns:
        RGBA image of the same size containing only pure black and pure white
        pixels, or ``None`` when nothing crosses the threshold.
    """
    overlay = overlay.convert("RGBA")
    canvas = Image.new("RGBA", overlay.size, BLACK)
    canvas.alpha_composite(overlay)

    red = canvas.getchannel("R")
    stencil = red.point(lambda value: 255 if value > MASK_THRESHOLD else 0)

    # getbbox() is None when every pixel is zero.
    if stencil.getbbox() is None:
        return None

    opaque = Image.new("L", overlay.size, 255)
    return Image.merge("RGBA", (stencil, stencil, stencil, opaque))


def rasterize(strokes: Iterable[Stroke], width: int, height: int) -> Image.Image | None:
    """Paint ``strokes`` and binarize the result."""
    return binarize_overlay(paint_overlay(strokes, width, height))


def build_mask(strokes: Iterable[Stroke], width: int, height: int) -> EncodedImage | None:
    """Rasterize ``strokes`` and encode the stencil as PNG.

    Returns:
        The encoded stencil, or ``None`` when there is nothing to mask.
    """
    stencil = rasterize(strokes, width, height)
    if stencil is None:
        return None
    return encode_pil_image(stencil, format="PNG")
