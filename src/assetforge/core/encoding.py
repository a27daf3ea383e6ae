"""Image-to-payload encoding.

Uploaded files travel to the hosted model as base64 text plus a media type.
:class:`EncodedImage` is that pair; the helpers below build one from raw
bytes, a file on disk, a PIL image, or a ``data:`` URL returned by an earlier
generation (which is how an edited result is fed into the next edit).
"""

from __future__ import annotations

import base64
import binascii
import io
import mimetypes
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from assetforge.core.errors import InputValidationError

DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class EncodedImage:
    """Base64-encoded image payload and its media type."""

    data: str
    mime_type: str

    def raw_bytes(self) -> bytes:
        """Decode the payload back into bytes."""
        return base64.b64decode(self.data)

    def to_data_url(self) -> str:
        """Return a ``data:`` URL ready for display."""
        return f"data:{self.mime_type};base64,{self.data}"

    def to_pil(self) -> Image.Image:
        """Open the payload as a PIL image.

        Raises:
            InputValidationError: If the payload is not a readable image.
        """
        try:
            return Image.open(io.BytesIO(self.raw_bytes()))
        except (UnidentifiedImageError, OSError) as e:
            raise InputValidationError("The file is not a readable image") from e


def encode_image_bytes(data: bytes, mime_type: str | None) -> EncodedImage:
    """Encode raw image bytes.

    Args:
        data: File contents.
        mime_type: Declared media type. Falls back to PNG when empty.

    Raises:
        InputValidationError: If the payload is empty or the media type is
            not an image type.
    """
    if not data:
        raise InputValidationError("No file selected or the file is empty")

    mime_type = (mime_type or DEFAULT_MIME_TYPE).strip().lower()
    if not mime_type.startswith("image/"):
        raise InputValidationError(f"Unsupported file type: {mime_type}")

    return EncodedImage(data=base64.b64encode(data).decode("ascii"), mime_type=mime_type)


def encode_image_file(path: Path | str) -> EncodedImage:
    """Read and encode an image file from disk.

    The media type is guessed from the file suffix.
    """
    path = Path(path)
    mime_type, _ = mimetypes.guess_type(path.name)
    return encode_image_bytes(path.read_bytes(), mime_type)


def encode_pil_image(image: Image.Image, format: str = "PNG") -> EncodedImage:
    """Serialize a PIL image and encode it."""
    buffer = io.BytesIO()
    image.save(buffer, format=format)
    mime_type = Image.MIME.get(format.upper(), DEFAULT_MIME_TYPE)
    return encode_image_bytes(buffer.getvalue(), mime_type)


def decode_data_url(url: str) -> EncodedImage:
    """Parse a ``data:<mime>;base64,<payload>`` URL.

    Raises:
        InputValidationError: If the string is not a base64 image data URL.
    """
    header, sep, payload = url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise InputValidationError("Expected a base64 data URL")

    mime_type = header[len("data:") : -len(";base64")] or DEFAULT_MIME_TYPE
    try:
        raw = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise InputValidationError(f"Invalid base64 payload: {e}") from e

    return encode_image_bytes(raw, mime_type)


def verify_image(image: EncodedImage) -> EncodedImage:
    """Check that ``image`` decodes as an image file and return it.

    Raises:
        InputValidationError: If the bytes are truncated or not an image.
    """
    try:
        with Image.open(io.BytesIO(image.raw_bytes())) as opened:
            opened.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InputValidationError("The file is not a readable image") from e
    return image
