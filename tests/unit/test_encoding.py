"""Tests for assetforge.core.encoding — image payload encoding.

Tests cover:
- Encoding raw bytes, files on disk and PIL images.
- Rejection of empty payloads and non-image media types.
- Data URL formatting and parsing.
- Verification that uploaded bytes really are an image.
"""

from __future__ import annotations

import base64

import pytest
from PIL import Image

from assetforge.core.encoding import (
    EncodedImage,
    decode_data_url,
    encode_image_bytes,
    encode_image_file,
    encode_pil_image,
    verify_image,
)
from assetforge.core.errors import InputValidationError


class TestEncodeImageBytes:
    """Test encode_image_bytes()."""

    def test_payload_is_base64_of_input(self):
        encoded = encode_image_bytes(b"abc123", "image/png")
        assert encoded.data == base64.b64encode(b"abc123").decode("ascii")
        assert encoded.mime_type == "image/png"

    def test_missing_mime_type_defaults_to_png(self):
        assert encode_image_bytes(b"abc", None).mime_type == "image/png"

    def test_mime_type_is_normalised(self):
        assert encode_image_bytes(b"abc", " Image/JPEG ").mime_type == "image/jpeg"

    def test_empty_payload_rejected(self):
        """An empty upload is a user error, caught before any request."""
        with pytest.raises(InputValidationError):
            encode_image_bytes(b"", "image/png")

    def test_non_image_type_rejected(self):
        with pytest.raises(InputValidationError, match="Unsupported file type"):
            encode_image_bytes(b"%PDF", "application/pdf")


class TestEncodeImageFile:
    """Test encode_image_file()."""

    def test_mime_type_guessed_from_suffix(self, tmp_path, sample_png_bytes):
        path = tmp_path / "reference.jpg"
        path.write_bytes(sample_png_bytes)
        assert encode_image_file(path).mime_type == "image/jpeg"

    def test_missing_file_propagates_oserror(self, tmp_path):
        with pytest.raises(OSError):
            encode_image_file(tmp_path / "missing.png")


class TestPilAndDataUrls:
    """Test PIL encoding and data URL round trips through the helpers."""

    def test_encode_pil_image_produces_png(self):
        encoded = encode_pil_image(Image.new("RGBA", (4, 4)), format="PNG")
        assert encoded.mime_type == "image/png"
        assert encoded.to_pil().size == (4, 4)

    def test_to_data_url_format(self):
        encoded = EncodedImage(data="QUJD", mime_type="image/webp")
        assert encoded.to_data_url() == "data:image/webp;base64,QUJD"

    def test_decode_data_url(self, sample_image):
        decoded = decode_data_url(sample_image.to_data_url())
        assert decoded == sample_image

    def test_decode_rejects_plain_url(self):
        with pytest.raises(InputValidationError):
            decode_data_url("https://example.com/image.png")

    def test_decode_rejects_bad_base64(self):
        with pytest.raises(InputValidationError, match="Invalid base64"):
            decode_data_url("data:image/png;base64,@@@")


class TestVerifyImage:
    """Test verify_image() and to_pil() on bytes that are not an image."""

    def test_real_image_passes(self, sample_image):
        assert verify_image(sample_image) is sample_image

    def test_declared_png_with_garbage_bytes(self):
        fake = encode_image_bytes(b"not really a png", "image/png")
        with pytest.raises(InputValidationError, match="not a readable image"):
            verify_image(fake)

    def test_to_pil_raises_input_error(self):
        fake = encode_image_bytes(b"not really a png", "image/png")
        with pytest.raises(InputValidationError):
            fake.to_pil()
