"""Shared pytest fixtures for Asset Forge tests."""

from __future__ import annotations

import base64
from collections.abc import Generator

import pytest
from google.genai import types
from PIL import Image

from assetforge.core.config import AssetForgeConfig
from assetforge.core.encoding import EncodedImage, encode_pil_image
from assetforge.core.registry import AssetRegistry
from assetforge.core.studio import AssetStudio

PNG_BYTES = b"\x89PNG-fake-image-bytes"
JPEG_BYTES = b"\xff\xd8\xff-fake-jpeg-bytes"


# ---------------------------------------------------------------------------
# Response envelopes.
# ---------------------------------------------------------------------------


def image_response(data: bytes = PNG_BYTES, mime_type: str = "image/png") -> types.GenerateContentResponse:
    """A ``generate_content`` response carrying one inline image."""
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(
                    role="model",
                    parts=[types.Part(inline_data=types.Blob(data=data, mime_type=mime_type))],
                )
            )
        ]
    )


def text_response(text: str) -> types.GenerateContentResponse:
    """A ``generate_content`` response carrying one text part."""
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)]))
        ]
    )


def empty_response() -> types.GenerateContentResponse:
    """A response with no candidates (what a refusal looks like)."""
    return types.GenerateContentResponse(candidates=[])


def images_response(data: bytes = JPEG_BYTES, mime_type: str = "image/jpeg") -> types.GenerateImagesResponse:
    """A ``generate_images`` response carrying one image."""
    return types.GenerateImagesResponse(
        generated_images=[
            types.GeneratedImage(image=types.Image(image_bytes=data, mime_type=mime_type))
        ]
    )


class FakeGenAIClient:
    """Stand-in for :class:`GenAIClient` that records calls.

    Each method pops the next queued response for its call type; a queued
    exception is raised instead of returned. When a queue is empty a default
    success envelope is returned.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.image_queue: list = []
        self.images_queue: list = []
        self.text_queue: list = []

    def _next(self, queue: list, default):
        item = queue.pop(0) if queue else default
        if isinstance(item, BaseException):
            raise item
        return item

    def calls_to(self, method: str) -> list[dict]:
        return [kwargs for name, kwargs in self.calls if name == method]

    async def generate_image(self, parts, *, model, aspect_ratio=None):
        self.calls.append(
            ("generate_image", {"parts": list(parts), "model": model, "aspect_ratio": aspect_ratio})
        )
        return self._next(self.image_queue, image_response())

    async def generate_images(
        self, prompt, *, model, aspect_ratio="1:1", number_of_images=1, output_mime_type="image/jpeg"
    ):
        self.calls.append(
            (
                "generate_images",
                {
                    "prompt": prompt,
                    "model": model,
                    "aspect_ratio": aspect_ratio,
                    "number_of_images": number_of_images,
                    "output_mime_type": output_mime_type,
                },
            )
        )
        return self._next(self.images_queue, images_response())

    async def generate_text(
        self, parts, *, model, response_format=None, response_schema=None, thinking_budget=None
    ):
        self.calls.append(
            (
                "generate_text",
                {
                    "parts": list(parts),
                    "model": model,
                    "response_format": response_format,
                    "response_schema": response_schema,
                    "thinking_budget": thinking_budget,
                },
            )
        )
        return self._next(self.text_queue, text_response("ok"))


# ---------------------------------------------------------------------------
# Fixtures.
# ---------------------------------------------------------------------------


@pytest.fixture
def test_config() -> AssetForgeConfig:
    """Create a test configuration that ignores the environment's .env file.

    Prompt refinement is disabled so tests see the composed prompt directly;
    tests of the art director enable it explicitly.

    Returns:
        AssetForgeConfig instance for testing
    """
    return AssetForgeConfig(
        _env_file=None,
        api_key="test-key",
        refine_prompts=False,
        max_variants=4,
    )


@pytest.fixture
def fake_client() -> FakeGenAIClient:
    return FakeGenAIClient()


@pytest.fixture
def registry() -> AssetRegistry:
    return AssetRegistry()


@pytest.fixture
def studio(fake_client: FakeGenAIClient, test_config: AssetForgeConfig, registry: AssetRegistry) -> AssetStudio:
    """AssetStudio wired to the fake client and an empty registry."""
    return AssetStudio(fake_client, test_config, registry)


@pytest.fixture
def sample_image() -> EncodedImage:
    """A small solid-color PNG, encoded.

    Returns:
        EncodedImage of a 16x12 red PNG
    """
    return encode_pil_image(Image.new("RGB", (16, 12), (200, 30, 30)), format="PNG")


@pytest.fixture
def sample_png_bytes(sample_image: EncodedImage) -> bytes:
    return base64.b64decode(sample_image.data)


@pytest.fixture
def test_client(monkeypatch, fake_client: FakeGenAIClient, test_config: AssetForgeConfig) -> Generator:
    """FastAPI TestClient whose studio talks to the fake client.

    The lifespan handler runs on entering the ``with`` block, so every test
    gets a fresh studio and an empty gallery.
    """
    from fastapi.testclient import TestClient

    import assetforge.api.main as api_main

    monkeypatch.setattr(api_main, "config", test_config)
    monkeypatch.setattr(api_main.GenAIClient, "create", lambda credential: fake_client)

    with TestClient(api_main.app) as client:
        yield client
