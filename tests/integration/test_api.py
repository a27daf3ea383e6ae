"""Integration tests for assetforge.api.main — FastAPI REST API endpoints.

All tests use the FastAPI TestClient with the FakeGenAIClient injected in
place of the real service client, so no network access occurs. Tests cover:

- ``GET /api/config`` — presets delivery.
- ``POST /api/prompt/compile`` — prompt preview.
- ``POST /api/generate`` and ``/api/generate/variants`` — generation.
- ``POST /api/generate/reference`` and ``/api/edit`` — multipart uploads.
- Analysis, remaster, texture, style, UI element, reverse prompt, VFX,
  UV painting and brainstorm endpoints.
- ``GET/DELETE /api/gallery`` and ``GET /api/stats`` — the session gallery.
- Error mapping from core errors to HTTP status codes.
"""

from __future__ import annotations

import json

import pytest
from conftest import empty_response, image_response, text_response

from assetforge.core.errors import TransportError

REPORT = {
    "critique": "Good read at distance.",
    "technicalIssues": ["Noisy normals"],
    "engineSuggestions": "Use Nanite.",
    "remasterPrompt": "A remastered crate.",
}


def _generate(test_client, **overrides):
    payload = {"category": "texture", "prompt": "mossy stone wall", "tier": "draft"}
    payload.update(overrides)
    return test_client.post("/api/generate", json=payload)


@pytest.fixture
def png_upload(sample_png_bytes):
    return ("asset.png", sample_png_bytes, "image/png")


# ---------------------------------------------------------------------------
# Configuration and prompt preview.
# ---------------------------------------------------------------------------


class TestConfigAndCompile:
    """Test GET /api/config and POST /api/prompt/compile."""

    def test_config(self, test_client):
        resp = test_client.get("/api/config")
        assert resp.status_code == 200
        data = resp.json()
        assert "texture" in data["categories"]
        assert "critique" not in data["categories"]
        assert data["max_variants"] == 4
        assert "16:9" in data["aspect_ratios"]

    def test_compile_prompt(self, test_client, fake_client):
        resp = test_client.post(
            "/api/prompt/compile",
            json={"category": "texture", "prompt": "mossy stone wall", "negative": "moss"},
        )
        assert resp.status_code == 200
        compiled = resp.json()["compiled_prompt"]
        assert "Seamless, tileable" in compiled
        assert "Avoid the following elements: moss" in compiled
        assert fake_client.calls == []

    def test_compile_rejects_blank_prompt(self, test_client):
        resp = test_client.post("/api/prompt/compile", json={"category": "logo", "prompt": " "})
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_input"


# ---------------------------------------------------------------------------
# Generation.
# ---------------------------------------------------------------------------


class TestGenerate:
    """Test POST /api/generate and /api/generate/variants."""

    def test_generate_registers_asset(self, test_client):
        resp = _generate(test_client)
        assert resp.status_code == 200
        asset = resp.json()["asset"]
        assert asset["category"] == "texture"
        assert asset["data_url"].startswith("data:image/png;base64,")

        gallery = test_client.get("/api/gallery").json()
        assert gallery["total"] == 1
        assert gallery["assets"][0]["id"] == asset["id"]

    def test_non_image_category_rejected(self, test_client):
        resp = _generate(test_client, category="critique")
        assert resp.status_code == 400

    def test_unknown_category_is_422(self, test_client):
        assert _generate(test_client, category="sprite-sheet").status_code == 422

    def test_refusal_is_502(self, test_client, fake_client):
        fake_client.image_queue.append(empty_response())
        resp = _generate(test_client)
        assert resp.status_code == 502
        assert resp.json()["error"] == "generation_failed"
        assert test_client.get("/api/stats").json()["total_assets"] == 0

    def test_transport_error_is_503(self, test_client, fake_client):
        fake_client.image_queue.append(TransportError("unreachable"))
        resp = _generate(test_client)
        assert resp.status_code == 503
        assert resp.json()["error"] == "transport"

    def test_variants(self, test_client):
        resp = test_client.post(
            "/api/generate/variants",
            json={"category": "logo", "prompt": "owl", "tier": "draft", "count": 3},
        )
        assert resp.status_code == 200
        assert len(resp.json()["assets"]) == 3
        assert test_client.get("/api/stats").json()["total_assets"] == 3

    def test_variants_partial_failure_adds_nothing(self, test_client, fake_client):
        fake_client.image_queue.extend(
            [image_response(), TransportError("boom"), image_response(), image_response()]
        )
        resp = test_client.post(
            "/api/generate/variants",
            json={"category": "logo", "prompt": "owl", "tier": "draft", "count": 4},
        )
        assert resp.status_code == 503
        assert test_client.get("/api/gallery").json()["total"] == 0

    def test_generate_with_reference(self, test_client, fake_client, png_upload):
        resp = test_client.post(
            "/api/generate/reference",
            data={"category": "banner", "prompt": "harbor town"},
            files={"reference": png_upload},
        )
        assert resp.status_code == 200
        parts = fake_client.calls_to("generate_image")[0]["parts"]
        assert parts[0].mime_type == "image/png"
        assert "analyze the provided reference image" in parts[-1]

    def test_reference_must_be_an_image(self, test_client):
        resp = test_client.post(
            "/api/generate/reference",
            data={"category": "banner", "prompt": "harbor"},
            files={"reference": ("notes.txt", b"hello", "text/plain")},
        )
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Editing.
# ---------------------------------------------------------------------------


class TestEdit:
    """Test POST /api/edit."""

    def test_global_edit_without_strokes(self, test_client, fake_client, png_upload):
        resp = test_client.post("/api/edit", data={"instruction": "add snow"}, files={"image": png_upload})
        assert resp.status_code == 200
        parts = fake_client.calls_to("generate_image")[0]["parts"]
        assert len(parts) == 2
        assert "Apply this change globally" in parts[-1]

    def test_masked_edit_with_strokes(self, test_client, fake_client, png_upload):
        strokes = json.dumps([{"x": 8, "y": 6, "radius": 4}])
        resp = test_client.post(
            "/api/edit",
            data={"instruction": "add snow", "strokes": strokes},
            files={"image": png_upload},
        )
        assert resp.status_code == 200
        parts = fake_client.calls_to("generate_image")[0]["parts"]
        assert len(parts) == 3
        assert "masked (white) region" in parts[-1]

    def test_edit_gallery_asset(self, test_client, fake_client, sample_png_bytes):
        fake_client.image_queue.append(image_response(sample_png_bytes, "image/png"))
        source_id = _generate(test_client).json()["asset"]["id"]

        resp = test_client.post(
            "/api/edit", data={"instruction": "make it night", "source_asset_id": source_id}
        )
        assert resp.status_code == 200
        assert resp.json()["asset"]["category"] == "edit"

    def test_unknown_source_asset(self, test_client):
        resp = test_client.post("/api/edit", data={"instruction": "x", "source_asset_id": "asset-0"})
        assert resp.status_code == 404

    def test_no_image(self, test_client):
        resp = test_client.post("/api/edit", data={"instruction": "x"})
        assert resp.status_code == 400

    def test_bad_strokes(self, test_client, png_upload):
        resp = test_client.post(
            "/api/edit",
            data={"instruction": "x", "strokes": "not json"},
            files={"image": png_upload},
        )
        assert resp.status_code == 400

    def test_upload_that_is_not_an_image(self, test_client, fake_client):
        strokes = json.dumps([{"x": 4, "y": 4, "radius": 3}])
        resp = test_client.post(
            "/api/edit",
            data={"instruction": "add snow", "strokes": strokes},
            files={"image": ("a.png", b"not really a png", "image/png")},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_input"
        assert fake_client.calls == []

    @pytest.mark.parametrize("field", ["canvas_width", "canvas_height"])
    def test_oversized_canvas(self, test_client, fake_client, png_upload, field):
        data = {
            "instruction": "add snow",
            "strokes": json.dumps([{"x": 4, "y": 4, "radius": 3}]),
            "canvas_width": "64",
            "canvas_height": "64",
        }
        data[field] = "200000"
        resp = test_client.post("/api/edit", data=data, files={"image": png_upload})
        assert resp.status_code == 422
        assert fake_client.calls == []


# ---------------------------------------------------------------------------
# Analysis and specialised studios.
# ---------------------------------------------------------------------------


class TestAnalysis:
    """Critique, insight, remaster, texture extraction and text studios."""

    def test_analyze(self, test_client, fake_client, png_upload):
        fake_client.text_queue.append(text_response(json.dumps(REPORT)))
        resp = test_client.post("/api/analyze", data={"engine": "Unity"}, files={"image": png_upload})
        assert resp.status_code == 200
        assert resp.json()["report"] == REPORT

    def test_analyze_malformed_is_502(self, test_client, fake_client, png_upload):
        fake_client.text_queue.append(text_response('{"critique": "only this"}'))
        resp = test_client.post("/api/analyze", files={"image": png_upload})
        assert resp.status_code == 502
        body = resp.json()
        assert body["error"] == "malformed_response"
        assert body["raw_text"] == '{"critique": "only this"}'

    def test_insight(self, test_client, fake_client, png_upload):
        fake_client.text_queue.append(text_response('{"style": "Low poly", "mood": "Calm"}'))
        resp = test_client.post("/api/analyze/insight", files={"image": png_upload})
        assert resp.json() == {"style": "Low poly", "mood": "Calm"}

    def test_remaster(self, test_client, fake_client):
        resp = test_client.post("/api/remaster", json={"remaster_prompt": REPORT["remasterPrompt"]})
        assert resp.status_code == 200
        assert resp.json()["asset"]["category"] == "remaster"
        assert REPORT["remasterPrompt"] in fake_client.calls_to("generate_images")[0]["prompt"]

    def test_texture_extract(self, test_client, fake_client, png_upload):
        fake_client.text_queue.append(text_response("Rusted steel plate."))
        resp = test_client.post(
            "/api/texture/extract", data={"make_seamless": "true"}, files={"image": png_upload}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["material_analysis"] == "Rusted steel plate."
        assert data["asset"]["category"] == "texture"

    def test_style_and_reverse_prompt(self, test_client, fake_client, png_upload):
        fake_client.text_queue.extend([text_response("Cel shaded."), text_response("A knight.")])
        assert test_client.post("/api/style/extract", files={"image": png_upload}).json() == {
            "style_guide": "Cel shaded."
        }
        assert test_client.post("/api/reverse-prompt", files={"image": png_upload}).json() == {
            "prompt": "A knight."
        }

    def test_ui_element(self, test_client):
        resp = test_client.post(
            "/api/ui/element", json={"style_guide": "Cel shaded.", "item": "mana orb", "tier": "draft"}
        )
        assert resp.json()["asset"]["category"] == "ui-element"

    def test_vfx(self, test_client):
        resp = test_client.post("/api/vfx", json={"category": "cookie", "type": "Tree Canopy"})
        assert resp.status_code == 200
        assert resp.json()["asset"]["category"] == "cookie"

    def test_uv_paint(self, test_client, png_upload):
        resp = test_client.post(
            "/api/uv-paint",
            data={"object_type": "barrel", "colors": "oak"},
            files={"image": png_upload},
        )
        assert resp.json()["asset"]["category"] == "uv-paint"

    def test_brainstorm(self, test_client, fake_client):
        fake_client.text_queue.append(text_response("**Grapple**"))
        resp = test_client.post("/api/brainstorm", json={"concept": "pirate platformer"})
        assert resp.json() == {"ideas": "**Grapple**"}


# ---------------------------------------------------------------------------
# Gallery.
# ---------------------------------------------------------------------------


class TestGallery:
    """Test gallery listing, lookup, idempotent delete and stats."""

    def test_filter_and_paginate(self, test_client):
        _generate(test_client, category="logo", prompt="owl")
        _generate(test_client)
        _generate(test_client)

        data = test_client.get("/api/gallery", params={"category": "texture", "per_page": 1}).json()
        assert data["total"] == 2
        assert data["pages"] == 2
        assert len(data["assets"]) == 1

    def test_get_asset(self, test_client):
        asset = _generate(test_client).json()["asset"]
        assert test_client.get(f"/api/gallery/{asset['id']}").json() == asset
        assert test_client.get("/api/gallery/asset-missing").status_code == 404

    def test_delete_is_idempotent(self, test_client):
        asset_id = _generate(test_client).json()["asset"]["id"]

        first = test_client.delete(f"/api/gallery/{asset_id}")
        second = test_client.delete(f"/api/gallery/{asset_id}")
        never = test_client.delete("/api/gallery/asset-never-existed")

        assert first.json()["removed"] is True
        assert second.status_code == 200
        assert second.json()["removed"] is False
        assert never.status_code == 200
        assert test_client.get("/api/stats").json() == {"total_assets": 0, "category_counts": {}}

    def test_stats(self, test_client):
        _generate(test_client)
        _generate(test_client, category="banner", prompt="keep")
        assert test_client.get("/api/stats").json() == {
            "total_assets": 2,
            "category_counts": {"texture": 1, "banner": 1},
        }
