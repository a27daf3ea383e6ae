"""Tests for assetforge.core.registry — the session asset registry.

Tests cover:
- Newest-first ordering and unique ids.
- Batch registration order.
- Idempotent delete.
- Filtering, pagination clamping and stats.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from assetforge.core.categories import Category
from assetforge.core.registry import AssetRegistry, filter_assets, paginate_assets


class TestAppend:
    """Test AssetRegistry.append() and extend()."""

    def test_newest_first(self, registry):
        first = registry.append(Category.LOGO, "data:image/png;base64,AA==", "p1")
        second = registry.append(Category.BANNER, "data:image/png;base64,BB==", "p2")
        assert registry.list_assets() == [second, first]

    def test_ids_are_unique(self, registry):
        ids = {registry.append(Category.LOGO, "u", "p").id for _ in range(50)}
        assert len(ids) == 50

    def test_assets_are_immutable(self, registry):
        asset = registry.append(Category.LOGO, "u", "p")
        with pytest.raises(ValidationError):
            asset.origin_prompt = "changed"

    def test_extend_keeps_first_url_newest(self, registry):
        assets = registry.extend(Category.TEXTURE, ["a", "b", "c"], "p")
        assert [a.data_url for a in assets] == ["a", "b", "c"]
        assert [a.data_url for a in registry.list_assets()] == ["a", "b", "c"]

    def test_unknown_category_rejected(self, registry):
        with pytest.raises(ValueError):
            registry.append("sprite-sheet", "u", "p")


class TestRemove:
    """AssetRegistry.remove() is idempotent."""

    def test_remove_twice(self, registry):
        keep = registry.append(Category.LOGO, "keep", "p")
        gone = registry.append(Category.LOGO, "gone", "p")

        assert registry.remove(gone.id) is True
        snapshot = registry.list_assets()
        assert registry.remove(gone.id) is False
        assert registry.list_assets() == snapshot == [keep]

    def test_remove_unknown_id(self, registry):
        registry.append(Category.LOGO, "u", "p")
        snapshot = registry.list_assets()
        assert registry.remove("asset-does-not-exist") is False
        assert registry.list_assets() == snapshot

    def test_contains_and_get(self, registry):
        asset = registry.append(Category.NOISE, "u", "p")
        assert asset.id in registry
        assert registry.get(asset.id) == asset
        assert registry.get("nope") is None


class TestListingHelpers:
    """Filtering, pagination and stats."""

    def test_filter_by_category(self, registry):
        registry.append(Category.LOGO, "l", "p")
        registry.append(Category.COOKIE, "c", "p")
        assert [a.data_url for a in registry.list_assets("cookie")] == ["c"]
        assert len(filter_assets(registry.list_assets())) == 2

    def test_paginate(self, registry):
        for i in range(5):
            registry.append(Category.LOGO, f"u{i}", "p")
        page = paginate_assets(registry.list_assets(), page=2, per_page=2)
        assert page["total"] == 5
        assert page["pages"] == 3
        assert [a.data_url for a in page["assets"]] == ["u2", "u1"]

    def test_paginate_clamps_page(self):
        result = paginate_assets([], page=7, per_page=10)
        assert result["page"] == 1
        assert result["pages"] == 1
        assert result["assets"] == []

    def test_stats(self, registry):
        registry.append(Category.LOGO, "a", "p")
        registry.append(Category.LOGO, "b", "p")
        registry.append(Category.EDIT, "c", "p")
        assert registry.stats() == {
            "total_assets": 3,
            "category_counts": {"logo": 2, "edit": 1},
        }
        registry.clear()
        assert len(registry) == 0
