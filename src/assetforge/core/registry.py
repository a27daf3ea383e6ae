"""In-memory session asset registry.

Every successfully generated asset is recorded here, newest first, to drive
the gallery. Nothing is persisted: the registry lives as long as the process
(one browser session for the front end).

Rules
-----
- :meth:`AssetRegistry.append` is called exactly once per successful
  generation, after extraction succeeded.
- :meth:`AssetRegistry.remove` is idempotent: removing an unknown id is a
  no-op, not an error.
- Ids are timestamp-seeded and strictly increasing, so no two assets share one.

The filtering, pagination and stats helpers follow the same shape as the
gallery listing endpoint expects.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter

from pydantic import BaseModel, ConfigDict, Field

from assetforge.core.categories import Category

logger = logging.getLogger(__name__)


class GeneratedAsset(BaseModel):
    """One generated image. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: Category
    data_url: str = Field(description="Inline data URL or external reference")
    origin_prompt: str
    created_at: float


class AssetRegistry:
    """Insertion-ordered (newest first) list of :class:`GeneratedAsset`."""

    def __init__(self) -> None:
        self._assets: list[GeneratedAsset] = []
        self._last_id = 0
        self._lock = threading.Lock()

    def _next_id(self) -> str:
        # Millisecond timestamp, bumped when two appends land in the same tick.
        candidate = time.time_ns() // 1_000_000
        self._last_id = max(candidate, self._last_id + 1)
        return f"asset-{self._last_id}"

    def append(self, category: Category | str, data_url: str, origin_prompt: str) -> GeneratedAsset:
        """Record a new asset at the front of the list."""
        with self._lock:
            asset = GeneratedAsset(
                id=self._next_id(),
                category=Category(category),
                data_url=data_url,
                origin_prompt=origin_prompt,
                created_at=time.time(),
            )
            self._assets.insert(0, asset)

        logger.info("Registered asset %s (%s).", asset.id, asset.category.value)
        return asset

    def extend(
        self, category: Category | str, data_urls: list[str], origin_prompt: str
    ) -> list[GeneratedAsset]:
        """Record a batch; the first URL ends up newest."""
        return [self.append(category, url, origin_prompt) for url in reversed(data_urls)][::-1]

    def remove(self, asset_id: str) -> bool:
        """Remove an asset by id.

        Returns:
            ``True`` if something was removed, ``False`` if the id was unknown.
        """
        with self._lock:
            before = len(self._assets)
            self._assets = [a for a in self._assets if a.id != asset_id]
            removed = len(self._assets) != before

        if removed:
            logger.info("Removed asset %s.", asset_id)
        return removed

    def get(self, asset_id: str) -> GeneratedAsset | None:
        return next((a for a in self._assets if a.id == asset_id), None)

    def list_assets(self, category: Category | str | None = None) -> list[GeneratedAsset]:
        """Return assets newest first, optionally for one category."""
        return filter_assets(list(self._assets), category=category)

    def clear(self) -> None:
        with self._lock:
            self._assets = []

    def stats(self) -> dict:
        """Return total count and per-category counts."""
        counts = Counter(a.category.value for a in self._assets)
        return {"total_assets": len(self._assets), "category_counts": dict(counts)}

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, asset_id: object) -> bool:
        return any(a.id == asset_id for a in self._assets)


def filter_assets(
    assets: list[GeneratedAsset], *, category: Category | str | None = None
) -> list[GeneratedAsset]:
    """Keep only assets of ``category`` (all assets when ``None``)."""
    if category is None:
        return assets
    wanted = Category(category)
    return [a for a in assets if a.category is wanted]


def paginate_assets(assets: list[GeneratedAsset], page: int, per_page: int) -> dict:
    """Paginate assets and clamp the requested page to valid bounds.

    Clamping matters after deletes: removing the last asset on the final page
    makes the previous page the new last page.

    Returns:
        Dictionary containing ``total``, ``page``, ``per_page``, ``pages`` and
        ``assets`` for the resolved page.
    """
    per_page = max(per_page, 1)
    total = len(assets)
    pages = (total + per_page - 1) // per_page if total > 0 else 1
    resolved_page = min(max(page, 1), pages)

    start = (resolved_page - 1) * per_page
    end = start + per_page

    return {
        "total": total,
        "page": resolved_page,
        "per_page": per_page,
        "pages": pages,
        "assets": assets[start:end],
    }
