from __future__ import annotations

from datetime import datetime, timedelta, timezone
import threading
import time

from PIL import Image
import pytest

from snapclean.errors import AssetNotFound, AssetRenderFailure, SourceUnavailable
from snapclean.models import Asset, MediaKind

BASE_TIME = datetime(2024, 3, 3, 12, 0, 0, tzinfo=timezone.utc)


class FakeAssetSource:
    """In-memory library: assets, sizes and solid-colour thumbnails."""

    def __init__(self) -> None:
        self.assets: dict[str, Asset] = {}
        self.sizes: dict[str, float] = {}
        self.colors: dict[str, tuple[int, int, int]] = {}
        self.broken: set[str] = set()
        self.slow: dict[str, float] = {}
        self.unavailable = False
        self.unavailable_on_render: set[str] = set()
        self.render_calls: list[str] = []
        self.enumerate_calls = 0
        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0

    def add(
        self,
        asset_id: str,
        created: datetime = BASE_TIME,
        *,
        modified: datetime | None = None,
        kind: MediaKind = MediaKind.IMAGE,
        screenshot: bool = False,
        size: float = 1000.0,
        color: tuple[int, int, int] = (10, 20, 30),
    ) -> Asset:
        asset = Asset(
            id=asset_id,
            creation_time=created,
            modification_time=modified or created,
            media_kind=kind,
            is_screenshot=screenshot,
        )
        self.assets[asset_id] = asset
        self.sizes[asset_id] = size
        self.colors[asset_id] = color
        return asset

    def remove(self, asset_id: str) -> None:
        self.assets.pop(asset_id, None)

    def enumerate(self, predicate=None) -> list[Asset]:
        self.enumerate_calls += 1
        if self.unavailable:
            raise SourceUnavailable("library access revoked")
        out = [a for a in self.assets.values() if predicate is None or predicate(a)]
        out.sort(key=lambda a: a.id)
        out.sort(key=lambda a: a.creation_time, reverse=True)
        return out

    def size_on_disk(self, asset_id: str) -> float:
        if self.unavailable:
            raise SourceUnavailable("library access revoked")
        if asset_id not in self.assets:
            raise AssetNotFound(asset_id)
        return self.sizes[asset_id]

    def render_thumbnail(self, asset_id: str, target_size: tuple[int, int]) -> Image.Image:
        with self._lock:
            self.render_calls.append(asset_id)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if asset_id in self.unavailable_on_render:
                raise SourceUnavailable("library access revoked")
            if asset_id not in self.assets:
                raise AssetNotFound(asset_id)
            if asset_id in self.broken:
                raise AssetRenderFailure(asset_id, "corrupt data")
            delay = self.slow.get(asset_id)
            if delay:
                time.sleep(delay)
            return Image.new("RGB", target_size, self.colors[asset_id])
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture()
def source() -> FakeAssetSource:
    return FakeAssetSource()


@pytest.fixture()
def at():
    def _at(seconds: float = 0.0, days: int = 0) -> datetime:
        return BASE_TIME + timedelta(days=days, seconds=seconds)

    return _at
