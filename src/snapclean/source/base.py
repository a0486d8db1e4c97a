from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol

from PIL import Image

from snapclean.models import Asset

AssetPredicate = Callable[[Asset], bool]


class AssetSource(Protocol):
    def enumerate(self, predicate: AssetPredicate | None = None) -> list[Asset]:
        """Assets matching *predicate*, newest creation time first.

        Raises SourceUnavailable when the library cannot be listed.
        """
        ...

    def render_thumbnail(self, asset_id: str, target_size: tuple[int, int]) -> Image.Image:
        """Pixels of *asset_id* scaled to fit *target_size*.

        Raises AssetNotFound, AssetRenderFailure or SourceUnavailable.
        """
        ...

    def size_on_disk(self, asset_id: str) -> float:
        ...


def changed_since(watermark: datetime | None) -> AssetPredicate:
    if watermark is None:
        return lambda asset: True

    def _changed(asset: Asset) -> bool:
        return asset.creation_time > watermark or asset.modification_time > watermark

    return _changed
