from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

FINGERPRINT_SIZE = 16

Fingerprint = bytes


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    OTHER = "other"


class LayoutStyle(str, Enum):
    GRID = "grid"
    FOCUS_GRID = "focus_grid"
    HORIZONTAL_STRIP = "horizontal_strip"


class Category(str, Enum):
    ALL = "all"
    LARGE = "large"
    SCREENSHOTS = "screenshots"
    DUPLICATES = "duplicates"
    SIMILAR = "similar"

    @property
    def label(self) -> str:
        return CATEGORY_TITLES[self]


CATEGORY_TITLES = {
    Category.ALL: "All files",
    Category.LARGE: "Large files",
    Category.SCREENSHOTS: "Screenshots",
    Category.DUPLICATES: "Duplicates",
    Category.SIMILAR: "Similars",
}


@dataclass(frozen=True, slots=True)
class Asset:
    id: str
    creation_time: datetime
    modification_time: datetime
    media_kind: MediaKind = MediaKind.IMAGE
    is_screenshot: bool = False

    @property
    def is_video(self) -> bool:
        return self.media_kind is MediaKind.VIDEO

    @property
    def is_image(self) -> bool:
        return self.media_kind is MediaKind.IMAGE


@dataclass(frozen=True, slots=True)
class AssetMetadata:
    size_on_disk: float
    is_video: bool = False


@dataclass(frozen=True, slots=True)
class AssetSection:
    title: str
    assets: tuple[str, ...]
    layout_style: LayoutStyle = LayoutStyle.GRID


@dataclass(frozen=True, slots=True)
class CategoryView:
    category: Category
    sections: tuple[AssetSection, ...] = ()
    total_size: float = 0.0

    @property
    def asset_ids(self) -> list[str]:
        """Distinct ids across all sections, first occurrence wins."""
        seen: dict[str, None] = {}
        for section in self.sections:
            for asset_id in section.assets:
                seen.setdefault(asset_id, None)
        return list(seen)

    @property
    def total_items(self) -> int:
        return len(self.asset_ids)


@dataclass(slots=True)
class CategorySummary:
    category: Category
    title: str
    total_items: int
    total_size: float


@dataclass(slots=True)
class SelectionSummary:
    total_items: int = 0
    total_size: float = 0.0
    missing: list[str] = field(default_factory=list)
