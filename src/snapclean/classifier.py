"""Category views derived from the asset list and the two caches.

Everything here is pure: inputs are never mutated and the same inputs always
produce the same sections in the same order.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Iterable, Mapping, Sequence

from snapclean.formatting import MIB, day_title
from snapclean.models import (
    Asset,
    AssetMetadata,
    AssetSection,
    Category,
    CategorySummary,
    CategoryView,
    Fingerprint,
    LayoutStyle,
    SelectionSummary,
)

DEFAULT_LARGE_THRESHOLD = 5 * MIB
DEFAULT_SIMILAR_WINDOW = 1.0
OTHER_SECTION_TITLE = "Other"


@dataclass(frozen=True, slots=True)
class ClassifierOptions:
    large_threshold: float = DEFAULT_LARGE_THRESHOLD
    similar_window: float = DEFAULT_SIMILAR_WINDOW
    tz: tzinfo | None = None
    today: date | None = None


def _local_day(value: datetime, tz: tzinfo | None) -> date:
    return value.astimezone(tz).date()


def _size(metadata: Mapping[str, AssetMetadata], asset_id: str) -> float:
    md = metadata.get(asset_id)
    return md.size_on_disk if md is not None else 0.0


def total_size(sections: Iterable[AssetSection], metadata: Mapping[str, AssetMetadata]) -> float:
    """Sum of sizes over distinct asset ids; an id in two sections counts once."""
    seen: set[str] = set()
    total = 0.0
    for section in sections:
        for asset_id in section.assets:
            if asset_id in seen:
                continue
            seen.add(asset_id)
            total += _size(metadata, asset_id)
    return total


def group_by_day(assets: Sequence[Asset], options: ClassifierOptions) -> list[tuple[date, list[Asset]]]:
    buckets: dict[date, list[Asset]] = defaultdict(list)
    for asset in assets:
        buckets[_local_day(asset.creation_time, options.tz)].append(asset)
    return [(day, buckets[day]) for day in sorted(buckets, reverse=True)]


def _today(options: ClassifierOptions) -> date:
    if options.today is not None:
        return options.today
    return datetime.now(options.tz).date() if options.tz else date.today()


def all_sections(assets: Sequence[Asset], options: ClassifierOptions) -> list[AssetSection]:
    today = _today(options)
    return [
        AssetSection(
            title=day_title(day, today),
            assets=tuple(a.id for a in members),
            layout_style=LayoutStyle.GRID,
        )
        for day, members in group_by_day(assets, options)
    ]


def large_sections(
    assets: Sequence[Asset],
    metadata: Mapping[str, AssetMetadata],
    options: ClassifierOptions,
) -> list[AssetSection]:
    today = _today(options)
    out: list[AssetSection] = []
    for day, members in group_by_day(assets, options):
        large = [a.id for a in members if _size(metadata, a.id) > options.large_threshold]
        if not large:
            continue
        large.sort(key=lambda asset_id: _size(metadata, asset_id), reverse=True)
        out.append(AssetSection(title=day_title(day, today), assets=tuple(large), layout_style=LayoutStyle.FOCUS_GRID))
    return out


def group_by_fingerprint(
    assets: Sequence[Asset],
    fingerprints: Mapping[str, Fingerprint],
) -> list[list[str]]:
    """Fingerprint groups in order of each group's first member.

    Assets without a cached fingerprint are left out.
    """
    groups: dict[Fingerprint, list[str]] = {}
    for asset in assets:
        digest = fingerprints.get(asset.id)
        if digest is None:
            continue
        groups.setdefault(digest, []).append(asset.id)
    return list(groups.values())


def _duplicates_title(count: int) -> str:
    return f"{count} duplicates"


def screenshot_sections(
    assets: Sequence[Asset],
    fingerprints: Mapping[str, Fingerprint],
) -> list[AssetSection]:
    screenshots = [a for a in assets if a.is_screenshot]
    out: list[AssetSection] = []
    singles: list[str] = []
    for group in group_by_fingerprint(screenshots, fingerprints):
        if len(group) >= 2:
            out.append(
                AssetSection(
                    title=_duplicates_title(len(group)),
                    assets=tuple(group),
                    layout_style=LayoutStyle.HORIZONTAL_STRIP,
                )
            )
        else:
            singles.extend(group)
    if singles:
        # Groups are keyed by first occurrence, so singles are already in source order.
        out.append(AssetSection(title=OTHER_SECTION_TITLE, assets=tuple(singles), layout_style=LayoutStyle.GRID))
    return out


def duplicate_sections(
    assets: Sequence[Asset],
    fingerprints: Mapping[str, Fingerprint],
) -> list[AssetSection]:
    images = [a for a in assets if a.is_image]
    return [
        AssetSection(
            title=_duplicates_title(len(group)),
            assets=tuple(group),
            layout_style=LayoutStyle.HORIZONTAL_STRIP,
        )
        for group in group_by_fingerprint(images, fingerprints)
        if len(group) >= 2
    ]


def similar_sections(assets: Sequence[Asset], options: ClassifierOptions) -> list[AssetSection]:
    images = sorted((a for a in assets if a.is_image), key=lambda a: a.creation_time, reverse=True)
    out: list[AssetSection] = []
    run: list[Asset] = []

    def _flush() -> None:
        if len(run) >= 2:
            out.append(
                AssetSection(
                    title=f"{len(run)} similar",
                    assets=tuple(a.id for a in run),
                    layout_style=LayoutStyle.HORIZONTAL_STRIP,
                )
            )

    for asset in images:
        if run:
            gap = (run[-1].creation_time - asset.creation_time).total_seconds()
            if gap < options.similar_window:
                run.append(asset)
                continue
            _flush()
        run = [asset]
    _flush()
    return out


def classify(
    category: Category,
    assets: Sequence[Asset],
    metadata: Mapping[str, AssetMetadata],
    fingerprints: Mapping[str, Fingerprint],
    options: ClassifierOptions | None = None,
) -> CategoryView:
    opts = options or ClassifierOptions()
    if category is Category.ALL:
        sections = all_sections(assets, opts)
    elif category is Category.LARGE:
        sections = large_sections(assets, metadata, opts)
    elif category is Category.SCREENSHOTS:
        sections = screenshot_sections(assets, fingerprints)
    elif category is Category.DUPLICATES:
        sections = duplicate_sections(assets, fingerprints)
    elif category is Category.SIMILAR:
        sections = similar_sections(assets, opts)
    else:
        raise ValueError(f"unknown category: {category}")
    return CategoryView(category=category, sections=tuple(sections), total_size=total_size(sections, metadata))


def classify_all_categories(
    assets: Sequence[Asset],
    metadata: Mapping[str, AssetMetadata],
    fingerprints: Mapping[str, Fingerprint],
    options: ClassifierOptions | None = None,
) -> dict[Category, CategoryView]:
    return {category: classify(category, assets, metadata, fingerprints, options) for category in Category}


def summarize(view: CategoryView) -> CategorySummary:
    return CategorySummary(
        category=view.category,
        title=view.category.label,
        total_items=view.total_items,
        total_size=view.total_size,
    )


def selection_size(asset_ids: Iterable[str], metadata: Mapping[str, AssetMetadata]) -> SelectionSummary:
    summary = SelectionSummary()
    for asset_id in dict.fromkeys(asset_ids):
        md = metadata.get(asset_id)
        summary.total_items += 1
        if md is None:
            summary.missing.append(asset_id)
            continue
        summary.total_size += md.size_on_disk
    return summary
