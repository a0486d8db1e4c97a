from __future__ import annotations

import threading
from typing import Any, Iterable

from snapclean.cache.store import FingerprintCache, MetadataCache
from snapclean.cache.watermark import load_watermark
from snapclean.classifier import ClassifierOptions, classify, classify_all_categories, selection_size, summarize
from snapclean.config import AppConfig
from snapclean.fingerprint import FingerprintPipeline, ProgressCallback
from snapclean.formatting import format_size
from snapclean.models import Category, CategoryView
from snapclean.output_models import CategoryOutput, SummaryOutput
from snapclean.source.base import AssetSource
from snapclean.source.filesystem import FilesystemAssetSource
from snapclean.sync import run_sync
from snapclean.util.time import to_iso


def parse_category(value: str | Category) -> Category:
    if isinstance(value, Category):
        return value
    key = value.strip().lower()
    for category in Category:
        if key in (category.value, category.name.lower(), category.label.lower()):
            return category
    raise ValueError(f"unknown category: {value}")


class SnapCleanService:
    def __init__(self, config: AppConfig, source: AssetSource | None = None):
        self.config = config
        self.paths = config.cache_paths
        self.source: AssetSource = source or FilesystemAssetSource(
            config.library_root,
            read_exif=config.sync.read_exif,
        )
        self.metadata = MetadataCache()
        self.fingerprints = FingerprintCache()
        self.metadata.load_from_disk(self.paths.metadata)
        self.fingerprints.load_from_disk(self.paths.fingerprints)
        self.watermark = load_watermark(self.paths.watermark)
        self._sync_lock = threading.Lock()

    def classifier_options(self) -> ClassifierOptions:
        return ClassifierOptions(
            large_threshold=float(self.config.classify.large_threshold_bytes),
            similar_window=float(self.config.classify.similar_window_seconds),
        )

    def sync(
        self,
        cancel_event: threading.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> dict[str, Any]:
        with self._sync_lock:
            pipeline = FingerprintPipeline(
                self.source,
                max_workers=self.config.sync.workers,
                thumbnail_size=self.config.sync.thumbnail_size,
                progress=progress,
            )
            result = run_sync(
                self.source,
                self.metadata,
                self.fingerprints,
                self.watermark,
                paths=self.paths,
                pipeline=pipeline,
                cancel_event=cancel_event,
            )
            self.watermark = result.watermark
        stats = result.stats
        return {
            "scanned": stats.scanned,
            "metadata_refreshed": stats.metadata_refreshed,
            "fingerprinted": stats.fingerprinted,
            "fingerprint_failures": stats.fingerprint_failures,
            "videos": stats.videos,
            "vanished": stats.vanished,
            "retried": stats.retried,
            "cancelled": result.cancelled,
            "watermark": to_iso(result.watermark) if result.watermark else None,
        }

    def view(self, category: str | Category) -> CategoryView:
        return classify(
            parse_category(category),
            self.source.enumerate(),
            self.metadata.snapshot(),
            self.fingerprints.snapshot(),
            self.classifier_options(),
        )

    def show(self, category: str | Category) -> dict[str, Any]:
        return CategoryOutput.from_view(self.view(category)).model_dump()

    def summary(self) -> list[dict[str, Any]]:
        views = classify_all_categories(
            self.source.enumerate(),
            self.metadata.snapshot(),
            self.fingerprints.snapshot(),
            self.classifier_options(),
        )
        return [SummaryOutput.from_summary(summarize(view)).model_dump() for view in views.values()]

    def selection(self, asset_ids: Iterable[str]) -> dict[str, Any]:
        picked = selection_size(asset_ids, self.metadata.snapshot())
        return {
            "total_items": picked.total_items,
            "total_size": picked.total_size,
            "total_size_label": format_size(picked.total_size),
            "missing": picked.missing,
        }

    def status(self) -> dict[str, Any]:
        return {
            "library_root": str(self.config.library_root),
            "cache_dir": str(self.config.cache_dir),
            "metadata_entries": len(self.metadata),
            "fingerprint_entries": len(self.fingerprints),
            "watermark": to_iso(self.watermark) if self.watermark else None,
        }
