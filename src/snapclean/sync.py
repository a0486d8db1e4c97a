from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
from pathlib import Path
import threading
from typing import Callable

from snapclean.cache.store import FingerprintCache, MetadataCache
from snapclean.cache.watermark import save_watermark
from snapclean.errors import AssetNotFound
from snapclean.fingerprint import FingerprintPipeline
from snapclean.models import Asset, AssetMetadata
from snapclean.paths import FINGERPRINT_CACHE_NAME, METADATA_CACHE_NAME, WATERMARK_NAME
from snapclean.source.base import AssetSource, changed_since
from snapclean.util.time import now_utc

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CachePaths:
    metadata: Path
    fingerprints: Path
    watermark: Path

    @classmethod
    def in_dir(cls, cache_dir: Path) -> "CachePaths":
        return cls(
            metadata=cache_dir / METADATA_CACHE_NAME,
            fingerprints=cache_dir / FINGERPRINT_CACHE_NAME,
            watermark=cache_dir / WATERMARK_NAME,
        )


@dataclass(slots=True)
class SyncStats:
    scanned: int = 0
    metadata_refreshed: int = 0
    fingerprinted: int = 0
    fingerprint_failures: int = 0
    videos: int = 0
    vanished: int = 0
    retried: int = 0


@dataclass(slots=True)
class SyncResult:
    metadata_cache: MetadataCache
    fingerprint_cache: FingerprintCache
    watermark: datetime | None
    stats: SyncStats = field(default_factory=SyncStats)
    cancelled: bool = False


def run_sync(
    source: AssetSource,
    metadata_cache: MetadataCache,
    fingerprint_cache: FingerprintCache,
    watermark: datetime | None,
    *,
    paths: CachePaths,
    pipeline: FingerprintPipeline | None = None,
    cancel_event: threading.Event | None = None,
    clock: Callable[[], datetime] = now_utc,
) -> SyncResult:
    """Bring both caches up to date with everything changed after *watermark*.

    Unchanged images that still have no fingerprint (an earlier render failed
    or a pass was cancelled) are fingerprinted again as well.

    The new watermark is the time the pass started, so an asset created while
    the pass runs is picked up again next time. The watermark only moves
    after both caches were written. ``SourceUnavailable`` and
    ``PersistenceFailure`` propagate with the previous watermark left on disk.
    """
    pass_start = clock()
    stats = SyncStats()
    cancel = cancel_event or threading.Event()

    is_changed = changed_since(watermark)
    changed: list[Asset] = []
    retry_ids: list[str] = []
    for asset in source.enumerate():
        if is_changed(asset):
            changed.append(asset)
        elif asset.is_image and asset.id not in fingerprint_cache:
            retry_ids.append(asset.id)
    stats.scanned = len(changed)
    stats.retried = len(retry_ids)
    if not changed and not retry_ids:
        logger.debug("no assets changed since %s", watermark)
        return SyncResult(metadata_cache, fingerprint_cache, watermark, stats)

    logger.info(
        "syncing %d changed assets, retrying %d fingerprints (watermark %s)",
        len(changed),
        len(retry_ids),
        watermark,
    )

    fresh_metadata: dict[str, AssetMetadata] = {}
    image_ids: list[str] = list(retry_ids)
    for asset in changed:
        if cancel.is_set():
            break
        try:
            size = source.size_on_disk(asset.id)
        except AssetNotFound:
            # Removed between enumeration and stat; its old entry is left alone.
            stats.vanished += 1
            continue
        fresh_metadata[asset.id] = AssetMetadata(size_on_disk=size, is_video=asset.is_video)
        if asset.is_video:
            stats.videos += 1
        elif asset.is_image:
            image_ids.append(asset.id)

    pipeline = pipeline or FingerprintPipeline(source)
    batch = pipeline.run(image_ids, cancel_event=cancel)

    metadata_cache.update(fresh_metadata)
    fingerprint_cache.update(batch.fingerprints)
    stats.metadata_refreshed = len(fresh_metadata)
    stats.fingerprinted = len(batch.fingerprints)
    stats.fingerprint_failures = len(batch.failed)

    metadata_cache.save_to_disk(paths.metadata)
    fingerprint_cache.save_to_disk(paths.fingerprints)

    if cancel.is_set() or batch.cancelled:
        logger.info("sync cancelled; keeping watermark %s", watermark)
        return SyncResult(metadata_cache, fingerprint_cache, watermark, stats, cancelled=True)

    save_watermark(paths.watermark, pass_start)
    logger.info(
        "sync done: %d metadata, %d fingerprints, %d skipped",
        stats.metadata_refreshed,
        stats.fingerprinted,
        stats.fingerprint_failures,
    )
    return SyncResult(metadata_cache, fingerprint_cache, pass_start, stats)
