from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
import hashlib
import logging
import threading
from typing import Callable, Iterable

import numpy as np
from PIL import Image

from snapclean.errors import SourceUnavailable
from snapclean.models import Fingerprint
from snapclean.source.base import AssetSource

logger = logging.getLogger(__name__)

DEFAULT_THUMBNAIL_SIZE = 24
DEFAULT_WORKERS = 8
POLL_INTERVAL = 0.1

ProgressCallback = Callable[[int, int], None]


def canonical_pixels(image: Image.Image, size: tuple[int, int]) -> bytes:
    """RGB pixels of *image* at exactly *size*, prefixed with the array shape."""
    rgb = image.convert("RGB")
    if rgb.size != size:
        rgb = rgb.resize(size, Image.Resampling.BILINEAR)
    arr = np.ascontiguousarray(np.asarray(rgb, dtype=np.uint8))
    header = "x".join(str(d) for d in arr.shape).encode("ascii")
    return header + b"\x00" + arr.tobytes()


def fingerprint_image(image: Image.Image, size: tuple[int, int]) -> Fingerprint:
    return hashlib.md5(canonical_pixels(image, size), usedforsecurity=False).digest()


@dataclass(slots=True)
class FingerprintBatch:
    fingerprints: dict[str, Fingerprint] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return len(self.fingerprints) + len(self.failed)


class FingerprintPipeline:
    """Fingerprints assets on a bounded thread pool.

    At most ``max_workers * 2`` renders are queued at once, so a huge library
    never turns into tens of thousands of pending futures. Results are
    collected as they finish; one slow asset does not hold up the rest.
    A failing asset is logged and skipped. ``SourceUnavailable`` stops the
    whole batch.
    """

    def __init__(
        self,
        source: AssetSource,
        max_workers: int = DEFAULT_WORKERS,
        thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE,
        progress: ProgressCallback | None = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if thumbnail_size < 1:
            raise ValueError("thumbnail_size must be >= 1")
        self.source = source
        self.max_workers = max_workers
        self.target_size = (thumbnail_size, thumbnail_size)
        self.progress = progress

    def fingerprint_one(self, asset_id: str) -> Fingerprint:
        image = self.source.render_thumbnail(asset_id, self.target_size)
        return fingerprint_image(image, self.target_size)

    def run(
        self,
        asset_ids: Iterable[str],
        cancel_event: threading.Event | None = None,
    ) -> FingerprintBatch:
        ids = list(dict.fromkeys(asset_ids))
        batch = FingerprintBatch()
        total = len(ids)
        if not total:
            return batch

        cancel = cancel_event or threading.Event()
        window = self.max_workers * 2
        queue = iter(ids)
        pending: dict[Future[Fingerprint], str] = {}
        exhausted = False

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="fingerprint")
        try:
            while True:
                while not exhausted and not cancel.is_set() and len(pending) < window:
                    asset_id = next(queue, None)
                    if asset_id is None:
                        exhausted = True
                        break
                    pending[executor.submit(self.fingerprint_one, asset_id)] = asset_id

                if cancel.is_set():
                    self._drain_cancelled(pending, batch, total)
                    batch.cancelled = True
                    break
                if not pending:
                    break

                done, _ = wait(pending, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)
                for fut in done:
                    self._collect(fut, pending.pop(fut), batch, total)
        except BaseException:
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        batch.failed.sort()
        if batch.cancelled:
            logger.info("fingerprinting cancelled after %d of %d assets", batch.processed, total)
        elif batch.failed:
            logger.info("fingerprinted %d assets, %d skipped", len(batch.fingerprints), len(batch.failed))
        return batch

    def _drain_cancelled(self, pending: dict[Future[Fingerprint], str], batch: FingerprintBatch, total: int) -> None:
        for fut in pending:
            fut.cancel()
        # Renders already running are allowed to finish; their results stay valid.
        for fut, asset_id in pending.items():
            if fut.cancelled():
                continue
            wait([fut])
            self._collect(fut, asset_id, batch, total)
        pending.clear()

    def _collect(self, fut: Future[Fingerprint], asset_id: str, batch: FingerprintBatch, total: int) -> None:
        try:
            digest = fut.result()
        except SourceUnavailable:
            raise
        except Exception as exc:
            logger.warning("skipping fingerprint for %s: %s", asset_id, exc)
            batch.failed.append(asset_id)
        else:
            batch.fingerprints[asset_id] = digest
        if self.progress is not None:
            self.progress(batch.processed, total)
