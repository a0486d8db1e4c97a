from __future__ import annotations

from datetime import datetime, timezone
import logging
from pathlib import Path
import threading

from PIL import Image

from snapclean.errors import AssetNotFound, AssetRenderFailure, SourceUnavailable
from snapclean.media.exif import capture_time
from snapclean.media.image_io import (
    FileStat,
    iter_media_files,
    looks_like_screenshot,
    media_kind_for,
    render_thumbnail,
)
from snapclean.models import Asset, MediaKind
from snapclean.source.base import AssetPredicate
from snapclean.util.time import ensure_aware, from_timestamp

logger = logging.getLogger(__name__)


class FilesystemAssetSource:
    """Treats a directory tree of photos and videos as an asset library.

    Asset ids are POSIX paths relative to the root. Creation time comes from
    EXIF when the image carries it, otherwise from the file mtime. The
    modification time also counts the inode change time, so a file copied in
    with its original timestamps preserved still shows up as changed.
    """

    def __init__(self, root: Path, read_exif: bool = True):
        self.root = Path(root).expanduser()
        self.read_exif = read_exif
        self._lock = threading.Lock()
        # (rel_path, mtime) -> capture time; EXIF is only re-read when a file changes.
        self._capture_times: dict[tuple[str, float], datetime] = {}

    def _require_root(self) -> Path:
        if not self.root.is_dir():
            raise SourceUnavailable(f"library root is not available: {self.root}")
        return self.root

    def _creation_time(self, fs: FileStat) -> datetime:
        modified = from_timestamp(fs.mtime)
        if not self.read_exif or fs.media_kind is not MediaKind.IMAGE:
            return modified
        key = (fs.rel_path, fs.mtime)
        with self._lock:
            cached = self._capture_times.get(key)
        if cached is None:
            taken = capture_time(fs.abs_path)
            cached = ensure_aware(taken).astimezone(timezone.utc) if taken else modified
            with self._lock:
                self._capture_times[key] = cached
        return cached

    def _to_asset(self, fs: FileStat) -> Asset:
        return Asset(
            id=fs.rel_path,
            creation_time=self._creation_time(fs),
            modification_time=from_timestamp(max(fs.mtime, fs.ctime)),
            media_kind=fs.media_kind,
            is_screenshot=fs.media_kind is MediaKind.IMAGE and looks_like_screenshot(fs.abs_path),
        )

    def enumerate(self, predicate: AssetPredicate | None = None) -> list[Asset]:
        root = self._require_root()
        try:
            assets = [self._to_asset(fs) for fs in iter_media_files(root)]
        except OSError as exc:
            raise SourceUnavailable(f"cannot list {root}: {exc}") from exc
        if predicate is not None:
            assets = [a for a in assets if predicate(a)]
        assets.sort(key=lambda a: a.id)
        assets.sort(key=lambda a: a.creation_time, reverse=True)
        logger.debug("enumerated %d assets under %s", len(assets), root)
        return assets

    def _resolve(self, asset_id: str) -> Path:
        root = self._require_root().resolve()
        path = (root / asset_id).resolve()
        if root not in path.parents or not path.is_file():
            raise AssetNotFound(asset_id)
        return path

    def size_on_disk(self, asset_id: str) -> float:
        path = self._resolve(asset_id)
        try:
            return float(path.stat().st_size)
        except FileNotFoundError as exc:
            raise AssetNotFound(asset_id) from exc

    def render_thumbnail(self, asset_id: str, target_size: tuple[int, int]) -> Image.Image:
        path = self._resolve(asset_id)
        if media_kind_for(path) is not MediaKind.IMAGE:
            raise AssetRenderFailure(asset_id, "not an image")
        try:
            return render_thumbnail(path, target_size)
        except FileNotFoundError as exc:
            raise AssetNotFound(asset_id) from exc
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise AssetRenderFailure(asset_id, str(exc)) from exc
