from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import stat
from typing import Iterator

from PIL import Image, ImageOps

from snapclean.models import MediaKind

IMAGE_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".bmp",
    ".webp",
    ".tif",
    ".tiff",
    ".heic",
    ".heif",
}

VIDEO_EXTENSIONS = {
    ".mp4",
    ".mov",
    ".m4v",
    ".avi",
    ".mkv",
    ".wmv",
    ".webm",
    ".3gp",
}

SCREENSHOT_MARKERS = ("screenshot", "screen shot", "screen_shot", "screen-shot", "screencap")


@dataclass(slots=True)
class FileStat:
    abs_path: Path
    rel_path: str
    mtime: float
    ctime: float
    media_kind: MediaKind


def media_kind_for(path: Path) -> MediaKind:
    ext = path.suffix.lower()
    if ext in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return MediaKind.OTHER


def looks_like_screenshot(path: Path) -> bool:
    name = path.name.lower()
    return any(marker in name for marker in SCREENSHOT_MARKERS)


def iter_media_files(root: Path) -> Iterator[FileStat]:
    for p in root.rglob("*"):
        if any(part.startswith(".") for part in p.relative_to(root).parts):
            continue
        kind = media_kind_for(p)
        if kind is MediaKind.OTHER:
            continue
        try:
            st = p.stat()
        except FileNotFoundError:
            # Deleted while the tree was being walked.
            continue
        if not stat.S_ISREG(st.st_mode):
            continue
        yield FileStat(
            abs_path=p.resolve(),
            rel_path=str(p.relative_to(root)).replace("\\", "/"),
            mtime=st.st_mtime,
            ctime=st.st_ctime,
            media_kind=kind,
        )


def render_thumbnail(path: Path, target_size: tuple[int, int]) -> Image.Image:
    """Decode *path* and shrink it to fit *target_size*.

    Raises OSError (including UnidentifiedImageError) when the file cannot be
    decoded.
    """
    with Image.open(path) as img:
        img.draft("RGB", target_size)
        upright = ImageOps.exif_transpose(img)
        thumb = upright.convert("RGB")
    thumb.thumbnail(target_size)
    return thumb

