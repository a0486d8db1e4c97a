from __future__ import annotations

from datetime import datetime
from pathlib import Path

from PIL import ExifTags, Image

EXIF_TAGS = {v: k for k, v in ExifTags.TAGS.items()}
EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"
EXIF_IFD_POINTER = 0x8769


def _exif_values(path: Path) -> dict[int, object]:
    try:
        with Image.open(path) as img:
            exif = img.getexif()
            values: dict[int, object] = dict(exif)
            # DateTimeOriginal lives in the Exif sub-IFD, not IFD0.
            values.update(exif.get_ifd(EXIF_IFD_POINTER))
    except (OSError, ValueError, SyntaxError):
        return {}
    return values


def capture_time(path: Path) -> datetime | None:
    """Naive local capture time from EXIF, or None when absent or unparseable."""
    values = _exif_values(path)
    if not values:
        return None
    raw = values.get(EXIF_TAGS["DateTimeOriginal"]) or values.get(EXIF_TAGS["DateTime"])
    if not raw:
        return None
    try:
        return datetime.strptime(str(raw).strip("\x00 "), EXIF_DATETIME_FORMAT)
    except ValueError:
        return None
