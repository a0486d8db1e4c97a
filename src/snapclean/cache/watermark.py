from __future__ import annotations

from datetime import datetime
import json
import logging
import os
from pathlib import Path

from snapclean.errors import PersistenceFailure
from snapclean.util.time import parse_iso, to_iso

logger = logging.getLogger(__name__)

WATERMARK_KEY = "last_sync_watermark"


def load_watermark(path: Path) -> datetime | None:
    if not path.exists():
        return None
    try:
        payload = json.loads(path.read_text())
        raw = payload[WATERMARK_KEY] if isinstance(payload, dict) else None
        if raw is None:
            return None
        return parse_iso(str(raw))
    except (OSError, ValueError, KeyError) as exc:
        logger.warning("ignoring unreadable watermark at %s: %s", path, exc)
        return None


def save_watermark(path: Path, value: datetime | None) -> None:
    tmp = path.with_name(f"{path.name}.tmp")
    payload = {WATERMARK_KEY: to_iso(value) if value is not None else None}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(json.dumps(payload, indent=2))
        os.replace(tmp, path)
    except OSError as exc:
        if tmp.exists():
            tmp.unlink()
        raise PersistenceFailure(path, str(exc)) from exc
