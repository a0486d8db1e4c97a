from datetime import datetime, timezone
from pathlib import Path

import pytest

from snapclean.cache.watermark import load_watermark, save_watermark
from snapclean.errors import PersistenceFailure


def test_watermark_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "last-sync-watermark.json"
    value = datetime(2024, 3, 3, 12, 0, 0, 123456, tzinfo=timezone.utc)
    save_watermark(path, value)
    assert load_watermark(path) == value


def test_missing_watermark_is_none(tmp_path: Path) -> None:
    assert load_watermark(tmp_path / "missing.json") is None


@pytest.mark.parametrize("payload", ["", "{not json", '{"last_sync_watermark": "yesterday"}', "[]", "{}"])
def test_corrupt_watermark_is_none(tmp_path: Path, payload: str) -> None:
    path = tmp_path / "last-sync-watermark.json"
    path.write_text(payload)
    assert load_watermark(path) is None


def test_watermark_write_failure(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    with pytest.raises(PersistenceFailure):
        save_watermark(blocker / "w.json", datetime.now(timezone.utc))
