from pathlib import Path
import threading

import pytest

from snapclean.cache.store import FingerprintCache, MetadataCache
from snapclean.errors import PersistenceFailure
from snapclean.models import AssetMetadata


def test_metadata_round_trip_is_exact(tmp_path: Path) -> None:
    path = tmp_path / "metadata-cache.sqlite3"
    cache = MetadataCache()
    cache.set("a", AssetMetadata(size_on_disk=5242880.0, is_video=False))
    cache.set("b", AssetMetadata(size_on_disk=0.1 + 0.2, is_video=True))
    cache.save_to_disk(path)

    loaded = MetadataCache.load(path)
    assert loaded.snapshot() == cache.snapshot()
    assert loaded.get("b").size_on_disk == 0.1 + 0.2
    assert loaded.get("b").is_video is True


def test_fingerprint_round_trip_is_binary_exact(tmp_path: Path) -> None:
    path = tmp_path / "fingerprint-cache.sqlite3"
    digest = bytes(range(16))
    cache = FingerprintCache({"a": digest, "b": b"\x00" * 16})
    cache.save_to_disk(path)

    fresh = FingerprintCache()
    loaded = fresh.load_from_disk(path)
    assert loaded == {"a": digest, "b": b"\x00" * 16}
    assert fresh.get("a") == digest


def test_fingerprint_length_is_enforced() -> None:
    cache = FingerprintCache()
    with pytest.raises(ValueError):
        cache.set("a", b"short")


def test_missing_file_loads_empty(tmp_path: Path) -> None:
    cache = MetadataCache({"stale": AssetMetadata(1.0)})
    assert cache.load_from_disk(tmp_path / "nope.sqlite3") == {}
    assert len(cache) == 0
    assert not (tmp_path / "nope.sqlite3").exists()


def test_garbage_file_loads_empty(tmp_path: Path) -> None:
    path = tmp_path / "fingerprint-cache.sqlite3"
    path.write_bytes(b"this is not a database at all" * 10)
    assert FingerprintCache.load(path).snapshot() == {}


def test_truncated_file_loads_empty(tmp_path: Path) -> None:
    path = tmp_path / "metadata-cache.sqlite3"
    cache = MetadataCache({f"id{i}": AssetMetadata(float(i)) for i in range(500)})
    cache.save_to_disk(path)
    data = path.read_bytes()
    path.write_bytes(data[:100])

    assert MetadataCache.load(path).snapshot() == {}


def test_empty_file_loads_empty(tmp_path: Path) -> None:
    path = tmp_path / "metadata-cache.sqlite3"
    path.write_bytes(b"")
    assert MetadataCache.load(path).snapshot() == {}


def test_save_is_deterministic(tmp_path: Path) -> None:
    a = FingerprintCache({"x": b"\x01" * 16, "y": b"\x02" * 16})
    b = FingerprintCache({"y": b"\x02" * 16, "x": b"\x01" * 16})
    a.save_to_disk(tmp_path / "a.sqlite3")
    b.save_to_disk(tmp_path / "b.sqlite3")
    assert (tmp_path / "a.sqlite3").read_bytes() == (tmp_path / "b.sqlite3").read_bytes()


def test_save_failure_raises_persistence_failure(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")
    cache = MetadataCache({"a": AssetMetadata(1.0)})
    with pytest.raises(PersistenceFailure):
        cache.save_to_disk(blocker / "metadata-cache.sqlite3")
    assert cache.get("a") == AssetMetadata(1.0)


def test_failed_save_keeps_previous_file(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "metadata-cache.sqlite3"
    MetadataCache({"a": AssetMetadata(1.0)}).save_to_disk(path)

    def _boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("snapclean.cache.store.os.replace", _boom)
    with pytest.raises(PersistenceFailure):
        MetadataCache({"b": AssetMetadata(2.0)}).save_to_disk(path)

    assert MetadataCache.load(path).snapshot() == {"a": AssetMetadata(1.0)}
    assert not path.with_name(f"{path.name}.tmp").exists()


def test_update_merges_without_deleting() -> None:
    cache = MetadataCache({"a": AssetMetadata(1.0), "b": AssetMetadata(2.0)})
    cache.update({"b": AssetMetadata(3.0), "c": AssetMetadata(4.0)})
    assert cache.snapshot() == {
        "a": AssetMetadata(1.0),
        "b": AssetMetadata(3.0),
        "c": AssetMetadata(4.0),
    }


def test_concurrent_writers_and_readers() -> None:
    cache = FingerprintCache()
    digests = [bytes([i]) * 16 for i in range(8)]
    errors: list[str] = []

    def _writer(n: int) -> None:
        for i in range(200):
            cache.set(f"k{i % 10}", digests[(n + i) % len(digests)])

    def _reader() -> None:
        for _ in range(500):
            for value in cache.snapshot().values():
                if value not in digests:
                    errors.append("torn read")

    threads = [threading.Thread(target=_writer, args=(n,)) for n in range(4)]
    threads += [threading.Thread(target=_reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert len(cache) == 10
