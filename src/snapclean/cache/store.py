from __future__ import annotations

from contextlib import closing
import logging
import os
from pathlib import Path
import sqlite3
import threading
from typing import Any, Generic, Mapping, TypeVar

from snapclean.errors import PersistenceFailure
from snapclean.models import FINGERPRINT_SIZE, AssetMetadata, Fingerprint

logger = logging.getLogger(__name__)

V = TypeVar("V")


class KeyValueCache(Generic[V]):
    """Thread-safe id -> value map persisted as a single sqlite file.

    Every access goes through one lock, so a reader sees either the old or
    the new value for a key. Subclasses only describe the row layout.
    """

    name = "cache"
    columns: tuple[str, ...] = ()
    schema = ""

    def __init__(self, entries: Mapping[str, V] | None = None):
        self._lock = threading.RLock()
        self._data: dict[str, V] = dict(entries or {})

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def get(self, key: str) -> V | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: V) -> None:
        self._validate(value)
        with self._lock:
            self._data[key] = value

    def update(self, entries: Mapping[str, V]) -> None:
        for value in entries.values():
            self._validate(value)
        with self._lock:
            self._data.update(entries)

    def snapshot(self) -> dict[str, V]:
        with self._lock:
            return dict(self._data)

    def _validate(self, value: V) -> None:
        pass

    def _encode(self, value: V) -> tuple[Any, ...]:
        raise NotImplementedError

    def _decode(self, row: sqlite3.Row) -> V:
        raise NotImplementedError

    def save_to_disk(self, path: Path) -> None:
        entries = self.snapshot()
        tmp = path.with_name(f"{path.name}.tmp")
        placeholders = ", ".join(["?"] * (len(self.columns) + 1))
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.unlink(missing_ok=True)
            with closing(sqlite3.connect(tmp)) as conn:
                conn.executescript(self.schema)
                conn.executemany(
                    f"INSERT INTO entries(id, {', '.join(self.columns)}) VALUES ({placeholders})",
                    ((key, *self._encode(entries[key])) for key in sorted(entries)),
                )
                conn.commit()
            os.replace(tmp, path)
        except (OSError, sqlite3.Error) as exc:
            if tmp.exists():
                tmp.unlink()
            raise PersistenceFailure(path, str(exc)) from exc
        logger.debug("saved %d %s entries to %s", len(entries), self.name, path)

    def load_from_disk(self, path: Path) -> dict[str, V]:
        loaded = read_entries(path, self)
        with self._lock:
            self._data = dict(loaded)
        return loaded

    @classmethod
    def load(cls, path: Path) -> "KeyValueCache[V]":
        cache = cls()
        cache.load_from_disk(path)
        return cache


def read_entries(path: Path, cache: KeyValueCache[V]) -> dict[str, V]:
    if not path.exists():
        return {}
    uri = f"{path.resolve().as_uri()}?mode=ro"
    out: dict[str, V] = {}
    try:
        with closing(sqlite3.connect(uri, uri=True)) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(f"SELECT id, {', '.join(cache.columns)} FROM entries").fetchall()
    except sqlite3.Error as exc:
        logger.warning("ignoring unreadable %s at %s: %s", cache.name, path, exc)
        return {}

    skipped = 0
    for row in rows:
        try:
            out[str(row["id"])] = cache._decode(row)
        except (TypeError, ValueError):
            skipped += 1
    if skipped:
        logger.warning("skipped %d malformed %s rows in %s", skipped, cache.name, path)
    return out


class MetadataCache(KeyValueCache[AssetMetadata]):
    name = "metadata-cache"
    columns = ("size", "is_video")
    schema = """
    CREATE TABLE entries(
      id TEXT PRIMARY KEY,
      size REAL NOT NULL,
      is_video INTEGER NOT NULL
    );
    """

    def _validate(self, value: AssetMetadata) -> None:
        if not isinstance(value, AssetMetadata):
            raise TypeError(f"expected AssetMetadata, got {type(value).__name__}")

    def _encode(self, value: AssetMetadata) -> tuple[Any, ...]:
        return float(value.size_on_disk), int(bool(value.is_video))

    def _decode(self, row: sqlite3.Row) -> AssetMetadata:
        size = row["size"]
        if not isinstance(size, (int, float)):
            raise ValueError(f"bad size: {size!r}")
        return AssetMetadata(size_on_disk=float(size), is_video=bool(row["is_video"]))


class FingerprintCache(KeyValueCache[Fingerprint]):
    name = "fingerprint-cache"
    columns = ("digest",)
    schema = """
    CREATE TABLE entries(
      id TEXT PRIMARY KEY,
      digest BLOB NOT NULL
    );
    """

    def _validate(self, value: Fingerprint) -> None:
        if not isinstance(value, bytes) or len(value) != FINGERPRINT_SIZE:
            raise ValueError(f"fingerprint must be {FINGERPRINT_SIZE} bytes")

    def _encode(self, value: Fingerprint) -> tuple[Any, ...]:
        return (sqlite3.Binary(value),)

    def _decode(self, row: sqlite3.Row) -> Fingerprint:
        digest = row["digest"]
        if not isinstance(digest, bytes):
            raise ValueError("digest is not a blob")
        self._validate(digest)
        return digest

