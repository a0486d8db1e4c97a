from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from snapclean.classifier import DEFAULT_LARGE_THRESHOLD, DEFAULT_SIMILAR_WINDOW
from snapclean.fingerprint import DEFAULT_THUMBNAIL_SIZE, DEFAULT_WORKERS
from snapclean.paths import config_root, default_cache_dir, default_library_root
from snapclean.sync import CachePaths


@dataclass(slots=True)
class SyncConfig:
    workers: int = DEFAULT_WORKERS
    thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE
    read_exif: bool = True


@dataclass(slots=True)
class ClassifyConfig:
    large_threshold_bytes: float = DEFAULT_LARGE_THRESHOLD
    similar_window_seconds: float = DEFAULT_SIMILAR_WINDOW


@dataclass(slots=True)
class UIConfig:
    show_logo: bool = True


@dataclass(slots=True)
class AppConfig:
    library_root: Path = field(default_factory=default_library_root)
    cache_dir: Path = field(default_factory=default_cache_dir)
    sync: SyncConfig = field(default_factory=SyncConfig)
    classify: ClassifyConfig = field(default_factory=ClassifyConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    @property
    def cache_paths(self) -> CachePaths:
        return CachePaths.in_dir(self.cache_dir)


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def _to_config(data: dict[str, Any]) -> AppConfig:
    sync = SyncConfig(**data.get("sync", {}))
    classify = ClassifyConfig(**data.get("classify", {}))
    ui = UIConfig(**data.get("ui", {}))
    if sync.workers < 1:
        raise ValueError("sync.workers must be >= 1")
    if sync.thumbnail_size < 1:
        raise ValueError("sync.thumbnail_size must be >= 1")
    return AppConfig(
        library_root=Path(data.get("library_root", str(default_library_root()))).expanduser(),
        cache_dir=Path(data.get("cache_dir", str(default_cache_dir()))).expanduser(),
        sync=sync,
        classify=classify,
        ui=ui,
    )


def default_config_path() -> Path:
    return config_root() / "config.yaml"


def load_config(config_path: Path | None = None, overrides: dict[str, Any] | None = None) -> AppConfig:
    path = config_path or default_config_path()
    base: dict[str, Any] = {}
    if path.exists():
        loaded = yaml.safe_load(path.read_text())
        if isinstance(loaded, dict):
            base = loaded
    if overrides:
        base = _merge(base, overrides)
    cfg = _to_config(base)
    cfg.cache_dir.mkdir(parents=True, exist_ok=True)
    return cfg


def write_default_config(path: Path | None = None) -> Path:
    target = path or default_config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.exists():
        return target
    target.write_text(
        yaml.safe_dump(
            {
                "library_root": str(default_library_root()),
                "cache_dir": str(default_cache_dir()),
                "sync": {
                    "workers": DEFAULT_WORKERS,
                    "thumbnail_size": DEFAULT_THUMBNAIL_SIZE,
                    "read_exif": True,
                },
                "classify": {
                    "large_threshold_bytes": DEFAULT_LARGE_THRESHOLD,
                    "similar_window_seconds": DEFAULT_SIMILAR_WINDOW,
                },
                "ui": {"show_logo": True},
            },
            sort_keys=False,
        )
    )
    return target
