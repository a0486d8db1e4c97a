from __future__ import annotations

from pathlib import Path
import os

APP_NAME = "snapclean"

METADATA_CACHE_NAME = "metadata-cache.sqlite3"
FINGERPRINT_CACHE_NAME = "fingerprint-cache.sqlite3"
WATERMARK_NAME = "last-sync-watermark.json"


def _xdg_dir(env_var: str, fallback: str) -> Path:
    xdg = os.environ.get(env_var)
    root = (Path(xdg) if xdg else Path.home() / fallback) / APP_NAME
    root.mkdir(parents=True, exist_ok=True)
    return root


def cache_root() -> Path:
    return _xdg_dir("XDG_CACHE_HOME", ".cache")


def config_root() -> Path:
    return _xdg_dir("XDG_CONFIG_HOME", ".config")


def default_library_root() -> Path:
    return Path.home() / "Pictures"


def default_cache_dir() -> Path:
    return cache_root()
