"""Persistent caches for asset metadata and fingerprints."""

from snapclean.cache.store import FingerprintCache, KeyValueCache, MetadataCache
from snapclean.cache.watermark import load_watermark, save_watermark

__all__ = [
    "FingerprintCache",
    "KeyValueCache",
    "MetadataCache",
    "load_watermark",
    "save_watermark",
]
