"""Asset source boundary: enumeration, sizes and thumbnail rendering."""

from snapclean.source.base import AssetPredicate, AssetSource, changed_since
from snapclean.source.filesystem import FilesystemAssetSource

__all__ = [
    "AssetPredicate",
    "AssetSource",
    "FilesystemAssetSource",
    "changed_since",
]
