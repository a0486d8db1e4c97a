"""Error taxonomy for sync passes and cache persistence."""

from __future__ import annotations


class SnapCleanError(RuntimeError):
    pass


class SourceUnavailable(SnapCleanError):
    """The asset source cannot enumerate or render at all.

    Aborts the current sync pass; the watermark is left untouched so the
    next trigger retries the same window.
    """


class AssetNotFound(SnapCleanError):
    def __init__(self, asset_id: str):
        super().__init__(f"asset not found: {asset_id}")
        self.asset_id = asset_id


class AssetRenderFailure(SnapCleanError):
    def __init__(self, asset_id: str, reason: str):
        super().__init__(f"cannot render {asset_id}: {reason}")
        self.asset_id = asset_id
        self.reason = reason


class PersistenceFailure(SnapCleanError):
    def __init__(self, path: object, reason: str):
        super().__init__(f"cannot write {path}: {reason}")
        self.path = path
        self.reason = reason
