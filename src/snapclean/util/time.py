from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def from_timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes are taken to be local time."""
    if value.tzinfo is None:
        return value.astimezone()
    return value


def to_iso(value: datetime) -> str:
    return ensure_aware(value).isoformat()


def parse_iso(value: str) -> datetime:
    return ensure_aware(datetime.fromisoformat(value))
