"""Timestamp normalisation shared by mappers."""

from datetime import datetime, timezone


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo; stored timestamps are always UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
