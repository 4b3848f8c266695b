from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """
    Treat naive datetimes as UTC.

    SQLite hands back naive values even for DateTime(timezone=True) columns,
    so every Python-side comparison goes through here.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: Optional[datetime], *, now: Optional[datetime] = None) -> bool:
    if expires_at is None:
        return False
    now = ensure_aware(now) or utcnow()
    return ensure_aware(expires_at) <= now
