"""
UTC helpers.

Every timestamp the engine writes is timezone-aware UTC. Some drivers (SQLite)
hand back naive values; those are interpreted as UTC.
"""

from datetime import datetime, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def cursor_or_epoch(value: Optional[datetime]) -> datetime:
    """A missing notification cursor means everything is new."""
    return ensure_utc(value) or EPOCH
