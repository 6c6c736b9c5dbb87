# File: seerr_users/utils/timezone_utils.py
from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow():
    """Get current datetime in UTC (for database storage)."""
    return datetime.now(timezone.utc)


def days_ago(days: int) -> datetime:
    """Start of a rolling window ending now."""
    return utcnow() - timedelta(days=days)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a stored datetime as ISO-8601 UTC. Naive values are assumed to be UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')
