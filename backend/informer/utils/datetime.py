"""Datetime utilities.

Timestamps are stored as naive UTC so they compare cleanly across database
backends that drop tzinfo.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_utc_day(now: Optional[datetime] = None) -> datetime:
    """Midnight (naive UTC) of the day containing ``now``."""
    now = now or utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def parse_datetime(value) -> datetime:
    """Parse provider timestamps ("2024-01-15 12:00:00", ISO 8601) to naive UTC.

    Missing or unparseable values fall back to the current time.
    """
    if value is None or value == "":
        return utcnow()
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return utcnow()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
