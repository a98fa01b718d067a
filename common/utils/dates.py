"""
Datetime helpers.

MongoDB returns timezone-aware datetimes (the client is created with
tz_aware=True); everything the API accepts is normalized to aware UTC so the
two can be compared.
"""

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def age_on(birth_date: date, today: date) -> int:
    """Full years between birth_date and today."""
    if isinstance(birth_date, datetime):
        birth_date = birth_date.date()
    if isinstance(today, datetime):
        today = today.date()
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years
