import math
from datetime import datetime, timedelta, timezone
from typing import Optional
from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime read from the database to aware UTC.

    SQLite hands back naive datetimes even for timezone-aware columns, so
    naive values are taken to already be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_months(value: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the end of the target month.

    Jan 31 + 1 month -> Feb 28 (or 29).
    """
    return value + relativedelta(months=months)


def add_days(value: datetime, days: int) -> datetime:
    return value + timedelta(days=days)


def days_until(moment: datetime, now: Optional[datetime] = None) -> int:
    """Whole days left until moment, rounded up."""
    seconds = (as_utc(moment) - as_utc(now or utcnow())).total_seconds()
    return math.ceil(seconds / 86400)


def days_since(moment: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed since moment, rounded down."""
    seconds = (as_utc(now or utcnow()) - as_utc(moment)).total_seconds()
    return math.floor(seconds / 86400)
