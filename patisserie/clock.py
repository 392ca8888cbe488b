"""Time helpers.

Timestamps are persisted as naive UTC. Calendar-day logic (daily order
numbers, "sales today") uses the business timezone from settings.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from patisserie.config import settings


def utcnow() -> datetime:
    """Current time as naive UTC"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def business_tz() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def local_date(now: Optional[datetime] = None) -> date:
    """Calendar date in the business timezone for a naive UTC instant"""
    now = now or utcnow()
    return now.replace(tzinfo=timezone.utc).astimezone(business_tz()).date()


def local_day_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Local midnight-to-midnight window containing ``now``, as naive UTC"""
    day = local_date(now)
    start_local = datetime.combine(day, time.min, tzinfo=business_tz())
    end_local = datetime.combine(day + timedelta(days=1), time.min, tzinfo=business_tz())
    return (
        start_local.astimezone(timezone.utc).replace(tzinfo=None),
        end_local.astimezone(timezone.utc).replace(tzinfo=None),
    )
