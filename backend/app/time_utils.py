from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


DAY_KEY_FORMAT = "%Y-%m-%d"


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def format_day_key(d: date) -> str:
    """Zero-padded YYYY-MM-DD key for per-day documents."""
    return d.strftime(DAY_KEY_FORMAT)


def parse_day_key(value: Optional[str]) -> date:
    """
    Parse a YYYY-MM-DD day key.

    Raises ValueError for anything that is not a zero-padded calendar date.
    """
    if not value or len(value) != 10:
        raise ValueError(f"Invalid day key: {value!r}")
    return datetime.strptime(value, DAY_KEY_FORMAT).date()


def local_day_key(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> str:
    """
    Day key for 'today' in the given timezone.

    `now` is UTC-naive (as returned by utcnow()). Unknown timezone names fall
    back to UTC.
    """
    now = now or utcnow()
    aware = now.replace(tzinfo=timezone.utc) if now.tzinfo is None else now
    try:
        zone = ZoneInfo(tz_name) if tz_name else timezone.utc
    except (ZoneInfoNotFoundError, ValueError, OSError):
        zone = timezone.utc
    return format_day_key(aware.astimezone(zone).date())


def is_valid_timezone(tz_name: Optional[str]) -> bool:
    """True when tz_name names an IANA zone the tz database can load."""
    if not tz_name or not isinstance(tz_name, str):
        return False
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return False
    return True


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    """Last representable millisecond of the day: 23:59:59.999."""
    return datetime.combine(d, time(23, 59, 59, 999000))


def start_of_week(d: date) -> date:
    """Monday of the ISO week containing d (Sunday rolls back 6 days)."""
    return d - timedelta(days=d.weekday())


def start_of_month(d: date) -> date:
    return d.replace(day=1)
