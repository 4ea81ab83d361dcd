"""
Date helpers - everything is a UTC calendar day
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple


def parse_day(value: Optional[str]) -> Optional[date]:
    """Parse YYYY-MM-DD or an ISO-8601 timestamp into a UTC date; None if invalid"""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def normalise_date(value: Optional[str]) -> str:
    """YYYY-MM-DD for the given day, or for today (UTC) when missing or invalid"""
    day = parse_day(value) or today_utc()
    return day.isoformat()


def utc_day_window(value: Optional[str]) -> Tuple[datetime, datetime]:
    """[start, end) of the UTC day named by value (today when missing or invalid)"""
    day = parse_day(value) or today_utc()
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)
