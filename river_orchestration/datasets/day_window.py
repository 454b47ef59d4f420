"""
Civil day windows

A dataset day is a calendar date in a fixed timezone (Australia/Brisbane by
default), independent of the host timezone. The window is half-open:
[local midnight, next local midnight).
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import TIMEZONE


@dataclass(frozen=True)
class DayWindow:
    """One civil day as UTC instants."""

    civil_date: date
    start: datetime
    end: datetime

    @property
    def date_str(self) -> str:
        return self.civil_date.isoformat()

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def day_window(day_offset: int = 0, now: Optional[datetime] = None,
               tz_name: str = TIMEZONE) -> DayWindow:
    """
    Compute the window for the civil day ``day_offset`` days from today.

    Args:
        day_offset: 0 = today, -1 = yesterday, ...
        now: Current instant (default: system clock); naive values are UTC
        tz_name: IANA timezone of the civil day

    Returns:
        DayWindow with UTC start/end
    """
    tz = ZoneInfo(tz_name)
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    target_date = now.astimezone(tz).date() + timedelta(days=day_offset)
    start = datetime.combine(target_date, time.min, tzinfo=tz)
    end = datetime.combine(target_date + timedelta(days=1), time.min, tzinfo=tz)

    return DayWindow(
        civil_date=target_date,
        start=start.astimezone(timezone.utc),
        end=end.astimezone(timezone.utc)
    )
