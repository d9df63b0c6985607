"""Yesterday-and-today inclusion window.

The window covers every instant from local midnight at the start of yesterday
up to one millisecond before local midnight at the end of today, in the
deployment's time zone. Bounds are aware datetimes and membership is decided
by instant comparison, never by comparing formatted strings.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from delivery_tracker.utils.time import utc_now


@dataclass(frozen=True, slots=True)
class TimeWindow:
    start: datetime
    end: datetime

    def contains(self, timestamp: datetime) -> bool:
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=self.start.tzinfo)
        return self.start <= timestamp <= self.end


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def compute_window(tz: tzinfo, now: datetime | None = None) -> TimeWindow:
    """Window for the local calendar day of `now` (default: current time)."""
    current = (now or utc_now()).astimezone(tz)
    today = current.date()
    start = _local_midnight(today - timedelta(days=1), tz)
    end = _local_midnight(today + timedelta(days=1), tz) - timedelta(milliseconds=1)
    return TimeWindow(start=start, end=end)


__all__ = ["TimeWindow", "compute_window"]
