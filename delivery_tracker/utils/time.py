"""Time utilities (UTC now, zone resolution, timestamp parsing, elapsed formatting)."""
from __future__ import annotations
import os
import time as systime
from datetime import date, datetime, time, timezone, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

LOCALTIME_PATH = "/etc/localtime"
_EPOCH = datetime(1970, 1, 1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LocalTimezone(tzinfo):
    """The host's local zone, asking the C library for the offset of each instant.

    Used only when no named zone can be found. Unlike the fixed offset of
    ``datetime.now().astimezone()``, it follows daylight-saving changes.
    """

    def _local(self, dt: datetime) -> systime.struct_time:
        stamp = systime.mktime((dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second, dt.weekday(), 0, -1))
        return systime.localtime(stamp)

    def utcoffset(self, dt: datetime | None) -> timedelta:
        if dt is None:
            return timedelta(seconds=-systime.timezone)
        return timedelta(seconds=self._local(dt).tm_gmtoff)

    def dst(self, dt: datetime | None) -> timedelta:
        if dt is None or self._local(dt).tm_isdst <= 0:
            return timedelta(0)
        return self.utcoffset(dt) + timedelta(seconds=systime.timezone)

    def tzname(self, dt: datetime | None) -> str:
        if dt is None:
            return systime.tzname[0]
        return self._local(dt).tm_zone

    def fromutc(self, dt: datetime) -> datetime:
        stamp = (dt.replace(tzinfo=None) - _EPOCH) // timedelta(seconds=1)
        return dt + timedelta(seconds=systime.localtime(stamp).tm_gmtoff)

    def __repr__(self) -> str:
        return "LocalTimezone()"


def resolve_timezone(name: str | None) -> tzinfo:
    """Return the IANA zone for `name`, or the host's local zone when unset.

    The host zone is looked up as ``$TZ``, then ``/etc/localtime``, and only
    then falls back to `LocalTimezone`. All three follow daylight saving.
    """
    if name:
        return ZoneInfo(name)
    env_name = os.environ.get("TZ", "").lstrip(":")
    if env_name:
        try:
            return ZoneInfo(env_name)
        except (ZoneInfoNotFoundError, ValueError):
            # POSIX rule strings such as "EST5EDT,M3.2.0,M11.1.0" are not IANA keys
            return LocalTimezone()
    try:
        with open(LOCALTIME_PATH, "rb") as fh:
            return ZoneInfo.from_file(fh, key="localtime")
    except (OSError, ValueError):
        return LocalTimezone()


def parse_timestamp(value: object, tz: tzinfo | None = None) -> datetime | None:
    """Parse an API/webhook timestamp into an aware datetime.

    Accepts ISO-8601 date-times (with or without offset, ``Z`` suffix allowed),
    bare ``YYYY-MM-DD`` dates (midnight) and existing datetime/date objects.
    Naive values are interpreted in `tz` (UTC when not given). Returns None for
    empty input; raises ValueError for anything unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz or timezone.utc)
    return parsed


def format_elapsed(start: datetime, end: datetime | None = None) -> str:
    end_ts = end or utc_now()
    delta: timedelta = end_ts - start
    ms = int(delta.total_seconds() * 1000)
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms/1000:.2f}s"
    return f"{delta.total_seconds()/60:.2f}m"


__all__ = ["utc_now", "LocalTimezone", "resolve_timezone", "parse_timestamp", "format_elapsed"]
