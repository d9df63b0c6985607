import time
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from delivery_tracker.services.window import compute_window
from delivery_tracker.utils import time as time_utils
from delivery_tracker.utils.time import LocalTimezone, parse_timestamp, resolve_timezone

from conftest import NOW


def test_window_covers_yesterday_and_today_utc():
    window = compute_window(timezone.utc, NOW)
    assert window.start == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert window.end == datetime(2024, 1, 2, 23, 59, 59, 999000, tzinfo=timezone.utc)

    assert window.contains(window.start)
    assert window.contains(window.end)
    assert not window.contains(window.start - timedelta(milliseconds=1))
    assert not window.contains(window.end + timedelta(milliseconds=1))


def test_window_uses_local_calendar_day():
    # 03:00Z on Jan 2 is still Jan 1 in New York (UTC-5 in winter)
    ny = ZoneInfo("America/New_York")
    window = compute_window(ny, datetime(2024, 1, 2, 3, 0, tzinfo=timezone.utc))
    assert window.start == datetime(2023, 12, 31, 5, 0, tzinfo=timezone.utc)
    assert window.end == datetime(2024, 1, 2, 4, 59, 59, 999000, tzinfo=timezone.utc)
    # an instant expressed in another offset is compared as an instant
    assert window.contains(parse_timestamp("2024-01-01T19:00:00-08:00"))
    assert not window.contains(parse_timestamp("2024-01-02T05:00:00Z"))


def test_window_treats_naive_timestamps_as_local():
    ny = ZoneInfo("America/New_York")
    window = compute_window(ny, datetime(2024, 1, 2, 3, 0, tzinfo=timezone.utc))
    assert window.contains(datetime(2024, 1, 1, 23, 30))
    assert not window.contains(datetime(2024, 1, 2, 0, 0))


def test_parse_timestamp_formats():
    assert parse_timestamp("2024-01-02T10:00:00Z") == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-02") == datetime(2024, 1, 2, tzinfo=timezone.utc)
    ny = ZoneInfo("America/New_York")
    assert parse_timestamp("2024-01-02T10:00:00", ny) == datetime(2024, 1, 2, 15, tzinfo=timezone.utc)
    assert parse_timestamp(None) is None
    assert parse_timestamp("  ") is None
    with pytest.raises(ValueError):
        parse_timestamp("next tuesday")
    with pytest.raises(ValueError):
        parse_timestamp(True)


@pytest.fixture()
def new_york_host(monkeypatch):
    """Run the test as if the host clock were set to New York time."""
    monkeypatch.setenv("TZ", "America/New_York")
    if hasattr(time, "tzset"):
        time.tzset()
    yield
    monkeypatch.undo()
    if hasattr(time, "tzset"):
        time.tzset()


def test_host_zone_follows_daylight_saving(new_york_host):
    # resolved once at startup, then used across the November DST change
    tz = resolve_timezone(None)
    october = compute_window(tz, datetime(2026, 10, 19, 17, tzinfo=timezone.utc))
    december = compute_window(tz, datetime(2026, 12, 15, 17, tzinfo=timezone.utc))

    assert october.start == datetime(2026, 10, 18, 4, tzinfo=timezone.utc)
    assert december.start == datetime(2026, 12, 14, 5, tzinfo=timezone.utc)
    assert parse_timestamp("2026-12-13T23:30:00", tz) == datetime(2026, 12, 14, 4, 30, tzinfo=timezone.utc)


def test_missing_localtime_falls_back_to_local_timezone(monkeypatch, tmp_path):
    monkeypatch.delenv("TZ", raising=False)
    monkeypatch.setattr(time_utils, "LOCALTIME_PATH", str(tmp_path / "missing"))
    assert isinstance(resolve_timezone(None), LocalTimezone)


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
def test_local_timezone_offset_tracks_the_date(monkeypatch):
    monkeypatch.setenv("TZ", "EST5EDT,M3.2.0,M11.1.0")
    time.tzset()
    try:
        tz = resolve_timezone(None)
        assert isinstance(tz, LocalTimezone)
        assert datetime(2026, 7, 1, 12, tzinfo=tz).utcoffset() == timedelta(hours=-4)
        assert datetime(2026, 12, 1, 12, tzinfo=tz).utcoffset() == timedelta(hours=-5)

        window = compute_window(tz, datetime(2026, 12, 15, 17, tzinfo=timezone.utc))
        assert window.start == datetime(2026, 12, 14, 5, tzinfo=timezone.utc)
        assert window.contains(parse_timestamp("2026-12-13T23:30:00", tz)) is False
        assert window.contains(parse_timestamp("2026-12-14T00:00:00", tz))
    finally:
        monkeypatch.undo()
        time.tzset()
