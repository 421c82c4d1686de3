from datetime import date, datetime, time, timezone

import pytest

from config import Settings
from schemas import TimeSlot
from time_windows import (
    check_in_timing,
    parse_calendar_date,
    parse_instant,
    parse_schedule_times,
    parse_time_of_day,
    slot_times_for_day,
    timeliness,
    window_of,
)


@pytest.mark.parametrize("value, expected", [
    ("08:00", time(8, 0)),
    ("8:05", time(8, 5)),
    ("23:59", time(23, 59)),
    ("08:00:30", time(8, 0, 30)),
    ("24:00", None),
    ("8h", None),
    ("", None),
    (None, None),
])
def test_parse_time_of_day(value, expected):
    assert parse_time_of_day(value) == expected


@pytest.mark.parametrize("check_in, expected", [
    (datetime(2026, 3, 10, 7, 45, 0), "on_time"),
    (datetime(2026, 3, 10, 7, 44, 59), "late"),
    (datetime(2026, 3, 10, 8, 0, 0), "on_time"),
    (datetime(2026, 3, 10, 8, 15, 0), "on_time"),
    (datetime(2026, 3, 10, 8, 15, 1), "late"),
])
def test_on_time_window_boundaries(check_in, expected):
    assert timeliness(check_in, "08:00") == expected


def test_utc_string_is_read_in_activity_timezone():
    # 00:50 UTC is 07:50 in Asia/Ho_Chi_Minh
    assert timeliness("2026-03-10T00:50:00.000Z", "08:00") == "on_time"
    assert timeliness("2026-03-10T00:50:00Z", "08:00", Settings(ACTIVITY_TIMEZONE="UTC")) == "late"


def test_target_is_built_on_the_check_in_day():
    assert timeliness("2026-03-11T21:05:00", "21:00") == "on_time"
    assert timeliness("2026-03-10T23:58:00", "21:00") == "late"


def test_timeliness_with_unusable_input_is_unknown():
    assert timeliness("not a date", "08:00") == "unknown"
    assert timeliness(None, "08:00") == "unknown"
    assert timeliness(datetime(2026, 3, 10, 8, 0), None) == "unknown"
    assert timeliness(datetime(2026, 3, 10, 8, 0), "eight") == "unknown"


def test_custom_tolerance():
    strict = Settings(ON_TIME_TOLERANCE_MINUTES=5)
    assert timeliness(datetime(2026, 3, 10, 8, 5), "08:00", strict) == "on_time"
    assert timeliness(datetime(2026, 3, 10, 8, 6), "08:00", strict) == "late"


@pytest.mark.parametrize("when, expected", [
    (datetime(2026, 3, 10, 7, 44), "too_early"),
    (datetime(2026, 3, 10, 7, 45), "on_time"),
    (datetime(2026, 3, 10, 8, 15), "on_time"),
    (datetime(2026, 3, 10, 8, 16), "late_window"),
    (datetime(2026, 3, 10, 8, 30), "late_window"),
    (datetime(2026, 3, 10, 8, 31), "too_late"),
    (None, "unknown"),
])
def test_check_in_timing(when, expected):
    assert check_in_timing(when, "08:00") == expected


@pytest.mark.parametrize("now, expected", [
    (datetime(2026, 3, 10, 7, 59), "not_started"),
    (datetime(2026, 3, 10, 8, 0), "in_progress"),
    (datetime(2026, 3, 10, 11, 30), "in_progress"),
    (datetime(2026, 3, 10, 11, 31), "passed"),
    (datetime(2026, 3, 11, 9, 0), "passed"),
    (datetime(2026, 3, 9, 9, 0), "not_started"),
])
def test_window_of(now, expected):
    assert window_of("08:00", "11:30", "2026-03-10", now) == expected


def test_window_of_day_first_date():
    assert window_of("08:00", "11:30", "10/03/2026", datetime(2026, 3, 10, 9, 0)) == "in_progress"


def test_window_of_with_missing_input_is_unknown():
    now = datetime(2026, 3, 10, 9, 0)
    assert window_of(None, "11:30", "2026-03-10", now) == "unknown"
    assert window_of("08:00", "11:30", "soon", now) == "unknown"
    assert window_of("08:00", "11:30", None, now) == "unknown"


def test_parse_calendar_date():
    assert parse_calendar_date("2026-03-10") == date(2026, 3, 10)
    assert parse_calendar_date("10/03/2026") == date(2026, 3, 10)
    assert parse_calendar_date(date(2026, 3, 10)) == date(2026, 3, 10)
    # midnight local time stored as UTC the evening before
    assert parse_calendar_date("2026-03-09T17:30:00.000Z") == date(2026, 3, 10)
    assert parse_calendar_date(datetime(2026, 3, 9, 17, 30, tzinfo=timezone.utc)) == date(2026, 3, 10)
    assert parse_calendar_date("31/02/2026") is None
    assert parse_calendar_date("") is None
    assert parse_calendar_date(42) is None


def test_parse_instant_converts_to_activity_timezone():
    instant = parse_instant(datetime(2026, 3, 10, 1, 0, tzinfo=timezone.utc))
    assert instant.hour == 8
    assert parse_instant(datetime(2026, 3, 10, 8, 0)).utcoffset().total_seconds() == 7 * 3600
    assert parse_instant("yesterday") is None


def test_parse_schedule_times():
    text = "Buổi Sáng (07:00-10:00)\nGhi chú: mang áo\n  Buổi Tối (19:00-23:40)\nBuổi Sáng (09:00-11:00)\nBuổi Chiều (1:00-5:00)"
    assert parse_schedule_times(text) == {
        "morning": ("07:00", "10:00"),
        "evening": ("19:00", "23:40"),
    }
    assert parse_schedule_times(None) == {}
    assert parse_schedule_times("") == {}


def test_slot_times_for_day_override():
    text = "Buổi Sáng (07:00-10:00)\nBuổi Tối (19:00-23:40)"
    evening = TimeSlot(id="evening", name="Buổi Tối", start_time="18:00", end_time="21:00")
    afternoon = TimeSlot(id="afternoon", name="Buổi Chiều", start_time="13:00", end_time="17:00")
    custom = TimeSlot(id="morning", name="Ca 1", start_time="08:00", end_time="11:30")
    assert slot_times_for_day(evening, text) == ("19:00", "23:40")
    assert slot_times_for_day(afternoon, text) == ("13:00", "17:00")
    assert slot_times_for_day(custom, text) == ("07:00", "10:00")
    assert slot_times_for_day(evening, None) == ("18:00", "21:00")
