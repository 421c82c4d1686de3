from datetime import datetime

import pytest

from schemas import Activity, AttendanceRecord, DaySlot, Participant, ScheduleDay

from factories import AFTERNOON, MORNING


@pytest.fixture
def make_record():
    def _make(label, check_in_type="start", when=None, status="approved", **kwargs):
        return AttendanceRecord(time_slot=label, check_in_type=check_in_type,
                                check_in_time=when, status=status, **kwargs)
    return _make


@pytest.fixture
def make_participant():
    def _make(user_id="u1", records=(), slots=None, **kwargs):
        registered = None
        if slots is not None:
            registered = [DaySlot(day=day, slot=slot) for day, slot in slots]
        return Participant(user_id=user_id, name=f"Student {user_id}", attendances=list(records),
                           registered_day_slots=registered, **kwargs)
    return _make


@pytest.fixture
def single_day_activity():
    return Activity(id="a1", kind="single_day", date="2026-03-10", time_slots=[MORNING, AFTERNOON])


@pytest.fixture
def multi_day_activity():
    return Activity(
        id="a2",
        kind="multiple_days",
        start_date="2026-03-10",
        end_date="2026-03-12",
        schedule=[
            ScheduleDay(day=1, date="2026-03-10", activities="Khai mạc"),
            ScheduleDay(day=2, date="2026-03-11", activities="Buổi Sáng (07:00-10:00)\nBuổi Tối (19:00-23:40)"),
            ScheduleDay(day=3, date="2026-03-12"),
        ],
    )


@pytest.fixture
def evening_of_day_one():
    return datetime(2026, 3, 10, 18, 0)
