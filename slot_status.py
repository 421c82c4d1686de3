from datetime import datetime
from typing import Optional

from config import Settings, settings as default_settings
from schemas import Activity, AttendanceRecord, Participant, SlotStatus, TimeSlot
from slot_matching import match
from time_windows import parse_calendar_date, parse_instant, slot_times_for_day, timeliness, window_of


def schedule_text_for(activity: Optional[Activity], day: Optional[int]) -> Optional[str]:
    if activity is None or day is None or activity.kind != "multiple_days":
        return None
    for schedule_day in activity.schedule:
        if schedule_day.day == day:
            return schedule_day.activities
    return None


def find_attendance(participant: Participant, slot: TimeSlot, check_in_type: str,
                    day: Optional[int] = None) -> Optional[AttendanceRecord]:
    """First record in list order whose type and label match; later duplicates are ignored"""
    for record in participant.attendances:
        if record.check_in_type != check_in_type:
            continue
        if match(record.time_slot, slot.name, day):
            return record
    return None


def resolve_slot_status(participant: Participant, slot: TimeSlot, check_in_type: str, reference_date,
                        day: Optional[int] = None, activity: Optional[Activity] = None,
                        now: Optional[datetime] = None,
                        settings: Settings = default_settings) -> SlotStatus:
    """
    Status of one check-in (start or end) of one slot for one participant.

    Without a record, time_status is the slot window relative to `now`. With a
    record, it is the on-time/late classification of the check-in, or 'unknown'
    when a timestamp or the target time cannot be read. The record's approval
    status is passed through untouched either way.
    """
    start_time, end_time = slot_times_for_day(slot, schedule_text_for(activity, day))
    record = find_attendance(participant, slot, check_in_type, day)

    if record is None:
        return SlotStatus(
            attendance=None,
            approval_status=None,
            time_status=window_of(start_time, end_time, reference_date, now, settings),
            has_checked_in=False,
        )

    checked_in = SlotStatus(attendance=record, approval_status=record.status,
                            time_status="unknown", has_checked_in=True)
    if parse_instant(record.check_in_time, settings) is None:
        return checked_in
    if parse_calendar_date(reference_date, settings) is None:
        return checked_in

    target = start_time if check_in_type == "start" else end_time
    checked_in.time_status = timeliness(record.check_in_time, target, settings)
    return checked_in
