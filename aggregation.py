"""
Attendance statistics for an activity.

Every statistic walks the same cross-product (participants x scheduled days x
active slots x start/end) but each keeps its own denominator:

- check-in rate: approved check-ins over 2 x sessions in scope
- session rate: completed sessions over registered sessions, where a session
  is complete when either check-in is approved ("completed-if-either") or
  only when both are ("completed-if-both")
- rollups: mean of per-participant session rates, participants fully
  completed, late approved check-ins and absences, the last two also as a
  share of 2 x registered sessions

Percentages are integers rounded half-up; an empty denominator gives 0.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Literal, NamedTuple, Optional, Union

from config import Settings, settings as default_settings
from registration import is_slot_registered
from schemas import (
    Activity,
    ActivityRollups,
    CheckInRate,
    DaySummary,
    Participant,
    SessionAttendance,
    SessionRate,
    TimeSlot,
)
from slot_status import resolve_slot_status, schedule_text_for
from time_windows import slot_times_for_day, window_of

logger = logging.getLogger(__name__)

CompletionRule = Literal["completed-if-either", "completed-if-both"]
COMPLETED_IF_EITHER = "completed-if-either"
COMPLETED_IF_BOTH = "completed-if-both"

# Used by multiple_days activities that define no active slot
DEFAULT_SLOTS = (
    TimeSlot(id="morning", name="Buổi Sáng", start_time="08:00", end_time="11:30"),
    TimeSlot(id="afternoon", name="Buổi Chiều", start_time="13:00", end_time="17:00"),
    TimeSlot(id="evening", name="Buổi Tối", start_time="18:00", end_time="21:00"),
)


class Session(NamedTuple):
    day: Optional[int]
    date: object
    slot: TimeSlot


def percentage(numerator: int, denominator: int) -> int:
    if denominator <= 0:
        return 0
    # half-up on exact integers
    return (200 * numerator + denominator) // (2 * denominator)


def _as_list(participants: Union[Participant, Iterable[Participant], None]) -> List[Participant]:
    if participants is None:
        return []
    if isinstance(participants, Participant):
        return [participants]
    return list(participants)


def active_slots(activity: Activity) -> List[TimeSlot]:
    slots = [s for s in activity.time_slots if s.is_active]
    if not slots and activity.kind == "multiple_days":
        return list(DEFAULT_SLOTS)
    return slots


def sessions_of(activity: Activity, day: Optional[int] = None) -> List[Session]:
    """Every (day, slot) of the activity, optionally limited to one schedule day"""
    slots = active_slots(activity)
    if activity.kind == "single_day":
        if day is not None:
            return []
        return [Session(None, activity.date, slot) for slot in slots]
    sessions = []
    for schedule_day in activity.schedule:
        if day is not None and schedule_day.day != day:
            continue
        sessions.extend(Session(schedule_day.day, schedule_day.date, slot) for slot in slots)
    return sessions


def resolve_session(activity: Activity, participant: Participant, session: Session,
                    now: Optional[datetime] = None,
                    settings: Settings = default_settings) -> SessionAttendance:
    start_time, end_time = slot_times_for_day(session.slot, schedule_text_for(activity, session.day))
    statuses = {
        check_in_type: resolve_slot_status(participant, session.slot, check_in_type, session.date,
                                           day=session.day, activity=activity, now=now, settings=settings)
        for check_in_type in ("start", "end")
    }
    return SessionAttendance(
        day=session.day,
        date=session.date,
        slot_name=session.slot.name,
        registered=is_slot_registered(participant, session.day, session.slot.name),
        window=window_of(start_time, end_time, session.date, now, settings),
        start=statuses["start"],
        end=statuses["end"],
    )


def participant_sessions(activity: Activity, participant: Participant, day: Optional[int] = None,
                         now: Optional[datetime] = None,
                         settings: Settings = default_settings) -> List[SessionAttendance]:
    return [resolve_session(activity, participant, session, now, settings)
            for session in sessions_of(activity, day)]


def is_session_complete(session: SessionAttendance, rule: CompletionRule = COMPLETED_IF_EITHER) -> bool:
    start_ok = session.start.approval_status == "approved"
    end_ok = session.end.approval_status == "approved"
    if rule == COMPLETED_IF_BOTH:
        return start_ok and end_ok
    return start_ok or end_ok


def compute_check_in_rate(activity: Activity, participants, day: Optional[int] = None,
                          registered_only: Optional[bool] = None, now: Optional[datetime] = None,
                          settings: Settings = default_settings) -> CheckInRate:
    """
    Approved start/end check-ins over all check-ins expected in scope.

    With `registered_only`, sessions the participant did not register for are
    left out of both sides. Left as None it follows the scope: registered
    sessions only for one day, every session for the whole activity.
    """
    if registered_only is None:
        registered_only = day is not None
    approved = total = 0
    for participant in _as_list(participants):
        for session in participant_sessions(activity, participant, day, now, settings):
            if registered_only and not session.registered:
                continue
            total += 2
            approved += session.start.approval_status == "approved"
            approved += session.end.approval_status == "approved"
    return CheckInRate(percentage=percentage(approved, total), approved=approved, total=total)


def compute_session_rate(activity: Activity, participants, day: Optional[int] = None,
                         rule: CompletionRule = COMPLETED_IF_EITHER, now: Optional[datetime] = None,
                         settings: Settings = default_settings) -> SessionRate:
    completed = total = 0
    for participant in _as_list(participants):
        for session in participant_sessions(activity, participant, day, now, settings):
            if not session.registered:
                continue
            total += 1
            completed += is_session_complete(session, rule)
    return SessionRate(percentage=percentage(completed, total), completed=completed, total=total)


def day_breakdown(activity: Activity, participant: Participant, rule: CompletionRule = COMPLETED_IF_BOTH,
                  now: Optional[datetime] = None,
                  settings: Settings = default_settings) -> List[DaySummary]:
    """Session rate of one participant for each schedule day of a multiple_days activity"""
    if activity.kind != "multiple_days":
        return []
    summaries = []
    for schedule_day in activity.schedule:
        rate = compute_session_rate(activity, participant, schedule_day.day, rule, now, settings)
        summaries.append(DaySummary(day=schedule_day.day, date=schedule_day.date, **rate.model_dump()))
    return summaries


def count_late(sessions: List[SessionAttendance]) -> int:
    late = 0
    for session in sessions:
        for status in (session.start, session.end):
            if status.approval_status == "approved" and status.time_status == "late":
                late += 1
    return late


def count_absent(sessions: List[SessionAttendance]) -> int:
    """
    Missing or rejected check-ins: a start once its session has begun, an end
    only once the session is over. Pending is never absent.
    """
    absent = 0
    for session in sessions:
        if session.window in ("in_progress", "passed"):
            if not session.start.has_checked_in or session.start.approval_status == "rejected":
                absent += 1
        if session.window == "passed":
            if not session.end.has_checked_in or session.end.approval_status == "rejected":
                absent += 1
    return absent


def compute_activity_rollups(activity: Activity, participants, now: Optional[datetime] = None,
                             settings: Settings = default_settings) -> ActivityRollups:
    participants = _as_list(participants)
    percentages = []
    full = late = absent = attended = 0
    completed_total = session_total = 0
    for participant in participants:
        sessions = [s for s in participant_sessions(activity, participant, None, now, settings) if s.registered]
        either = sum(is_session_complete(s, COMPLETED_IF_EITHER) for s in sessions)
        both = sum(is_session_complete(s, COMPLETED_IF_BOTH) for s in sessions)
        percentages.append(percentage(either, len(sessions)))
        if percentage(both, len(sessions)) == 100:
            full += 1
        if either > 0:
            attended += 1
        completed_total += either
        session_total += len(sessions)
        late += count_late(sessions)
        absent += count_absent(sessions)

    # mean of the per-participant percentages, rounded half-up
    average = percentage(sum(percentages), 100 * len(percentages)) if percentages else 0
    possible = 2 * session_total
    logger.debug("rollups for activity %s: %d participants, average=%d, full=%d, late=%d, absent=%d of %d",
                 activity.id, len(participants), average, full, late, absent, possible)
    return ActivityRollups(
        average=average,
        overall_percentage=percentage(completed_total, session_total),
        full_completion_count=full,
        full_completion_rate=percentage(full, len(participants)),
        participants_with_attendance=attended,
        late_count=late,
        absent_count=absent,
        possible_check_ins=possible,
        late_percentage=percentage(late, possible),
        absent_percentage=percentage(absent, possible),
        participant_count=len(participants),
    )
