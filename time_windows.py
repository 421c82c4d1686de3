"""
Time-of-day windows for slots and on-time classification of check-ins.

All comparisons are done on timezone-aware instants. Naive values are taken to
be in the activity timezone (settings.ACTIVITY_TIMEZONE).
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Dict, Optional, Tuple

from config import Settings, settings as default_settings
from slot_matching import SLOT_TOKENS, normalize_text


TIME_OF_DAY_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")
SCHEDULE_SLOT_PATTERN = re.compile(r"^Buổi (Sáng|Chiều|Tối)\s*\((\d{2}:\d{2})-(\d{2}:\d{2})\)")
DAY_FIRST_DATE_PATTERN = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")
YEAR_FIRST_DATE_PATTERN = re.compile(r"^(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})$")


# -----------------------------
# Parsing
# -----------------------------

def parse_time_of_day(value) -> Optional[time]:
    """'08:00' -> time(8, 0); anything else -> None"""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        return None
    m = TIME_OF_DAY_PATTERN.match(value.strip())
    if not m:
        return None
    return time(int(m.group(1)), int(m.group(2)), int(m.group(3) or 0))


def parse_instant(value, settings: Settings = default_settings) -> Optional[datetime]:
    """ISO string or datetime -> aware datetime in the activity timezone, or None"""
    tz = settings.tz
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def parse_calendar_date(value, settings: Settings = default_settings) -> Optional[date]:
    """
    Calendar day of an activity or schedule day. Accepts date/datetime objects,
    ISO timestamps (converted into the activity timezone first), YYYY-MM-DD
    and DD/MM/YYYY.
    """
    if isinstance(value, datetime):
        return parse_instant(value, settings).date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if "T" in text or "Z" in text:
        instant = parse_instant(text, settings)
        return instant.date() if instant else None
    try:
        m = YEAR_FIRST_DATE_PATTERN.match(text)
        if m:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        m = DAY_FIRST_DATE_PATTERN.match(text)
        if m:
            return date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
    except ValueError:
        return None
    instant = parse_instant(text, settings)
    return instant.date() if instant else None


def at_time_of_day(day: date, tod: time, settings: Settings = default_settings) -> datetime:
    return datetime.combine(day, tod, tzinfo=settings.tz)


# -----------------------------
# Contract A: where is "now" relative to the slot
# -----------------------------

def window_of(slot_start, slot_end, reference_date, now: Optional[datetime] = None,
              settings: Settings = default_settings) -> str:
    """
    Return 'not_started', 'in_progress' or 'passed' for `now` against the slot
    placed on the calendar day of `reference_date`. Both boundaries belong to
    'in_progress'. Missing or malformed input gives 'unknown'.
    """
    start = parse_time_of_day(slot_start)
    end = parse_time_of_day(slot_end)
    day = parse_calendar_date(reference_date, settings)
    if start is None or end is None or day is None:
        return "unknown"
    current = parse_instant(now, settings) if now is not None else datetime.now(settings.tz)
    if current is None:
        return "unknown"
    starts_at = at_time_of_day(day, start, settings)
    ends_at = at_time_of_day(day, end, settings)
    if current < starts_at:
        return "not_started"
    if current <= ends_at:
        return "in_progress"
    return "passed"


# -----------------------------
# Contract B: on time or late
# -----------------------------

def timeliness(check_in, target_time_of_day, settings: Settings = default_settings) -> str:
    """
    Compare a check-in against the target time of day built on the check-in's
    own calendar day. Within +/- ON_TIME_TOLERANCE_MINUTES (inclusive) is
    'on_time', anything else 'late'; unusable input is 'unknown'.
    """
    instant = parse_instant(check_in, settings)
    target_tod = parse_time_of_day(target_time_of_day)
    if instant is None or target_tod is None:
        return "unknown"
    target = at_time_of_day(instant.date(), target_tod, settings)
    tolerance = timedelta(minutes=settings.ON_TIME_TOLERANCE_MINUTES)
    if target - tolerance <= instant <= target + tolerance:
        return "on_time"
    return "late"


def check_in_timing(check_in, target_time_of_day, settings: Settings = default_settings) -> str:
    """
    Finer reading of timeliness for review: 'on_time', 'late_window' (past the
    tolerance but within LATE_WINDOW_MINUTES of the target), 'too_early',
    'too_late' or 'unknown'. Anchored like timeliness().
    """
    instant = parse_instant(check_in, settings)
    target_tod = parse_time_of_day(target_time_of_day)
    if instant is None or target_tod is None:
        return "unknown"
    target = at_time_of_day(instant.date(), target_tod, settings)
    tolerance = timedelta(minutes=settings.ON_TIME_TOLERANCE_MINUTES)
    if instant < target - tolerance:
        return "too_early"
    if instant <= target + tolerance:
        return "on_time"
    if instant <= target + timedelta(minutes=settings.LATE_WINDOW_MINUTES):
        return "late_window"
    return "too_late"


# -----------------------------
# Per-day overrides from schedule text
# -----------------------------

def parse_schedule_times(activities_text) -> Dict[str, Tuple[str, str]]:
    """
    Read 'Buổi Sáng (07:00-11:30)' style lines from a schedule day's text.
    Returns {slot_key: (start, end)}; the first line for a slot wins.
    """
    if not isinstance(activities_text, str):
        return {}
    times = {}
    for line in activities_text.splitlines():
        m = SCHEDULE_SLOT_PATTERN.match(line.strip())
        if not m:
            continue
        key = SLOT_TOKENS[m.group(1).lower()]
        if key in times:
            continue
        if parse_time_of_day(m.group(2)) and parse_time_of_day(m.group(3)):
            times[key] = (m.group(2), m.group(3))
    return times


def slot_times_for_day(slot, schedule_text=None) -> Tuple[Optional[str], Optional[str]]:
    """
    Start and end time of `slot` for one day, taking the schedule text override
    into account when it names this slot (by token in the name or by slot id).
    """
    overrides = parse_schedule_times(schedule_text)
    if overrides:
        name = normalize_text(slot.name)
        for token, key in SLOT_TOKENS.items():
            if key in overrides and (token in name or slot.id == key):
                return overrides[key]
    return slot.start_time, slot.end_time
