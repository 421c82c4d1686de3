"""
Check-in validation: location against the activity geofence, and a per-participant
classification used by the officer review screen.
"""

import math

from aggregation import active_slots, sessions_of
from config import Settings, settings as default_settings
from schemas import Activity, AttendanceRecord, LocationCheck, Participant, ValidationType
from slot_matching import match, parse_label, slot_key_for
from slot_status import schedule_text_for
from time_windows import check_in_timing, slot_times_for_day

EARTH_RADIUS_METERS = 6371e3

NO_LOCATION_REQUIRED = "No location requirement"

# Timings an officer may still accept
VALID_TIMINGS = ("on_time", "late_window")


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def validate_location(activity: Activity, record: AttendanceRecord) -> LocationCheck:
    """
    A single activity location wins over per-slot locations. With per-slot
    locations, the record's own slot is checked when it has one; otherwise the
    check-in is valid inside any of them.
    """
    if record.location is None:
        return LocationCheck(valid=True, message=NO_LOCATION_REQUIRED)
    lat, lng = record.location.lat, record.location.lng

    if activity.location_data is not None:
        target = activity.location_data
        distance = haversine_distance(lat, lng, target.lat, target.lng)
        if distance <= target.radius:
            return LocationCheck(valid=True, distance=distance)
        return LocationCheck(valid=False, distance=distance,
                             message=f"{distance:.0f}m from the activity location (allowed {target.radius:.0f}m)")

    if not activity.multi_time_locations:
        return LocationCheck(valid=True, message=NO_LOCATION_REQUIRED)

    slot_key = parse_label(record.time_slot).slot_key or slot_key_for(record.time_slot, loose=False)
    for mtl in activity.multi_time_locations:
        if mtl.time_slot == slot_key:
            distance = haversine_distance(lat, lng, mtl.location.lat, mtl.location.lng)
            if distance <= mtl.radius:
                return LocationCheck(valid=True, distance=distance)
            return LocationCheck(valid=False, distance=distance,
                                 message=f"{distance:.0f}m from the {mtl.time_slot} location (allowed {mtl.radius:.0f}m)")

    nearest = None
    for mtl in activity.multi_time_locations:
        distance = haversine_distance(lat, lng, mtl.location.lat, mtl.location.lng)
        if distance <= mtl.radius:
            return LocationCheck(valid=True, distance=distance)
        if nearest is None or distance < nearest[0]:
            nearest = (distance, mtl)
    distance, mtl = nearest
    return LocationCheck(valid=False, distance=distance,
                         message=f"{distance:.0f}m from the {mtl.time_slot} location (allowed {mtl.radius:.0f}m)")


def validate_time(activity: Activity, record: AttendanceRecord, settings: Settings = default_settings) -> str:
    """
    Timing of a check-in against the first session its label matches (see
    check_in_timing). Activities without slots set no time requirement.
    """
    if not active_slots(activity):
        return "on_time"
    for session in sessions_of(activity):
        if not match(record.time_slot, session.slot.name, session.day):
            continue
        start_time, end_time = slot_times_for_day(session.slot, schedule_text_for(activity, session.day))
        target = start_time if record.check_in_type == "start" else end_time
        return check_in_timing(record.check_in_time, target, settings)
    return "unknown"


def classify_participant(activity: Activity, participant: Participant,
                         settings: Settings = default_settings) -> ValidationType:
    """
    Review classification of a participant from their raw records.

    Approved records decide first: 'late_but_valid' when one in range fell in
    the late window, otherwise 'perfect' (out-of-range approvals are skipped,
    and an officer's approval outweighs any other timing). Then any rejected
    record gives 'invalid_location'. Pending records give 'invalid_both',
    'invalid_location', 'late_but_valid' or 'invalid_time', in that order,
    and 'late_but_valid' when nothing is wrong with them.
    """
    records = participant.attendances
    if not records:
        return "not_checked_in"

    approved = [r for r in records if r.status == "approved"]
    if approved:
        for record in approved:
            if not validate_location(activity, record).valid:
                continue
            if validate_time(activity, record, settings) == "late_window":
                return "late_but_valid"
        return "perfect"

    if any(r.status == "rejected" for r in records):
        return "invalid_location"

    bad_location = bad_time = late = False
    for record in records:
        location_ok = validate_location(activity, record).valid
        timing = validate_time(activity, record, settings)
        bad_location = bad_location or not location_ok
        bad_time = bad_time or timing not in VALID_TIMINGS
        late = late or (location_ok and timing == "late_window")

    if bad_location and bad_time:
        return "invalid_both"
    if bad_location:
        return "invalid_location"
    if late:
        return "late_but_valid"
    if bad_time:
        return "invalid_time"
    return "late_but_valid"
