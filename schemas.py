"""
Campus Activity Attendance Schemas

Snapshot models for the documents read from MongoDB, plus the derived result
models the attendance engine hands back to the API and export layers. Field
names are snake_case in Python and camelCase on the wire (the shape stored in
the database), so both spellings are accepted on input.

Snapshot collections:
- Activity -> "activities" (participants embedded)
- AttendanceRecord -> "attendances" (records embedded per user per activity)
"""

from datetime import date as DateType, datetime as DateTimeType
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, EmailStr
from pydantic.alias_generators import to_camel


ActivityKind = Literal["single_day", "multiple_days"]
SlotKey = Literal["morning", "afternoon", "evening"]
CheckInType = Literal["start", "end"]
ApprovalStatus = Literal["pending", "approved", "rejected"]
ParticipantStatus = Literal["pending", "approved", "rejected", "removed"]
WindowStatus = Literal["not_started", "in_progress", "passed", "unknown"]
TimeStatus = Literal["not_started", "in_progress", "passed", "on_time", "late", "unknown"]
CellCode = Literal["on_time", "late", "rejected", "pending", "absent"]
ValidationType = Literal[
    "perfect", "late_but_valid", "invalid_location", "invalid_time", "invalid_both", "not_checked_in"
]
TimingStatus = Literal["on_time", "late_window", "too_early", "too_late", "unknown"]


class SnapshotModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------
# Activity
# -----------------------------

class TimeSlot(SnapshotModel):
    """
    A named time-of-day window of an activity ("Buổi Sáng", "Buổi Chiều", "Buổi Tối")
    """
    id: Optional[str] = Field(None, description="Slot key, usually morning/afternoon/evening")
    name: str = Field(..., description="Slot display name")
    start_time: Optional[str] = Field(None, description="Start time of day (HH:MM)")
    end_time: Optional[str] = Field(None, description="End time of day (HH:MM)")
    is_active: bool = Field(True, description="Inactive slots are ignored everywhere")


class ScheduleDay(SnapshotModel):
    """
    One day of a multiple_days activity
    """
    day: int = Field(..., ge=1, description="Day number, unique and increasing with date")
    date: Union[DateTimeType, DateType, str] = Field(..., description="Calendar date of the day")
    activities: Optional[str] = Field(None, description="Free text, may embed 'Buổi Sáng (07:00-11:30)' lines")


class GeoPoint(SnapshotModel):
    lat: float
    lng: float
    address: Optional[str] = None


class LocationData(GeoPoint):
    radius: float = Field(..., ge=0, description="Accepted radius in meters")


class MultiTimeLocation(SnapshotModel):
    id: Optional[str] = None
    time_slot: SlotKey
    location: GeoPoint
    radius: float = Field(..., ge=0)


class Activity(SnapshotModel):
    """
    Campus activity definition
    Collection: "activities"
    """
    id: Optional[str] = None
    name: Optional[str] = None
    kind: ActivityKind = Field("single_day", alias="type", description="single_day or multiple_days")
    date: Optional[Union[DateTimeType, DateType, str]] = Field(None, description="Date of a single_day activity")
    start_date: Optional[Union[DateTimeType, DateType, str]] = None
    end_date: Optional[Union[DateTimeType, DateType, str]] = None
    time_slots: List[TimeSlot] = Field(default_factory=list)
    schedule: List[ScheduleDay] = Field(default_factory=list)
    location_data: Optional[LocationData] = None
    multi_time_locations: List[MultiTimeLocation] = Field(default_factory=list)
    max_participants: Optional[int] = None
    registration_threshold: Optional[float] = Field(None, ge=0, le=100)


# -----------------------------
# Participants and attendance
# -----------------------------

class AttendanceRecord(SnapshotModel):
    """
    A single start/end check-in of a participant
    Collection: "attendances" (embedded list)
    """
    id: Optional[str] = None
    time_slot: str = Field("", description="Free-text label, e.g. 'Ngày 2 - Buổi Sáng'")
    check_in_type: CheckInType = "start"
    check_in_time: Optional[Union[DateTimeType, str]] = None
    status: ApprovalStatus = "pending"
    location: Optional[GeoPoint] = None
    photo_url: Optional[str] = None
    verified_by: Optional[str] = None
    verification_note: Optional[str] = None
    late_reason: Optional[str] = None
    cancel_reason: Optional[str] = None


class DaySlot(SnapshotModel):
    day: int
    slot: SlotKey


class Participant(SnapshotModel):
    """
    A registered participant of an activity, with their check-ins merged in
    """
    user_id: str = Field(..., description="Canonical user id string")
    name: str = "N/A"
    email: Optional[EmailStr] = None
    role: str = "Người Tham Gia"
    joined_at: Optional[DateTimeType] = None
    approval_status: ParticipantStatus = "approved"
    registered_day_slots: Optional[List[DaySlot]] = None
    attendances: List[AttendanceRecord] = Field(default_factory=list)


# -----------------------------
# Derived results
# -----------------------------

class SlotStatus(SnapshotModel):
    attendance: Optional[AttendanceRecord] = None
    approval_status: Optional[ApprovalStatus] = None
    time_status: TimeStatus = "unknown"
    has_checked_in: bool = False


class SessionAttendance(SnapshotModel):
    """One slot on one day for one participant, with both check-ins resolved"""
    day: Optional[int] = None
    date: Optional[Union[DateTimeType, DateType, str]] = None
    slot_name: str
    registered: bool
    window: WindowStatus
    start: SlotStatus
    end: SlotStatus


class CheckInRate(SnapshotModel):
    percentage: int = Field(0, ge=0, le=100)
    approved: int = 0
    total: int = 0


class SessionRate(SnapshotModel):
    percentage: int = Field(0, ge=0, le=100)
    completed: int = 0
    total: int = 0


class DaySummary(SessionRate):
    day: int
    date: Optional[Union[DateTimeType, DateType, str]] = None


class ActivityRollups(SnapshotModel):
    average: int = Field(0, ge=0, le=100, description="Mean of per-participant session rates")
    overall_percentage: int = Field(0, ge=0, le=100, description="Completed over registered sessions, pooled")
    full_completion_count: int = 0
    full_completion_rate: int = Field(0, ge=0, le=100)
    participants_with_attendance: int = Field(0, description="Participants with at least one completed session")
    late_count: int = 0
    absent_count: int = 0
    possible_check_ins: int = Field(0, description="2 x registered sessions")
    late_percentage: int = Field(0, ge=0, le=100)
    absent_percentage: int = Field(0, ge=0, le=100)
    participant_count: int = 0


class LocationCheck(SnapshotModel):
    valid: bool
    distance: Optional[float] = Field(None, description="Distance in meters to the nearest accepted point")
    message: Optional[str] = None
