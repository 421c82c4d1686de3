import logging
import os
from typing import List, Optional, Tuple

from bson import ObjectId
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from aggregation import (
    COMPLETED_IF_BOTH,
    COMPLETED_IF_EITHER,
    CompletionRule,
    compute_activity_rollups,
    compute_check_in_rate,
    compute_session_rate,
    day_breakdown,
    participant_sessions,
)
from config import settings
from database import db, get_documents
from registration import is_slot_registered
from reports import build_export_rows
from schemas import Activity, AttendanceRecord, Participant, ParticipantStatus
from snapshots import activity_from_document, participants_from_documents
from validation import classify_participant, validate_location

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Campus Activity Attendance API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------
# Helpers
# -----------------------------

def oid(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid ID format")


def load_snapshot(activity_id: str) -> Tuple[Activity, List[Participant]]:
    """Fetch the activity and its attendance documents once and build the snapshot"""
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    doc = db.activities.find_one({"_id": oid(activity_id)})
    if not doc:
        raise HTTPException(status_code=404, detail="Activity not found")
    attendance_docs = get_documents("attendances", {"activityId": doc["_id"]})
    try:
        activity = activity_from_document(doc)
    except ValidationError as e:
        logger.warning("Activity %s could not be read: %s", activity_id, e.error_count())
        raise HTTPException(status_code=422, detail="Activity document is malformed")
    return activity, participants_from_documents(doc, attendance_docs)


def select_participants(participants: List[Participant], approval_status: Optional[str]) -> List[Participant]:
    if approval_status is None:
        return participants
    return [p for p in participants if p.approval_status == approval_status]


def find_participant(participants: List[Participant], user_id: str) -> Participant:
    for participant in participants:
        if participant.user_id == user_id:
            return participant
    raise HTTPException(status_code=404, detail="Participant not found")


# -----------------------------
# Health & meta
# -----------------------------

@app.get("/")
def read_root():
    return {"message": "Campus Activity Attendance API running"}


@app.get("/test")
def test_database():
    """Test endpoint to check if database is available and accessible"""
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }

    try:
        if db is not None:
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
            try:
                collections = db.list_collection_names()
                response["collections"] = collections[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️  Connected but Error: {str(e)[:80]}"
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"

    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"
    response["timezone"] = settings.ACTIVITY_TIMEZONE
    return response


@app.get("/schema")
def get_schema():
    """Expose basic schema info for viewer/tools"""
    return {
        "activity": Activity.model_json_schema(by_alias=True),
        "participant": Participant.model_json_schema(by_alias=True),
        "attendancerecord": AttendanceRecord.model_json_schema(by_alias=True),
    }


# -----------------------------
# Attendance statistics
# -----------------------------

@app.get("/activities/{activity_id}/attendance/stats")
def activity_attendance_stats(
    activity_id: str,
    day: Optional[int] = Query(None, ge=1, description="Limit rates to one schedule day"),
    registered_only: Optional[bool] = Query(
        None, description="Leave unregistered sessions out of the check-in rate; defaults to true when a day is given"),
    approval_status: Optional[ParticipantStatus] = Query(None),
):
    activity, participants = load_snapshot(activity_id)
    participants = select_participants(participants, approval_status)
    check_in_rate = compute_check_in_rate(activity, participants, day=day, registered_only=registered_only)
    return {
        "activityId": activity.id,
        "type": activity.kind,
        "day": day,
        "checkInRate": check_in_rate.model_dump(by_alias=True),
        "sessionRate": compute_session_rate(activity, participants, day=day, rule=COMPLETED_IF_EITHER).model_dump(by_alias=True),
        "fullSessionRate": compute_session_rate(activity, participants, day=day, rule=COMPLETED_IF_BOTH).model_dump(by_alias=True),
        "rollups": compute_activity_rollups(activity, participants).model_dump(by_alias=True),
    }


@app.get("/activities/{activity_id}/participants/{user_id}/attendance")
def participant_attendance(activity_id: str, user_id: str, day: Optional[int] = Query(None, ge=1)):
    activity, participants = load_snapshot(activity_id)
    participant = find_participant(participants, user_id)
    sessions = participant_sessions(activity, participant, day)
    return {
        "userId": participant.user_id,
        "name": participant.name,
        "sessions": [s.model_dump(mode="json", by_alias=True) for s in sessions],
        "checkInRate": compute_check_in_rate(activity, participant, day=day).model_dump(by_alias=True),
        "sessionRate": compute_session_rate(activity, participant, day=day).model_dump(by_alias=True),
        "fullSessionRate": compute_session_rate(activity, participant, day=day, rule=COMPLETED_IF_BOTH).model_dump(by_alias=True),
        "days": [d.model_dump(mode="json", by_alias=True) for d in day_breakdown(activity, participant)],
        "validation": classify_participant(activity, participant),
        "locations": [
            {"attendanceId": record.id, **validate_location(activity, record).model_dump(by_alias=True)}
            for record in participant.attendances
        ],
    }


@app.get("/activities/{activity_id}/participants/{user_id}/registered")
def participant_registered(
    activity_id: str,
    user_id: str,
    slot: str = Query(..., description="Slot name, e.g. 'Buổi Sáng'"),
    day: Optional[int] = Query(None, ge=1),
):
    activity, participants = load_snapshot(activity_id)
    participant = find_participant(participants, user_id)
    if activity.kind == "single_day":
        day = None
    return {"userId": participant.user_id, "day": day, "slot": slot,
            "registered": is_slot_registered(participant, day, slot)}


@app.get("/activities/{activity_id}/attendance/export")
def export_attendance(
    activity_id: str,
    user_ids: Optional[List[str]] = Query(None, alias="userId", description="Participants to export; all when omitted"),
    rule: CompletionRule = Query(COMPLETED_IF_BOTH, description="Completion rule for the rollup block"),
):
    activity, participants = load_snapshot(activity_id)
    if user_ids:
        wanted = set(user_ids)
        participants = [p for p in participants if p.user_id in wanted]
    if not participants:
        raise HTTPException(status_code=400, detail="No participants to export")
    return {
        "activityId": activity.id,
        "rows": build_export_rows(activity, participants),
        "sessionRate": compute_session_rate(activity, participants, rule=rule).model_dump(by_alias=True),
        "rollups": compute_activity_rollups(activity, participants).model_dump(by_alias=True),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
