"""
Conversion of raw MongoDB documents into snapshot models.

Ids arrive as ObjectId, as plain strings, or as populated objects carrying an
`_id`; everything past this module only sees canonical id strings.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from schemas import Activity, AttendanceRecord, Participant

logger = logging.getLogger(__name__)

CHECK_IN_TYPES = ("start", "end")
APPROVAL_STATUSES = ("pending", "approved", "rejected")
SLOT_KEYS = ("morning", "afternoon", "evening")


def normalize_user_id(raw) -> str:
    if raw is None:
        return ""
    if isinstance(raw, dict):
        inner = raw.get("_id", raw.get("id"))
        return normalize_user_id(inner) if inner is not None else ""
    return str(raw)


def _clean_id(doc: Dict[str, Any]) -> Dict[str, Any]:
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    return d


def activity_from_document(doc: Dict[str, Any]) -> Activity:
    """Activity snapshot without participants (see participants_from_documents)"""
    d = _clean_id(doc)
    d.pop("participants", None)
    d["timeSlots"] = [s for s in d.get("timeSlots") or [] if isinstance(s, dict)]
    d["schedule"] = [s for s in d.get("schedule") or [] if isinstance(s, dict)]
    return Activity.model_validate(d)


def attendance_from_document(raw: Dict[str, Any]) -> Optional[AttendanceRecord]:
    d = _clean_id(raw)
    if d.get("checkInType") not in CHECK_IN_TYPES:
        d["checkInType"] = "start"
    if d.get("status") not in APPROVAL_STATUSES:
        d["status"] = "pending"
    if not isinstance(d.get("timeSlot"), str):
        d["timeSlot"] = ""
    verified_by = d.get("verifiedBy")
    d["verifiedBy"] = normalize_user_id(verified_by) or None
    try:
        return AttendanceRecord.model_validate(d)
    except ValidationError as e:
        logger.warning("Skipping unreadable attendance record %s: %s", d.get("id"), e.error_count())
        return None


def _registered_day_slots(raw) -> Optional[List[Dict[str, Any]]]:
    if raw is None:
        return None
    entries = []
    for entry in raw:
        try:
            day = int(entry.get("day"))
        except (AttributeError, TypeError, ValueError):
            logger.debug("Dropping registration entry without a day: %r", entry)
            continue
        if entry.get("slot") in SLOT_KEYS:
            entries.append({"day": day, "slot": entry["slot"]})
    return entries


def participant_from_document(raw: Dict[str, Any], attendances: Iterable[AttendanceRecord] = ()) -> Optional[Participant]:
    user = raw.get("userId")
    populated = user if isinstance(user, dict) else {}
    data = {
        "userId": normalize_user_id(user),
        "name": populated.get("name") or raw.get("name") or "N/A",
        "email": populated.get("email") or raw.get("email") or None,
        "role": raw.get("role") or "Người Tham Gia",
        "joinedAt": raw.get("joinedAt"),
        "approvalStatus": raw.get("approvalStatus") or "approved",
        "registeredDaySlots": _registered_day_slots(raw.get("registeredDaySlots")),
        "attendances": list(attendances),
    }
    try:
        return Participant.model_validate(data)
    except ValidationError as e:
        if any(err["loc"][:1] == ("email",) for err in e.errors()):
            logger.debug("Ignoring invalid email of participant %s", data["userId"])
            data["email"] = None
            try:
                return Participant.model_validate(data)
            except ValidationError as retry_error:
                e = retry_error
        logger.warning("Skipping unreadable participant %s: %s", data["userId"], e.error_count())
        return None


def participants_from_documents(activity_doc: Dict[str, Any], attendance_docs: Iterable[Dict[str, Any]]) -> List[Participant]:
    """
    Participants of an activity, each with the attendance records stored for
    them. Records are kept in stored order.
    """
    by_user: Dict[str, List[AttendanceRecord]] = {}
    for doc in attendance_docs:
        user_id = normalize_user_id(doc.get("userId"))
        records = by_user.setdefault(user_id, [])
        for raw in doc.get("attendances") or []:
            record = attendance_from_document(raw)
            if record is not None:
                records.append(record)

    participants = []
    for raw in activity_doc.get("participants") or []:
        user_id = normalize_user_id(raw.get("userId"))
        participant = participant_from_document(raw, by_user.get(user_id, []))
        if participant is not None:
            participants.append(participant)
    return participants
