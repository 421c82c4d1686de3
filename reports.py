"""
Row data for the attendance export. One row per participant; the file format
itself belongs to the caller.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from aggregation import (
    COMPLETED_IF_BOTH,
    COMPLETED_IF_EITHER,
    compute_session_rate,
    day_breakdown,
    participant_sessions,
)
from config import Settings, settings as default_settings
from schemas import Activity, SlotStatus


def cell_code(status: SlotStatus) -> str:
    """Export cell for one check-in: approved ones show their timeliness"""
    if status.approval_status == "approved":
        return "late" if status.time_status == "late" else "on_time"
    if status.approval_status in ("rejected", "pending"):
        return status.approval_status
    return "absent"


def build_export_rows(activity: Activity, participants, now: Optional[datetime] = None,
                      settings: Settings = default_settings) -> List[Dict[str, Any]]:
    rows = []
    for index, participant in enumerate(participants, start=1):
        overall = compute_session_rate(activity, participant, rule=COMPLETED_IF_EITHER, now=now, settings=settings)
        row: Dict[str, Any] = {
            "index": index,
            "userId": participant.user_id,
            "name": participant.name,
            "email": participant.email,
            "role": participant.role,
            "percentage": overall.percentage,
            "completed": overall.completed,
            "total": overall.total,
        }
        if activity.kind == "single_day":
            for session in participant_sessions(activity, participant, now=now, settings=settings):
                row[f"{session.slot_name} - start"] = cell_code(session.start)
                row[f"{session.slot_name} - end"] = cell_code(session.end)
        else:
            for summary in day_breakdown(activity, participant, COMPLETED_IF_BOTH, now, settings):
                row[f"day {summary.day}"] = {
                    "date": summary.date,
                    "completed": summary.completed,
                    "total": summary.total,
                    "percentage": summary.percentage,
                }
        rows.append(row)
    return rows
