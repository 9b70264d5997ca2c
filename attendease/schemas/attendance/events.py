"""
Real-time event payloads.

Each event serializes to camelCase with its ``type`` and an ISO
``timestamp``; the transport event name is the lowercase type.
"""

from datetime import date as date_type, datetime
from typing import Optional

from pydantic import Field

from attendease.models.base import utcnow
from attendease.models.enums import AttendanceStanding, AttendanceStatus, EventType
from attendease.schemas.attendance.stats import AttendanceStats
from attendease.schemas.common.base import CamelSchema

__all__ = [
    "RealtimeEvent",
    "SessionCreatedEvent",
    "AttendanceMarkedEvent",
    "LiveSessionStatusEvent",
    "AttendanceUpdatedEvent",
    "LowAttendanceAlertEvent",
    "AttendanceEditedEvent",
]


class RealtimeEvent(CamelSchema):
    """Common envelope fields."""

    type: EventType
    timestamp: datetime = Field(default_factory=utcnow)

    @property
    def event_name(self) -> str:
        return self.type.event_name


class SessionCreatedEvent(RealtimeEvent):
    type: EventType = EventType.SESSION_CREATED

    session_id: str
    subject_code: str
    subject_name: str
    batch_code: str
    date: date_type
    start_time: str
    end_time: str


class AttendanceMarkedEvent(RealtimeEvent):
    type: EventType = EventType.ATTENDANCE_MARKED

    session_id: str
    subject_code: str
    subject_name: str
    batch_code: str
    teacher_name: str
    date: date_type
    start_time: str
    end_time: str
    marked_count: int


class LiveSessionStatusEvent(RealtimeEvent):
    """Marking progress for the teacher's enrollment room."""

    type: EventType = EventType.LIVE_SESSION_STATUS

    session_id: str
    total_students: int
    marked_count: int
    present_count: int = Field(..., description="PRESENT + LATE")
    absent_count: int
    progress: float = Field(..., description="marked_count / total_students * 100")


class AttendanceUpdatedEvent(RealtimeEvent):
    type: EventType = EventType.ATTENDANCE_UPDATED

    subject_code: str
    subject_name: str
    new_percentage: float
    status: AttendanceStanding
    stats: AttendanceStats


class LowAttendanceAlertEvent(RealtimeEvent):
    type: EventType = EventType.LOW_ATTENDANCE_ALERT

    subject_code: str
    subject_name: str
    percentage: float
    sessions_needed: int
    status: AttendanceStanding
    message: str


class AttendanceEditedEvent(RealtimeEvent):
    type: EventType = EventType.ATTENDANCE_EDITED

    record_id: str
    session_id: str
    subject_code: str
    old_status: AttendanceStatus
    new_status: AttendanceStatus
    edited_by: str
    reason: Optional[str] = None
