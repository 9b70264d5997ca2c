from attendease.schemas.attendance.stats import AttendanceStats
from attendease.schemas.attendance.record import (
    AttendanceEditView,
    MarkAttendanceRequest,
    MarkEntry,
    MarkResult,
    RecordUpdateRequest,
    RecordUpdateResult,
    StudentRecordView,
)
from attendease.schemas.attendance.session import SessionCreate, SessionDetail, SessionSummary

__all__ = [
    "AttendanceStats",
    "AttendanceEditView",
    "MarkAttendanceRequest",
    "MarkEntry",
    "MarkResult",
    "RecordUpdateRequest",
    "RecordUpdateResult",
    "StudentRecordView",
    "SessionCreate",
    "SessionDetail",
    "SessionSummary",
]
