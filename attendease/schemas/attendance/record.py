"""
Attendance marking, correction and audit schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from attendease.models.enums import AttendanceStatus
from attendease.schemas.common.base import CamelSchema

__all__ = [
    "MarkEntry",
    "MarkAttendanceRequest",
    "RecordUpdateRequest",
    "StudentRecordView",
    "MarkResult",
    "AttendanceEditView",
    "RecordUpdateResult",
]


class MarkEntry(CamelSchema):
    """Status for one student in a bulk mark."""

    student_id: str = Field(..., min_length=1, description="Student profile id")
    status: AttendanceStatus = Field(..., description="Attendance status")


class MarkAttendanceRequest(CamelSchema):
    """Bulk mark payload; re-submitting the same payload is a no-op."""

    records: List[MarkEntry] = Field(..., min_length=1, description="Per-student statuses")


class RecordUpdateRequest(CamelSchema):
    """Correction of a single stored record."""

    status: AttendanceStatus = Field(..., description="New attendance status")
    reason: Optional[str] = Field(default=None, max_length=500, description="Why the record changed")


class StudentRecordView(CamelSchema):
    """
    A student's row in a session roster.

    ``record_id`` is an empty string for a roster row that has not been
    persisted yet.
    """

    record_id: str = Field(..., description="Record id, empty when not yet marked")
    student_id: str
    student_code: str
    first_name: str
    last_name: str
    status: AttendanceStatus
    marked_at: Optional[datetime] = None
    is_marked: bool = True


class MarkResult(CamelSchema):
    """Outcome of a bulk mark."""

    session_id: str
    marked_count: int = Field(..., description="Records written by this call")
    records: List[StudentRecordView] = Field(default_factory=list)


class AttendanceEditView(CamelSchema):
    """Audit entry for a record correction."""

    id: str
    record_id: str
    session_id: str
    edited_by: str
    old_status: AttendanceStatus
    new_status: AttendanceStatus
    reason: Optional[str] = None
    created_at: datetime


class RecordUpdateResult(CamelSchema):
    """Corrected record together with its audit entry."""

    record: StudentRecordView
    edit: AttendanceEditView
