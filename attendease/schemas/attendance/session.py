"""
Attendance session request and response schemas.
"""

from datetime import date as date_type, datetime
from typing import List, Optional

from pydantic import Field, model_validator

from attendease.core.constants import TIME_PATTERN
from attendease.models.enums import SessionType
from attendease.schemas.attendance.record import StudentRecordView
from attendease.schemas.common.base import CamelSchema

__all__ = [
    "SessionCreate",
    "SessionSummary",
    "SessionDetail",
]


class SessionCreate(CamelSchema):
    """Create a class session for a subject enrollment."""

    subject_enrollment_id: str = Field(..., description="Subject enrollment the session belongs to")
    date: date_type = Field(..., description="Calendar date of the session")
    start_time: str = Field(..., pattern=TIME_PATTERN, description="Start time (HH:MM)")
    end_time: str = Field(..., pattern=TIME_PATTERN, description="End time (HH:MM)")
    type: SessionType = Field(default=SessionType.REGULAR, description="Session type")

    @model_validator(mode="after")
    def validate_time_range(self) -> "SessionCreate":
        # Zero-padded HH:MM strings compare chronologically
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SessionSummary(CamelSchema):
    """Session list item with subject and batch labels."""

    id: str
    subject_enrollment_id: str
    teacher_id: str
    date: date_type
    start_time: str
    end_time: str
    type: SessionType
    subject_code: str
    subject_name: str
    batch_code: str
    record_count: int = Field(default=0, description="Stored attendance records")
    created_at: Optional[datetime] = None


class SessionDetail(SessionSummary):
    """Session with its stored records."""

    records: List[StudentRecordView] = Field(default_factory=list)
