"""
Attendance statistics schemas.
"""

from pydantic import Field

from attendease.models.enums import AttendanceStanding
from attendease.schemas.common.base import CamelSchema

__all__ = ["AttendanceStats"]


class AttendanceStats(CamelSchema):
    """Attendance of one student in one subject enrollment."""

    total_sessions: int = Field(..., ge=0, description="Sessions held for the enrollment")
    present: int = Field(..., ge=0, description="Records with status PRESENT")
    absent: int = Field(..., ge=0, description="Records with status ABSENT")
    late: int = Field(..., ge=0, description="Records with status LATE")
    excused: int = Field(..., ge=0, description="Records with status EXCUSED")
    attended: int = Field(..., ge=0, description="present + late + excused")
    percentage: float = Field(
        ...,
        ge=0,
        le=100,
        description="attended / total_sessions * 100, rounded half-up to 2 decimals",
    )
    status: AttendanceStanding = Field(..., description="GOOD, WARNING or CRITICAL")
