"""
Attendance report schemas for teacher and student dashboards.
"""

from datetime import date as date_type, datetime
from typing import List, Optional

from pydantic import Field

from attendease.models.enums import AttendanceStanding, AttendanceStatus, SessionType
from attendease.schemas.attendance.session import SessionSummary
from attendease.schemas.attendance.stats import AttendanceStats
from attendease.schemas.common.base import CamelSchema

__all__ = [
    "EnrollmentSummary",
    "SubjectAttendance",
    "OverallAttendance",
    "StudentAttendanceSummary",
    "SessionAttendanceEntry",
    "SubjectAttendanceDetail",
    "EnrollmentOverview",
    "LowAttendanceStudent",
    "TeacherDashboardTotals",
    "TeacherDashboard",
]


class EnrollmentSummary(CamelSchema):
    """Teacher-facing totals for a subject enrollment."""

    enrollment_id: str
    subject_code: str
    subject_name: str
    batch_code: str
    total_sessions: int
    total_students: int
    average_attendance: float = Field(
        ...,
        description="Attended records / (sessions x students) x 100, rounded to 2 decimals",
    )
    last_session_date: Optional[date_type] = None


class SubjectAttendance(CamelSchema):
    """One subject line of a student's summary."""

    enrollment_id: str
    subject_code: str
    subject_name: str
    teacher_name: str
    stats: AttendanceStats


class OverallAttendance(CamelSchema):
    total_sessions: int
    total_attended: int
    percentage: float
    status: AttendanceStanding


class StudentAttendanceSummary(CamelSchema):
    """All subjects of the student's batch plus the combined figure."""

    student_id: str
    batch_code: str
    subjects: List[SubjectAttendance] = Field(default_factory=list)
    overall: OverallAttendance


class SessionAttendanceEntry(CamelSchema):
    """A session with this student's status (null when not marked)."""

    session_id: str
    date: date_type
    start_time: str
    end_time: str
    type: SessionType
    status: Optional[AttendanceStatus] = None
    marked_at: Optional[datetime] = None


class SubjectAttendanceDetail(CamelSchema):
    """Student view of one subject: stats plus recent sessions."""

    enrollment_id: str
    subject_code: str
    subject_name: str
    batch_code: str
    teacher_name: str
    stats: AttendanceStats
    recent_sessions: List[SessionAttendanceEntry] = Field(default_factory=list)


class EnrollmentOverview(CamelSchema):
    """One active enrollment on the teacher dashboard."""

    enrollment_id: str
    subject_code: str
    subject_name: str
    batch_code: str
    batch_name: str
    student_count: int
    sessions_held: int
    average_attendance: float = Field(
        ...,
        description="Attended / recorded over the most recent sessions, rounded to 2 decimals",
    )
    last_session_date: Optional[date_type] = None


class LowAttendanceStudent(CamelSchema):
    student_id: str
    student_code: str
    name: str
    batch_code: str
    subject_code: str
    percentage: float
    status: AttendanceStanding


class TeacherDashboardTotals(CamelSchema):
    total_enrollments: int = 0
    total_students: int = 0
    total_sessions: int = 0
    average_attendance: float = Field(
        default=0.0,
        description="Mean of the enrollment averages",
    )


class TeacherDashboard(CamelSchema):
    """Teacher landing page: active enrollments, totals and students at risk."""

    enrollments: List[EnrollmentOverview] = Field(default_factory=list)
    totals: TeacherDashboardTotals
    recent_sessions: List[SessionSummary] = Field(default_factory=list)
    low_attendance_students: List[LowAttendanceStudent] = Field(default_factory=list)
