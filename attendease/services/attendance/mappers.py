"""
Model to schema conversions used by the attendance services.
"""

from typing import Optional

from attendease.models.academic import SubjectEnrollment
from attendease.models.attendance import AttendanceEdit, AttendanceRecord, AttendanceSession
from attendease.models.enums import AttendanceStatus
from attendease.models.user import Student
from attendease.schemas.attendance.record import AttendanceEditView, StudentRecordView
from attendease.schemas.attendance.session import SessionSummary


def record_view(record: AttendanceRecord) -> StudentRecordView:
    student = record.student
    return StudentRecordView(
        record_id=record.id,
        student_id=student.id,
        student_code=student.student_code,
        first_name=student.first_name,
        last_name=student.last_name,
        status=record.status,
        marked_at=record.marked_at,
        is_marked=True,
    )


def unmarked_view(student: Student) -> StudentRecordView:
    """Roster row for a student without a stored record, defaulting to PRESENT."""
    return StudentRecordView(
        record_id="",
        student_id=student.id,
        student_code=student.student_code,
        first_name=student.first_name,
        last_name=student.last_name,
        status=AttendanceStatus.PRESENT,
        marked_at=None,
        is_marked=False,
    )


def session_summary(
    session: AttendanceSession,
    record_count: int,
    enrollment: Optional[SubjectEnrollment] = None,
) -> SessionSummary:
    enrollment = enrollment or session.enrollment
    return SessionSummary(
        id=session.id,
        subject_enrollment_id=session.subject_enrollment_id,
        teacher_id=session.teacher_id,
        date=session.date,
        start_time=session.start_time,
        end_time=session.end_time,
        type=session.type,
        subject_code=enrollment.subject.code,
        subject_name=enrollment.subject.name,
        batch_code=enrollment.batch.code,
        record_count=record_count,
        created_at=session.created_at,
    )


def edit_view(edit: AttendanceEdit) -> AttendanceEditView:
    return AttendanceEditView.model_validate(edit)
