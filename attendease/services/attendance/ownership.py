"""
Ownership checks shared by the attendance services.

A teacher owns an enrollment, and every session and record under it,
when ``enrollment.teacher_id`` is their teacher profile id.
"""

from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from attendease.core.exceptions import AuthorizationError, ResourceNotFoundError
from attendease.models.academic import SubjectEnrollment
from attendease.models.attendance import AttendanceRecord, AttendanceSession
from attendease.models.user import Teacher
from attendease.repositories.academic.enrollment_repository import SubjectEnrollmentRepository
from attendease.repositories.attendance.record_repository import AttendanceRecordRepository
from attendease.repositories.attendance.session_repository import AttendanceSessionRepository
from attendease.repositories.user.user_repository import TeacherRepository

NOT_ASSIGNED_MESSAGE = "You are not assigned to teach this subject enrollment"


class OwnershipGuard:
    """Resolves the calling teacher and the entity, raising on any mismatch."""

    def __init__(self, db_session: AsyncSession):
        self.teachers = TeacherRepository(db_session)
        self.enrollments = SubjectEnrollmentRepository(db_session)
        self.sessions = AttendanceSessionRepository(db_session)
        self.records = AttendanceRecordRepository(db_session)

    async def teacher_for_user(self, user_id: str) -> Teacher:
        teacher = await self.teachers.get_by_user_id(user_id)
        if teacher is None:
            raise ResourceNotFoundError("Teacher", message="Teacher profile not found")
        return teacher

    @staticmethod
    def ensure_owner(teacher: Teacher, enrollment: SubjectEnrollment) -> None:
        if enrollment.teacher_id != teacher.id:
            raise AuthorizationError(NOT_ASSIGNED_MESSAGE)

    async def owned_enrollment(
        self,
        user_id: str,
        enrollment_id: str,
    ) -> Tuple[Teacher, SubjectEnrollment]:
        teacher = await self.teacher_for_user(user_id)
        enrollment = await self.enrollments.get_by_id(enrollment_id)
        if enrollment is None:
            raise ResourceNotFoundError("Subject enrollment", enrollment_id)
        self.ensure_owner(teacher, enrollment)
        return teacher, enrollment

    async def owned_session(
        self,
        user_id: str,
        session_id: str,
    ) -> Tuple[Teacher, AttendanceSession]:
        teacher = await self.teacher_for_user(user_id)
        session = await self.sessions.get_by_id(session_id)
        if session is None:
            raise ResourceNotFoundError("Session", session_id)
        self.ensure_owner(teacher, session.enrollment)
        return teacher, session

    async def owned_record(
        self,
        user_id: str,
        record_id: str,
    ) -> Tuple[Teacher, AttendanceRecord]:
        teacher = await self.teacher_for_user(user_id)
        record = await self.records.get_by_id(record_id)
        if record is None:
            raise ResourceNotFoundError("Attendance record", record_id)
        self.ensure_owner(teacher, record.session.enrollment)
        return teacher, record
