"""
Profile of the authenticated user, shaped by role.
"""

from typing import Union

from sqlalchemy.ext.asyncio import AsyncSession

from attendease.core.exceptions import BadRequestError, ResourceNotFoundError
from attendease.models.enums import UserRole
from attendease.models.user import User
from attendease.repositories.academic.enrollment_repository import SubjectEnrollmentRepository
from attendease.repositories.user.user_repository import UserRepository
from attendease.schemas.user.profile import (
    BatchInfo,
    StudentProfile,
    TeacherProfile,
    TeachingAssignment,
)
from attendease.services.base import BaseService, ServiceResult


class UserService(BaseService):

    def __init__(self, db_session: AsyncSession):
        super().__init__(db_session)
        self.users = UserRepository(db_session)
        self.enrollments = SubjectEnrollmentRepository(db_session)

    async def get_profile(self, user_id: str) -> ServiceResult[Union[StudentProfile, TeacherProfile]]:
        """
        Return the role-specific profile.

        Students get their batch; teachers get the enrollments they teach.
        Other roles have no profile.
        """
        operation = "get_profile"

        try:
            user = await self.users.get_with_profile(user_id)
            if user is None:
                return ServiceResult.not_found("User", user_id)

            if user.role == UserRole.STUDENT:
                profile = self._student_profile(user)
            elif user.role == UserRole.TEACHER:
                profile = await self._teacher_profile(user)
            else:
                raise BadRequestError(f"No profile for role {user.role.value}")

            return ServiceResult.success(profile)

        except Exception as e:
            return self._handle_exception(e, operation, user_id)

    @staticmethod
    def _student_profile(user: User) -> StudentProfile:
        student = user.student
        if student is None:
            raise ResourceNotFoundError("Student", message="Student profile not found")

        batch = student.batch
        return StudentProfile(
            user_id=user.id,
            email=user.email,
            student_id=student.id,
            student_code=student.student_code,
            first_name=student.first_name,
            last_name=student.last_name,
            phone=student.phone,
            batch=BatchInfo(id=batch.id, code=batch.code, name=batch.name) if batch else None,
        )

    async def _teacher_profile(self, user: User) -> TeacherProfile:
        teacher = user.teacher
        if teacher is None:
            raise ResourceNotFoundError("Teacher", message="Teacher profile not found")

        enrollments = await self.enrollments.list_by_teacher(teacher.id)
        return TeacherProfile(
            user_id=user.id,
            email=user.email,
            teacher_id=teacher.id,
            employee_id=teacher.employee_id,
            first_name=teacher.first_name,
            last_name=teacher.last_name,
            department=teacher.department,
            phone=teacher.phone,
            enrollments=[
                TeachingAssignment(
                    enrollment_id=enrollment.id,
                    subject_code=enrollment.subject.code,
                    subject_name=enrollment.subject.name,
                    batch_code=enrollment.batch.code,
                    semester=enrollment.semester,
                )
                for enrollment in enrollments
            ],
        )
