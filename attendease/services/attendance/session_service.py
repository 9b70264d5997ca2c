"""
Session manager: create, delete and list attendance sessions.

Handles:
- Session creation with ownership and slot uniqueness checks
- Deletion guarded against sessions that already hold records
- Teacher and enrollment session listings
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from attendease.config.settings import settings
from attendease.core.exceptions import BadRequestError, DuplicateEntryError
from attendease.models.attendance import AttendanceSession
from attendease.repositories.academic.enrollment_repository import SubjectEnrollmentRepository
from attendease.repositories.attendance.record_repository import AttendanceRecordRepository
from attendease.repositories.attendance.session_repository import AttendanceSessionRepository
from attendease.schemas.attendance.session import SessionCreate, SessionDetail, SessionSummary
from attendease.services.attendance.mappers import record_view, session_summary
from attendease.services.attendance.ownership import OwnershipGuard
from attendease.services.base import BaseService, ServiceResult

if TYPE_CHECKING:
    from attendease.services.notification.fanout_service import FanoutService


class SessionService(BaseService):
    """
    Service for the lifecycle of attendance sessions.

    Responsibilities:
    - Create sessions for enrollments owned by the calling teacher
    - Delete sessions that have no records yet
    - List sessions per teacher and per enrollment
    """

    def __init__(self, db_session: AsyncSession, fanout: Optional["FanoutService"] = None):
        super().__init__(db_session)
        self.guard = OwnershipGuard(db_session)
        self.sessions = AttendanceSessionRepository(db_session)
        self.records = AttendanceRecordRepository(db_session)
        self.enrollments = SubjectEnrollmentRepository(db_session)
        self.fanout = fanout

    async def create_session(
        self,
        teacher_user_id: str,
        request: SessionCreate,
        notify: bool = True,
    ) -> ServiceResult[SessionSummary]:
        """
        Create a session for an enrollment the caller teaches.

        Args:
            teacher_user_id: User id of the calling teacher
            request: Enrollment, date, times and type
            notify: Publish SESSION_CREATED inline after commit

        Returns:
            ServiceResult with the created session
        """
        operation = "create_session"
        self._logger.info(
            f"{operation}: enrollment_id={request.subject_enrollment_id}, "
            f"date={request.date}, start_time={request.start_time}"
        )

        try:
            _, enrollment = await self.guard.owned_enrollment(
                teacher_user_id, request.subject_enrollment_id
            )

            existing = await self.sessions.find_by_slot(
                enrollment.id, request.date, request.start_time
            )
            if existing is not None:
                raise BadRequestError(
                    "Session already exists for this enrollment at the given date and time",
                    details={"session_id": existing.id},
                )

            async with self.transaction():
                try:
                    session = await self.sessions.create(
                        AttendanceSession(
                            subject_enrollment_id=enrollment.id,
                            teacher_id=enrollment.teacher_id,
                            date=request.date,
                            start_time=request.start_time,
                            end_time=request.end_time,
                            type=request.type,
                        )
                    )
                except DuplicateEntryError as e:
                    # Concurrent create won the unique (enrollment, date, start_time) slot
                    raise BadRequestError(
                        "Session already exists for this enrollment at the given date and time"
                    ) from e

            summary = session_summary(session, record_count=0, enrollment=enrollment)

            self._logger.info(f"{operation} successful: session_id={session.id}")

            result = ServiceResult.success(
                summary,
                message="Session created successfully",
                metadata={"session_id": session.id},
            )
            if notify and self.fanout is not None:
                result.add_metadata("dispatch", await self.fanout.session_created(session.id))
            return result

        except Exception as e:
            return self._handle_exception(e, operation, request.subject_enrollment_id)

    async def delete_session(
        self,
        teacher_user_id: str,
        session_id: str,
    ) -> ServiceResult[bool]:
        """Delete a session that has no attendance records."""
        operation = "delete_session"
        self._logger.info(f"{operation}: session_id={session_id}")

        try:
            _, session = await self.guard.owned_session(teacher_user_id, session_id)

            async with self.transaction():
                # Re-count inside the transaction so a concurrent mark is seen
                record_count = await self.records.count_for_session(session.id)
                if record_count > 0:
                    raise BadRequestError(
                        "Cannot delete session with marked attendance. Edit records instead.",
                        details={"record_count": record_count},
                    )
                await self.sessions.delete(session)

            self._logger.info(f"{operation} successful: session_id={session_id}")
            return ServiceResult.success(True, message="Session deleted successfully")

        except Exception as e:
            return self._handle_exception(e, operation, session_id)

    async def get_session_by_id(
        self,
        session_id: str,
        teacher_user_id: Optional[str] = None,
    ) -> ServiceResult[SessionDetail]:
        """Session with its records ordered by roll number; ownership checked when a caller is given."""
        operation = "get_session_by_id"

        try:
            if teacher_user_id is not None:
                _, session = await self.guard.owned_session(teacher_user_id, session_id)
            else:
                session = await self.sessions.get_by_id(session_id)
                if session is None:
                    return ServiceResult.not_found("Session", session_id)

            records = await self.records.list_for_session(session.id)
            detail = SessionDetail(
                **session_summary(session, len(records)).model_dump(),
                records=[record_view(record) for record in records],
            )
            return ServiceResult.success(detail)

        except Exception as e:
            return self._handle_exception(e, operation, session_id)

    async def get_teacher_sessions(
        self,
        teacher_user_id: str,
        limit: Optional[int] = None,
    ) -> ServiceResult[List[SessionSummary]]:
        """Most recent sessions across every enrollment the teacher owns."""
        operation = "get_teacher_sessions"
        limit = limit or settings.TEACHER_SESSIONS_LIMIT

        try:
            teacher = await self.guard.teacher_for_user(teacher_user_id)
            enrollments = await self.enrollments.list_by_teacher(teacher.id)
            rows = await self.sessions.list_with_record_counts(
                [enrollment.id for enrollment in enrollments],
                limit=limit,
            )
            return ServiceResult.success(
                [session_summary(session, count) for session, count in rows],
                metadata={"count": len(rows)},
            )

        except Exception as e:
            return self._handle_exception(e, operation, teacher_user_id)

    async def get_enrollment_sessions(
        self,
        enrollment_id: str,
        teacher_user_id: str,
    ) -> ServiceResult[List[SessionSummary]]:
        operation = "get_enrollment_sessions"

        try:
            _, enrollment = await self.guard.owned_enrollment(teacher_user_id, enrollment_id)
            rows = await self.sessions.list_with_record_counts([enrollment.id])
            return ServiceResult.success(
                [session_summary(session, count) for session, count in rows],
                metadata={"count": len(rows)},
            )

        except Exception as e:
            return self._handle_exception(e, operation, enrollment_id)
