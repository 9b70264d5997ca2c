"""
Notification fan-out run after attendance writes commit.

Every real-time publish, push and email goes through the best-effort
dispatcher, so a slow or failing channel is logged and recorded in the
returned ``DispatchResult`` without affecting the others or the write.
"""

from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendease.config.logging import get_logger
from attendease.config.settings import settings
from attendease.core.constants import PUSH_TYPE_LOW_ATTENDANCE
from attendease.models.academic import SubjectEnrollment
from attendease.models.enums import AttendanceStanding, AttendanceStatus
from attendease.models.user import Student
from attendease.repositories.attendance.edit_repository import AttendanceEditRepository
from attendease.repositories.attendance.record_repository import AttendanceRecordRepository
from attendease.repositories.attendance.session_repository import AttendanceSessionRepository
from attendease.repositories.user.user_repository import StudentRepository
from attendease.schemas.attendance.events import (
    AttendanceEditedEvent,
    AttendanceMarkedEvent,
    AttendanceUpdatedEvent,
    LiveSessionStatusEvent,
    LowAttendanceAlertEvent,
    RealtimeEvent,
    SessionCreatedEvent,
)
from attendease.schemas.attendance.stats import AttendanceStats
from attendease.services.attendance.statistics import percentage_of, sessions_needed
from attendease.services.attendance.statistics_service import StatisticsService
from attendease.services.base.dispatch import BestEffortDispatcher, DispatchResult
from attendease.services.notification.email_sender import EmailSender, EmailTemplateRenderer
from attendease.services.notification.push_sender import PushSender
from attendease.services.notification.realtime import RealtimeTransport, publish_event
from attendease.services.notification.rooms import batch_room, enrollment_room, user_room

logger = get_logger(__name__)

CHANNEL_REALTIME = "realtime"
CHANNEL_PUSH = "push"
CHANNEL_EMAIL = "email"
CHANNEL_FANOUT = "fanout"


def format_percentage(value: float) -> str:
    """50.0 -> "50", 66.67 -> "66.67"."""
    return f"{value:g}"


def alert_message(
    status: AttendanceStanding,
    percentage: float,
    subject_name: str,
    needed: int,
) -> str:
    if status == AttendanceStanding.CRITICAL:
        return (
            f"Critical: {format_percentage(percentage)}% attendance in {subject_name}. "
            f"Attend {needed} more classes!"
        )
    return (
        f"Warning: {format_percentage(percentage)}% attendance in {subject_name}. "
        f"Need {needed} more classes to reach "
        f"{format_percentage(settings.ATTENDANCE_GOOD_THRESHOLD)}%."
    )


def push_content(
    status: AttendanceStanding,
    percentage: float,
    subject_code: str,
    subject_name: str,
    needed: int,
) -> tuple:
    """Title and body of the low attendance push notification."""
    if status == AttendanceStanding.CRITICAL:
        title = f"Critical: {subject_code} Attendance"
        body = (
            f"Your {subject_name} attendance is {percentage:.1f}%. "
            f"Attend {needed} more classes urgently!"
        )
    else:
        title = f"Warning: {subject_code} Attendance"
        body = (
            f"Your {subject_name} attendance is {percentage:.1f}%. "
            f"Attend {needed} more classes to reach "
            f"{format_percentage(settings.ATTENDANCE_GOOD_THRESHOLD)}%."
        )
    return title, body


class FanoutService:
    """
    Publishes events and alerts for committed attendance changes.

    Each entry point opens its own database session from the factory, so it
    can run after the request that triggered it has finished. Entry points
    never raise.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        transport: RealtimeTransport,
        push_sender: PushSender,
        email_sender: EmailSender,
        dispatcher: Optional[BestEffortDispatcher] = None,
        renderer: Optional[EmailTemplateRenderer] = None,
    ):
        self.session_factory = session_factory
        self.transport = transport
        self.push_sender = push_sender
        self.email_sender = email_sender
        self.dispatcher = dispatcher or BestEffortDispatcher(settings.NOTIFICATION_CALL_TIMEOUT_SECONDS)
        self.renderer = renderer or EmailTemplateRenderer()

    # ==================== Entry points ====================

    async def session_created(self, session_id: str) -> DispatchResult:
        result = DispatchResult()
        try:
            async with self.session_factory() as db:
                session = await AttendanceSessionRepository(db).get_by_id(session_id)
                if session is None:
                    logger.warning(f"session_created fan-out skipped: session {session_id} not found")
                    return result

                enrollment = session.enrollment
                await self._publish(
                    result,
                    enrollment_room(enrollment.id),
                    SessionCreatedEvent(
                        session_id=session.id,
                        subject_code=enrollment.subject.code,
                        subject_name=enrollment.subject.name,
                        batch_code=enrollment.batch.code,
                        date=session.date,
                        start_time=session.start_time,
                        end_time=session.end_time,
                    ),
                )
        except Exception as e:
            logger.error(f"session_created fan-out failed for {session_id}: {e}", exc_info=True)
            result.record_failure(CHANNEL_FANOUT, session_id, str(e))

        return result

    async def attendance_marked(self, session_id: str, student_ids: Iterable[str]) -> DispatchResult:
        """
        Batch broadcast, live marking progress, then per-student updates and
        alerts for the students written by this mark.
        """
        result = DispatchResult()
        student_ids = list(student_ids)
        try:
            async with self.session_factory() as db:
                session = await AttendanceSessionRepository(db).get_by_id(session_id)
                if session is None:
                    logger.warning(f"attendance_marked fan-out skipped: session {session_id} not found")
                    return result

                enrollment = session.enrollment
                records_repo = AttendanceRecordRepository(db)
                records = await records_repo.list_for_session(session.id, student_ids)

                await self._publish(
                    result,
                    batch_room(enrollment.batch_id),
                    AttendanceMarkedEvent(
                        session_id=session.id,
                        subject_code=enrollment.subject.code,
                        subject_name=enrollment.subject.name,
                        batch_code=enrollment.batch.code,
                        teacher_name=enrollment.teacher.full_name,
                        date=session.date,
                        start_time=session.start_time,
                        end_time=session.end_time,
                        marked_count=len(records),
                    ),
                )

                total_students = await StudentRepository(db).count_in_batch(enrollment.batch_id)
                counts = await records_repo.status_counts_for_session(session.id)
                marked_count = sum(counts.values())
                await self._publish(
                    result,
                    enrollment_room(enrollment.id),
                    LiveSessionStatusEvent(
                        session_id=session.id,
                        total_students=total_students,
                        marked_count=marked_count,
                        present_count=counts.get(AttendanceStatus.PRESENT, 0)
                        + counts.get(AttendanceStatus.LATE, 0),
                        absent_count=counts.get(AttendanceStatus.ABSENT, 0),
                        progress=percentage_of(marked_count, total_students),
                    ),
                )

                statistics = StatisticsService(db)
                for record in records:
                    await self._notify_student(result, statistics, record.student, enrollment)

        except Exception as e:
            logger.error(f"attendance_marked fan-out failed for {session_id}: {e}", exc_info=True)
            result.record_failure(CHANNEL_FANOUT, session_id, str(e))

        logger.info(
            f"attendance_marked fan-out for {session_id}: "
            f"{result.successful}/{result.total} calls succeeded"
        )
        return result

    async def attendance_edited(self, edit_id: str) -> DispatchResult:
        result = DispatchResult()
        try:
            async with self.session_factory() as db:
                edit = await AttendanceEditRepository(db).get_by_id(edit_id)
                if edit is None:
                    logger.warning(f"attendance_edited fan-out skipped: edit {edit_id} not found")
                    return result

                record = await AttendanceRecordRepository(db).get_by_id(edit.record_id)
                enrollment = record.session.enrollment
                student = record.student

                await self._publish(
                    result,
                    user_room(student.user_id),
                    AttendanceEditedEvent(
                        record_id=record.id,
                        session_id=record.session_id,
                        subject_code=enrollment.subject.code,
                        old_status=edit.old_status,
                        new_status=edit.new_status,
                        edited_by=edit.edited_by,
                        reason=edit.reason,
                    ),
                )
                await self._notify_student(result, StatisticsService(db), student, enrollment)

        except Exception as e:
            logger.error(f"attendance_edited fan-out failed for edit {edit_id}: {e}", exc_info=True)
            result.record_failure(CHANNEL_FANOUT, edit_id, str(e))

        return result

    # ==================== Per-student steps ====================

    async def _notify_student(
        self,
        result: DispatchResult,
        statistics: StatisticsService,
        student: Student,
        enrollment: SubjectEnrollment,
    ) -> None:
        """Stats update for the student's room, plus alerts below the target."""
        room = user_room(student.user_id)
        try:
            stats = await statistics.compute_stats(student.id, enrollment.id)
        except Exception as e:
            logger.error(f"Stats computation failed for student {student.id}: {e}", exc_info=True)
            result.record_failure(CHANNEL_FANOUT, room, str(e))
            return

        subject = enrollment.subject
        await self._publish(
            result,
            room,
            AttendanceUpdatedEvent(
                subject_code=subject.code,
                subject_name=subject.name,
                new_percentage=stats.percentage,
                status=stats.status,
                stats=stats,
            ),
        )

        if stats.status == AttendanceStanding.GOOD:
            return

        needed = sessions_needed(stats)
        await self._publish(
            result,
            room,
            LowAttendanceAlertEvent(
                subject_code=subject.code,
                subject_name=subject.name,
                percentage=stats.percentage,
                sessions_needed=needed,
                status=stats.status,
                message=alert_message(stats.status, stats.percentage, subject.name, needed),
            ),
        )

        title, body = push_content(stats.status, stats.percentage, subject.code, subject.name, needed)
        await self.dispatcher.call(
            result,
            CHANNEL_PUSH,
            student.user_id,
            self.push_sender.send_push(
                student.user_id,
                title,
                body,
                {
                    "type": PUSH_TYPE_LOW_ATTENDANCE,
                    "subjectCode": subject.code,
                    "percentage": str(stats.percentage),
                    "status": stats.status.value,
                },
            ),
            accept=lambda push: push.delivered,
        )

        if stats.status == AttendanceStanding.CRITICAL:
            await self._send_alert_email(result, student, enrollment, stats, needed)

    async def _send_alert_email(
        self,
        result: DispatchResult,
        student: Student,
        enrollment: SubjectEnrollment,
        stats: AttendanceStats,
        needed: int,
    ) -> None:
        email = student.user.email
        try:
            html = self.renderer.render(
                "low_attendance",
                {
                    "app_name": settings.APP_NAME,
                    "status_label": "Critical",
                    "student_name": student.full_name,
                    "subject_code": enrollment.subject.code,
                    "subject_name": enrollment.subject.name,
                    "percentage": format_percentage(stats.percentage),
                    "sessions_needed": needed,
                    "target_percentage": format_percentage(settings.ATTENDANCE_GOOD_THRESHOLD),
                    "stats": stats,
                },
            )
        except Exception as e:
            logger.error(f"Email template rendering failed for {email}: {e}", exc_info=True)
            result.record_failure(CHANNEL_EMAIL, email, str(e))
            return

        await self.dispatcher.call(
            result,
            CHANNEL_EMAIL,
            email,
            self.email_sender.send_email(
                email,
                f"Critical Attendance Alert: {enrollment.subject.code}",
                html,
            ),
        )

    async def _publish(self, result: DispatchResult, room: str, event: RealtimeEvent) -> None:
        await self.dispatcher.call(
            result,
            CHANNEL_REALTIME,
            room,
            publish_event(self.transport, room, event),
        )
