"""
Attendance report read paths for teacher and student dashboards.
"""

from fractions import Fraction
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from attendease.config.settings import settings
from attendease.core.exceptions import ResourceNotFoundError
from attendease.models.enums import AttendanceStanding
from attendease.models.user import Student
from attendease.repositories.academic.enrollment_repository import SubjectEnrollmentRepository
from attendease.repositories.attendance.record_repository import AttendanceRecordRepository
from attendease.repositories.attendance.session_repository import AttendanceSessionRepository
from attendease.repositories.user.user_repository import StudentRepository
from attendease.schemas.attendance.report import (
    EnrollmentOverview,
    EnrollmentSummary,
    LowAttendanceStudent,
    OverallAttendance,
    SessionAttendanceEntry,
    StudentAttendanceSummary,
    SubjectAttendance,
    SubjectAttendanceDetail,
    TeacherDashboard,
    TeacherDashboardTotals,
)
from attendease.schemas.attendance.stats import AttendanceStats
from attendease.services.attendance.mappers import session_summary
from attendease.services.attendance.ownership import OwnershipGuard
from attendease.services.attendance.statistics import classify, percentage_of, round_half_up
from attendease.services.attendance.statistics_service import StatisticsService
from attendease.services.base import BaseService, ServiceResult


class ReportService(BaseService):
    """Read-only aggregations; nothing here writes or notifies."""

    def __init__(self, db_session: AsyncSession):
        super().__init__(db_session)
        self.guard = OwnershipGuard(db_session)
        self.statistics = StatisticsService(db_session)
        self.enrollments = SubjectEnrollmentRepository(db_session)
        self.sessions = AttendanceSessionRepository(db_session)
        self.records = AttendanceRecordRepository(db_session)
        self.students = StudentRepository(db_session)

    async def _student_in_batch(self, student_user_id: str) -> Student:
        student = await self.students.get_by_user_id(student_user_id)
        if student is None:
            raise ResourceNotFoundError("Student", message="Student profile not found")
        if student.batch_id is None:
            raise ResourceNotFoundError("Batch", message="Student is not assigned to any batch")
        return student

    async def get_student_stats(
        self,
        student_id: str,
        enrollment_id: str,
        teacher_user_id: Optional[str] = None,
    ) -> ServiceResult[AttendanceStats]:
        """Statistics of one student in one enrollment; ownership checked when a teacher is given."""
        operation = "get_student_stats"

        try:
            if teacher_user_id is not None:
                _, enrollment = await self.guard.owned_enrollment(teacher_user_id, enrollment_id)
            else:
                enrollment = await self.enrollments.get_by_id(enrollment_id)
                if enrollment is None:
                    return ServiceResult.not_found("Subject enrollment", enrollment_id)

            stats = await self.statistics.compute_stats(student_id, enrollment.id)
            return ServiceResult.success(stats)

        except Exception as e:
            return self._handle_exception(e, operation, f"{student_id}/{enrollment_id}")

    async def get_enrollment_summary(
        self,
        enrollment_id: str,
        teacher_user_id: str,
    ) -> ServiceResult[EnrollmentSummary]:
        """
        Totals for one enrollment.

        ``average_attendance`` is attended records over
        ``sessions x students in the batch``, as a percentage.
        """
        operation = "get_enrollment_summary"

        try:
            _, enrollment = await self.guard.owned_enrollment(teacher_user_id, enrollment_id)

            total_sessions = await self.sessions.count_for_enrollment(enrollment.id)
            total_students = await self.students.count_in_batch(enrollment.batch_id)
            attended = await self.records.attended_count_for_enrollment(enrollment.id)

            summary = EnrollmentSummary(
                enrollment_id=enrollment.id,
                subject_code=enrollment.subject.code,
                subject_name=enrollment.subject.name,
                batch_code=enrollment.batch.code,
                total_sessions=total_sessions,
                total_students=total_students,
                average_attendance=percentage_of(attended, total_sessions * total_students),
                last_session_date=await self.sessions.last_session_date(enrollment.id),
            )
            return ServiceResult.success(summary)

        except Exception as e:
            return self._handle_exception(e, operation, enrollment_id)

    async def get_student_summary(
        self,
        student_user_id: str,
    ) -> ServiceResult[StudentAttendanceSummary]:
        """
        Per-subject statistics for every enrollment of the student's batch.

        The overall percentage is weighted by session count, not an average
        of the subject percentages.
        """
        operation = "get_student_summary"

        try:
            student = await self._student_in_batch(student_user_id)
            enrollments = await self.enrollments.list_by_batch(student.batch_id)

            subjects = []
            for enrollment in enrollments:
                stats = await self.statistics.compute_stats(student.id, enrollment.id)
                subjects.append(
                    SubjectAttendance(
                        enrollment_id=enrollment.id,
                        subject_code=enrollment.subject.code,
                        subject_name=enrollment.subject.name,
                        teacher_name=enrollment.teacher.full_name,
                        stats=stats,
                    )
                )

            total_sessions = sum(subject.stats.total_sessions for subject in subjects)
            total_attended = sum(subject.stats.attended for subject in subjects)
            percentage = percentage_of(total_attended, total_sessions)

            summary = StudentAttendanceSummary(
                student_id=student.id,
                batch_code=student.batch.code,
                subjects=subjects,
                overall=OverallAttendance(
                    total_sessions=total_sessions,
                    total_attended=total_attended,
                    percentage=percentage,
                    status=classify(percentage),
                ),
            )
            return ServiceResult.success(summary, metadata={"subject_count": len(subjects)})

        except Exception as e:
            return self._handle_exception(e, operation, student_user_id)

    async def get_my_attendance_by_subject_code(
        self,
        student_user_id: str,
        subject_code: str,
    ) -> ServiceResult[SubjectAttendanceDetail]:
        """Statistics and the most recent sessions of one subject, looked up by code."""
        operation = "get_my_attendance_by_subject_code"
        subject_code = subject_code.strip().upper()

        try:
            student = await self._student_in_batch(student_user_id)

            enrollment = await self.enrollments.find_by_batch_and_subject_code(
                student.batch_id, subject_code
            )
            if enrollment is None:
                raise ResourceNotFoundError(
                    "Subject enrollment",
                    subject_code,
                    message=f"Your batch is not enrolled in {subject_code}",
                )

            stats = await self.statistics.compute_stats(student.id, enrollment.id)

            sessions = await self.sessions.list_recent(
                enrollment.id, settings.RECENT_SESSIONS_LIMIT
            )
            records = await self.records.map_for_student(
                student.id, [session.id for session in sessions]
            )

            recent = []
            for session in sessions:
                record = records.get(session.id)
                recent.append(
                    SessionAttendanceEntry(
                        session_id=session.id,
                        date=session.date,
                        start_time=session.start_time,
                        end_time=session.end_time,
                        type=session.type,
                        status=record.status if record else None,
                        marked_at=record.marked_at if record else None,
                    )
                )

            detail = SubjectAttendanceDetail(
                enrollment_id=enrollment.id,
                subject_code=enrollment.subject.code,
                subject_name=enrollment.subject.name,
                batch_code=enrollment.batch.code,
                teacher_name=enrollment.teacher.full_name,
                stats=stats,
                recent_sessions=recent,
            )
            return ServiceResult.success(detail)

        except Exception as e:
            return self._handle_exception(e, operation, subject_code)

    async def get_teacher_dashboard(
        self,
        teacher_user_id: str,
    ) -> ServiceResult[TeacherDashboard]:
        """
        Overview of the teacher's ACTIVE enrollments.

        Each enrollment carries its batch size, sessions held, the average
        attendance over its most recent sessions and the last session date.
        Students below the good threshold in any of these enrollments are
        listed lowest percentage first.
        """
        operation = "get_teacher_dashboard"

        try:
            teacher = await self.guard.teacher_for_user(teacher_user_id)
            enrollments = await self.enrollments.list_active_by_teacher(teacher.id)

            overviews = []
            at_risk = []
            for enrollment in enrollments:
                recent = await self.sessions.list_recent(
                    enrollment.id, settings.DASHBOARD_AVERAGE_SESSIONS
                )
                attended, recorded = await self.records.attendance_totals_for_sessions(
                    [session.id for session in recent]
                )
                students = await self.students.list_by_batch(enrollment.batch_id)

                overviews.append(
                    EnrollmentOverview(
                        enrollment_id=enrollment.id,
                        subject_code=enrollment.subject.code,
                        subject_name=enrollment.subject.name,
                        batch_code=enrollment.batch.code,
                        batch_name=enrollment.batch.name,
                        student_count=len(students),
                        sessions_held=await self.sessions.count_for_enrollment(enrollment.id),
                        average_attendance=percentage_of(attended, recorded),
                        last_session_date=recent[0].date if recent else None,
                    )
                )

                for student in students:
                    stats = await self.statistics.compute_stats(student.id, enrollment.id)
                    if stats.total_sessions == 0 or stats.status == AttendanceStanding.GOOD:
                        continue
                    at_risk.append(
                        LowAttendanceStudent(
                            student_id=student.id,
                            student_code=student.student_code,
                            name=student.full_name,
                            batch_code=enrollment.batch.code,
                            subject_code=enrollment.subject.code,
                            percentage=stats.percentage,
                            status=stats.status,
                        )
                    )

            at_risk.sort(key=lambda entry: (entry.percentage, entry.student_code))

            rows = await self.sessions.list_with_record_counts(
                [enrollment.id for enrollment in enrollments],
                limit=settings.DASHBOARD_RECENT_SESSIONS,
            )

            totals = TeacherDashboardTotals(
                total_enrollments=len(overviews),
                total_students=sum(overview.student_count for overview in overviews),
                total_sessions=sum(overview.sessions_held for overview in overviews),
                average_attendance=(
                    round_half_up(
                        sum(Fraction(str(overview.average_attendance)) for overview in overviews)
                        / len(overviews)
                    )
                    if overviews
                    else 0.0
                ),
            )

            dashboard = TeacherDashboard(
                enrollments=overviews,
                totals=totals,
                recent_sessions=[session_summary(session, count) for session, count in rows],
                low_attendance_students=at_risk[: settings.DASHBOARD_LOW_ATTENDANCE_LIMIT],
            )
            return ServiceResult.success(dashboard, metadata={"enrollment_count": len(overviews)})

        except Exception as e:
            return self._handle_exception(e, operation, teacher_user_id)
