from datetime import date

from sqlalchemy import update

from attendease.config.settings import settings
from attendease.models import SubjectEnrollment
from attendease.models.enums import AttendanceStanding, AttendanceStatus, EnrollmentStatus
from attendease.schemas.attendance.session import SessionCreate
from attendease.services.attendance import MarkingService, ReportService, SessionService
from attendease.services.base import ErrorCode
from conftest import mark_request

P = AttendanceStatus.PRESENT
A = AttendanceStatus.ABSENT
L = AttendanceStatus.LATE


async def mark(session_factory, teacher_user_id, session_id, statuses):
    async with session_factory() as session:
        result = await MarkingService(session).mark_attendance(
            teacher_user_id, session_id, mark_request(statuses)
        )
    assert result.is_success, result.error


async def test_student_stats_count_unmarked_sessions(db, seed, create_session, session_factory):
    first = await create_session(session_date=date(2024, 9, 2))
    await create_session(session_date=date(2024, 9, 3))
    await mark(session_factory, seed.teacher_user_id, first, {seed.x_id: L})

    result = await ReportService(db).get_student_stats(seed.x_id, seed.enrollment_id)

    stats = result.data
    assert (stats.total_sessions, stats.late, stats.absent, stats.attended) == (2, 1, 0, 1)
    assert stats.percentage == 50.0
    assert stats.status == AttendanceStanding.CRITICAL


async def test_student_stats_without_sessions(db, seed):
    result = await ReportService(db).get_student_stats(seed.x_id, seed.enrollment_id)

    assert result.data.total_sessions == 0
    assert result.data.percentage == 0.0


async def test_student_stats_ownership(db, seed):
    service = ReportService(db)

    forbidden = await service.get_student_stats(seed.x_id, seed.other_enrollment_id, seed.teacher_user_id)
    missing = await service.get_student_stats(seed.x_id, "missing")

    assert forbidden.error.code == ErrorCode.FORBIDDEN
    assert missing.error.code == ErrorCode.NOT_FOUND


async def test_enrollment_summary(db, seed, create_session, session_factory):
    first = await create_session(session_date=date(2024, 9, 2))
    second = await create_session(session_date=date(2024, 9, 5))
    await mark(session_factory, seed.teacher_user_id, first, {seed.x_id: P, seed.y_id: A})
    await mark(session_factory, seed.teacher_user_id, second, {seed.x_id: P, seed.y_id: L})

    result = await ReportService(db).get_enrollment_summary(seed.enrollment_id, seed.teacher_user_id)

    summary = result.data
    assert summary.subject_code == "CS101"
    assert summary.batch_code == "CS-2024-A"
    assert (summary.total_sessions, summary.total_students) == (2, 2)
    assert summary.average_attendance == 75.0
    assert summary.last_session_date == date(2024, 9, 5)


async def test_enrollment_summary_of_empty_batch(db, seed):
    result = await ReportService(db).get_enrollment_summary(seed.empty_enrollment_id, seed.teacher_user_id)

    assert result.data.total_students == 0
    assert result.data.average_attendance == 0.0
    assert result.data.last_session_date is None


async def test_student_summary_is_weighted_by_sessions(db, seed, create_session, session_factory):
    # CS101: 1 of 1 attended. MA101: 1 of 3 attended.
    cs = await create_session(session_date=date(2024, 9, 2))
    await mark(session_factory, seed.teacher_user_id, cs, {seed.x_id: P})

    async with session_factory() as session:
        ma_ids = []
        for day in (2, 3, 4):
            created = await SessionService(session).create_session(
                seed.other_teacher_user_id,
                SessionCreate(
                    subject_enrollment_id=seed.other_enrollment_id,
                    date=date(2024, 9, day),
                    start_time="11:00",
                    end_time="12:00",
                ),
            )
            ma_ids.append(created.data.id)
    for session_id, status in zip(ma_ids, (P, A, A)):
        await mark(session_factory, seed.other_teacher_user_id, session_id, {seed.x_id: status})

    result = await ReportService(db).get_student_summary(seed.x_user_id)

    summary = result.data
    assert [subject.subject_code for subject in summary.subjects] == ["CS101", "MA101"]
    assert [subject.stats.percentage for subject in summary.subjects] == [100.0, 33.33]
    assert summary.subjects[1].teacher_name == "Alan Turing"
    assert summary.overall.total_sessions == 4
    assert summary.overall.total_attended == 2
    assert summary.overall.percentage == 50.0
    assert summary.overall.status == AttendanceStanding.CRITICAL
    assert result.metadata["subject_count"] == 2


async def test_student_summary_requires_batch(db, seed):
    service = ReportService(db)

    no_batch = await service.get_student_summary(seed.w_user_id)
    not_student = await service.get_student_summary(seed.teacher_user_id)

    assert no_batch.error.code == ErrorCode.NOT_FOUND
    assert no_batch.error.message == "Student is not assigned to any batch"
    assert not_student.error.message == "Student profile not found"


async def test_subject_detail_by_code(db, seed, create_session, session_factory):
    first = await create_session(session_date=date(2024, 9, 2))
    second = await create_session(session_date=date(2024, 9, 3))
    await mark(session_factory, seed.teacher_user_id, first, {seed.x_id: A})

    result = await ReportService(db).get_my_attendance_by_subject_code(seed.x_user_id, " cs101 ")

    detail = result.data
    assert detail.subject_code == "CS101"
    assert detail.teacher_name == "Ada Lovelace"
    assert [entry.session_id for entry in detail.recent_sessions] == [second, first]
    assert detail.recent_sessions[0].status is None
    assert detail.recent_sessions[0].marked_at is None
    assert detail.recent_sessions[1].status == A
    assert detail.recent_sessions[1].marked_at is not None


async def test_subject_detail_limits_recent_sessions(db, seed, create_session):
    for day in range(1, settings.RECENT_SESSIONS_LIMIT + 3):
        await create_session(session_date=date(2024, 10, day))

    result = await ReportService(db).get_my_attendance_by_subject_code(seed.x_user_id, "CS101")

    assert len(result.data.recent_sessions) == settings.RECENT_SESSIONS_LIMIT
    assert result.data.stats.total_sessions == settings.RECENT_SESSIONS_LIMIT + 2


async def test_subject_detail_for_subject_outside_batch(db, seed):
    result = await ReportService(db).get_my_attendance_by_subject_code(seed.x_user_id, "PH101")

    assert result.error.code == ErrorCode.NOT_FOUND
    assert result.error.message == "Your batch is not enrolled in PH101"


async def test_teacher_dashboard(db, seed, create_session, session_factory):
    first = await create_session(session_date=date(2024, 9, 2))
    second = await create_session(session_date=date(2024, 9, 3))
    await mark(session_factory, seed.teacher_user_id, first, {seed.x_id: P, seed.y_id: A})
    await mark(session_factory, seed.teacher_user_id, second, {seed.x_id: P, seed.y_id: P})

    result = await ReportService(db).get_teacher_dashboard(seed.teacher_user_id)

    assert result.is_success
    dashboard = result.data
    batch_a, batch_c = dashboard.enrollments
    assert batch_a.enrollment_id == seed.enrollment_id
    assert (batch_a.student_count, batch_a.sessions_held) == (2, 2)
    assert batch_a.average_attendance == 75.0
    assert batch_a.last_session_date == date(2024, 9, 3)
    assert batch_c.enrollment_id == seed.empty_enrollment_id
    assert (batch_c.student_count, batch_c.sessions_held, batch_c.average_attendance) == (0, 0, 0.0)
    assert batch_c.last_session_date is None

    totals = dashboard.totals
    assert (totals.total_enrollments, totals.total_students, totals.total_sessions) == (2, 2, 2)
    assert totals.average_attendance == 37.5

    assert [session.id for session in dashboard.recent_sessions] == [second, first]
    assert [session.record_count for session in dashboard.recent_sessions] == [2, 2]

    [at_risk] = dashboard.low_attendance_students
    assert at_risk.student_id == seed.y_id
    assert at_risk.name == "Yuri Chen"
    assert at_risk.percentage == 50.0
    assert at_risk.status == AttendanceStanding.CRITICAL


async def test_teacher_dashboard_skips_inactive_enrollments(db, seed, create_session):
    await create_session()
    async with db.begin():
        await db.execute(
            update(SubjectEnrollment)
            .where(SubjectEnrollment.id == seed.empty_enrollment_id)
            .values(status=EnrollmentStatus.DROPPED)
        )

    result = await ReportService(db).get_teacher_dashboard(seed.teacher_user_id)

    assert [e.enrollment_id for e in result.data.enrollments] == [seed.enrollment_id]
    assert result.data.totals.total_enrollments == 1
    assert [s.student_id for s in result.data.low_attendance_students] == [seed.x_id, seed.y_id]


async def test_teacher_dashboard_requires_teacher_profile(db, seed):
    result = await ReportService(db).get_teacher_dashboard(seed.admin_user_id)

    assert result.error.code == ErrorCode.NOT_FOUND
    assert result.error.message == "Teacher profile not found"
