from datetime import date

import pytest
from pydantic import ValidationError

from attendease.models.enums import AttendanceStatus, SessionType
from attendease.repositories.attendance.session_repository import AttendanceSessionRepository
from attendease.schemas.attendance.session import SessionCreate
from attendease.services.attendance import MarkingService, SessionService
from attendease.services.base import ErrorCode
from conftest import mark_request


def session_request(enrollment_id, session_date=date(2024, 9, 2), start="09:00", end="10:00"):
    return SessionCreate(
        subject_enrollment_id=enrollment_id,
        date=session_date,
        start_time=start,
        end_time=end,
    )


async def test_create_session(db, seed):
    result = await SessionService(db).create_session(
        seed.teacher_user_id, session_request(seed.enrollment_id)
    )

    assert result.is_success
    session = result.data
    assert session.subject_code == "CS101"
    assert session.batch_code == "CS-2024-A"
    assert session.teacher_id == seed.teacher_id
    assert session.type == SessionType.REGULAR
    assert session.record_count == 0
    assert result.metadata["session_id"] == session.id


async def test_create_session_accepts_camel_case_payload(seed):
    request = SessionCreate.model_validate(
        {
            "subjectEnrollmentId": seed.enrollment_id,
            "date": "2024-09-02",
            "startTime": "09:00",
            "endTime": "10:30",
            "type": "MAKEUP",
        }
    )

    assert request.start_time == "09:00"
    assert request.type == SessionType.MAKEUP


@pytest.mark.parametrize(
    "start, end",
    [("10:00", "09:00"), ("09:00", "09:00"), ("9:00", "10:00"), ("24:00", "25:00")],
)
def test_session_times_are_validated(start, end):
    with pytest.raises(ValidationError):
        session_request("enrollment-1", start=start, end=end)


async def test_session_loads_its_creating_teacher(session_factory, seed, create_session):
    session_id = await create_session()

    async with session_factory() as fresh:
        session = await AttendanceSessionRepository(fresh).get_by_id(session_id)

        assert session.teacher.id == seed.teacher_id
        assert session.teacher.employee_id == "E001"


async def test_duplicate_slot_is_rejected(db, seed, create_session):
    existing_id = await create_session()

    result = await SessionService(db).create_session(
        seed.teacher_user_id, session_request(seed.enrollment_id, end="11:00")
    )

    assert not result.is_success
    assert result.error.code == ErrorCode.BAD_REQUEST
    assert result.error.details == {"session_id": existing_id}


async def test_same_time_on_another_day_is_allowed(db, seed, create_session):
    await create_session()

    result = await SessionService(db).create_session(
        seed.teacher_user_id, session_request(seed.enrollment_id, session_date=date(2024, 9, 3))
    )

    assert result.is_success


async def test_create_for_enrollment_of_another_teacher_is_forbidden(db, seed):
    result = await SessionService(db).create_session(
        seed.teacher_user_id, session_request(seed.other_enrollment_id)
    )

    assert result.error.code == ErrorCode.FORBIDDEN
    assert result.error.message == "You are not assigned to teach this subject enrollment"


async def test_create_for_unknown_enrollment(db, seed):
    result = await SessionService(db).create_session(
        seed.teacher_user_id, session_request("missing")
    )

    assert result.error.code == ErrorCode.NOT_FOUND


async def test_caller_without_teacher_profile(db, seed):
    result = await SessionService(db).create_session(
        seed.admin_user_id, session_request(seed.enrollment_id)
    )

    assert result.error.code == ErrorCode.NOT_FOUND
    assert result.error.message == "Teacher profile not found"


async def test_create_session_notifies_enrollment_room(db, seed, fanout, transport):
    result = await SessionService(db, fanout=fanout).create_session(
        seed.teacher_user_id, session_request(seed.enrollment_id)
    )

    assert result.metadata["dispatch"].successful == 1
    [payload] = transport.events("session_created", room=f"enrollment:{seed.enrollment_id}")
    assert payload["sessionId"] == result.data.id
    assert payload["type"] == "SESSION_CREATED"
    assert payload["subjectCode"] == "CS101"


async def test_delete_unmarked_session(db, seed, create_session):
    session_id = await create_session()
    service = SessionService(db)

    result = await service.delete_session(seed.teacher_user_id, session_id)

    assert result.is_success
    missing = await service.get_session_by_id(session_id)
    assert missing.error.code == ErrorCode.NOT_FOUND


async def test_delete_marked_session_is_refused(db, seed, create_session):
    session_id = await create_session()
    marked = await MarkingService(db).mark_attendance(
        seed.teacher_user_id, session_id, mark_request({seed.x_id: AttendanceStatus.PRESENT})
    )
    assert marked.is_success

    result = await SessionService(db).delete_session(seed.teacher_user_id, session_id)

    assert result.error.code == ErrorCode.BAD_REQUEST
    assert result.error.message == "Cannot delete session with marked attendance. Edit records instead."
    assert result.error.details == {"record_count": 1}


async def test_delete_by_another_teacher_is_forbidden(db, seed, create_session):
    session_id = await create_session()

    result = await SessionService(db).delete_session(seed.other_teacher_user_id, session_id)

    assert result.error.code == ErrorCode.FORBIDDEN


async def test_session_detail_lists_records_by_roll_number(db, seed, create_session):
    session_id = await create_session()
    await MarkingService(db).mark_attendance(
        seed.teacher_user_id,
        session_id,
        mark_request({seed.y_id: AttendanceStatus.ABSENT, seed.x_id: AttendanceStatus.LATE}),
    )

    result = await SessionService(db).get_session_by_id(session_id, seed.teacher_user_id)

    detail = result.data
    assert detail.record_count == 2
    assert [record.student_code for record in detail.records] == ["CS24001", "CS24002"]
    assert [record.status for record in detail.records] == [AttendanceStatus.LATE, AttendanceStatus.ABSENT]


async def test_teacher_sessions_newest_first_with_limit(db, seed, create_session):
    await create_session(session_date=date(2024, 9, 2), start_time="09:00")
    await create_session(session_date=date(2024, 9, 2), start_time="14:00", end_time="15:00")
    await create_session(session_date=date(2024, 9, 3), start_time="08:00", end_time="09:00")
    await create_session(session_date=date(2024, 9, 1), enrollment_id=seed.empty_enrollment_id)

    result = await SessionService(db).get_teacher_sessions(seed.teacher_user_id)

    slots = [(session.date.isoformat(), session.start_time) for session in result.data]
    assert slots == [
        ("2024-09-03", "08:00"),
        ("2024-09-02", "14:00"),
        ("2024-09-02", "09:00"),
        ("2024-09-01", "09:00"),
    ]

    limited = await SessionService(db).get_teacher_sessions(seed.teacher_user_id, limit=2)
    assert len(limited.data) == 2
    assert limited.metadata["count"] == 2


async def test_other_teacher_sees_none_of_these_sessions(db, seed, create_session):
    await create_session()

    result = await SessionService(db).get_teacher_sessions(seed.other_teacher_user_id)

    assert result.is_success
    assert result.data == []


async def test_enrollment_sessions_carry_record_counts(db, seed, create_session):
    first = await create_session(session_date=date(2024, 9, 2))
    await create_session(session_date=date(2024, 9, 4))
    await MarkingService(db).mark_attendance(
        seed.teacher_user_id,
        first,
        mark_request({seed.x_id: AttendanceStatus.PRESENT, seed.y_id: AttendanceStatus.PRESENT}),
    )

    result = await SessionService(db).get_enrollment_sessions(seed.enrollment_id, seed.teacher_user_id)

    assert [session.record_count for session in result.data] == [0, 2]

    forbidden = await SessionService(db).get_enrollment_sessions(
        seed.enrollment_id, seed.other_teacher_user_id
    )
    assert forbidden.error.code == ErrorCode.FORBIDDEN
