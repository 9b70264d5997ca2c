"""
A record correction and its audit entry commit together or not at all.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.models import AttendanceEdit, AttendanceRecord
from attendease.models.enums import AttendanceStatus
from attendease.repositories.attendance.edit_repository import AttendanceEditRepository
from attendease.schemas.attendance.record import RecordUpdateRequest
from attendease.services.attendance import MarkingService
from attendease.services.base import ErrorCode
from conftest import mark_request


async def marked_record(session_factory, seed, create_session) -> str:
    session_id = await create_session()
    async with session_factory() as session:
        result = await MarkingService(session).mark_attendance(
            seed.teacher_user_id, session_id, mark_request({seed.x_id: AttendanceStatus.ABSENT})
        )
    return result.data.records[0].record_id


async def assert_untouched(session_factory, record_id: str) -> None:
    async with session_factory() as session:
        record = await session.get(AttendanceRecord, record_id)
        edits = (await session.execute(select(func.count(AttendanceEdit.id)))).scalar_one()

    assert record.status == AttendanceStatus.ABSENT
    assert edits == 0


async def test_failure_after_audit_insert_rolls_back_both(
    db, seed, create_session, session_factory, monkeypatch
):
    record_id = await marked_record(session_factory, seed, create_session)
    original = AttendanceEditRepository.record_edit

    async def insert_then_fail(self, **kwargs):
        await original(self, **kwargs)
        raise RuntimeError("audit write interrupted")

    monkeypatch.setattr(AttendanceEditRepository, "record_edit", insert_then_fail)

    result = await MarkingService(db).update_attendance_record(
        seed.teacher_user_id, record_id, RecordUpdateRequest(status=AttendanceStatus.PRESENT)
    )

    assert not result.is_success
    assert result.error.code == ErrorCode.INTERNAL_ERROR
    await assert_untouched(session_factory, record_id)


async def test_failed_status_write_discards_audit_entry(
    db, seed, create_session, session_factory, monkeypatch
):
    record_id = await marked_record(session_factory, seed, create_session)
    original_flush = AsyncSession.flush
    calls = []

    async def flush_failing_on_status_write(self, *args, **kwargs):
        if self is db:
            calls.append(1)
            if len(calls) == 2:
                raise RuntimeError("status write failed")
        return await original_flush(self, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, "flush", flush_failing_on_status_write)

    result = await MarkingService(db).update_attendance_record(
        seed.teacher_user_id, record_id, RecordUpdateRequest(status=AttendanceStatus.PRESENT)
    )

    assert not result.is_success
    assert len(calls) == 2
    await assert_untouched(session_factory, record_id)


async def test_successful_correction_commits_both(db, seed, create_session, session_factory):
    record_id = await marked_record(session_factory, seed, create_session)

    result = await MarkingService(db).update_attendance_record(
        seed.teacher_user_id,
        record_id,
        RecordUpdateRequest(status=AttendanceStatus.EXCUSED, reason="Sports meet"),
    )

    assert result.is_success
    async with session_factory() as session:
        record = await session.get(AttendanceRecord, record_id)
        edits = (await session.execute(select(AttendanceEdit))).scalars().all()

    assert record.status == AttendanceStatus.EXCUSED
    assert [(e.old_status, e.new_status, e.reason) for e in edits] == [
        (AttendanceStatus.ABSENT, AttendanceStatus.EXCUSED, "Sports meet")
    ]
