import asyncio
from datetime import date

from attendease.models.enums import AttendanceStanding, AttendanceStatus
from attendease.schemas.attendance.record import RecordUpdateRequest
from attendease.services.attendance import MarkingService
from attendease.services.base import BestEffortDispatcher
from attendease.services.notification.fanout_service import (
    CHANNEL_EMAIL,
    CHANNEL_PUSH,
    CHANNEL_REALTIME,
    FanoutService,
    alert_message,
    format_percentage,
    push_content,
)
from attendease.services.notification.push_sender import PushResult
from conftest import RecordingEmailSender, RecordingPushSender, mark_request

P = AttendanceStatus.PRESENT
A = AttendanceStatus.ABSENT


class FailingTransport:
    async def publish(self, room, event_type, payload):
        raise ConnectionError("redis unavailable")


class FailingEmailSender:
    async def send_email(self, to, subject, html):
        raise RuntimeError("smtp refused")


class RejectedPushSender:
    async def send_push(self, user_id, title, body, data=None):
        return PushResult(sent=0, failed=2)


class SlowEmailSender:
    async def send_email(self, to, subject, html):
        await asyncio.sleep(5)


async def mark(session_factory, seed, session_id, statuses):
    async with session_factory() as session:
        result = await MarkingService(session).mark_attendance(
            seed.teacher_user_id, session_id, mark_request(statuses)
        )
    assert result.is_success, result.error
    return result


def test_alert_texts():
    assert format_percentage(50.0) == "50"
    assert format_percentage(66.67) == "66.67"
    assert alert_message(AttendanceStanding.CRITICAL, 50.0, "Data Structures", 2) == (
        "Critical: 50% attendance in Data Structures. Attend 2 more classes!"
    )
    assert alert_message(AttendanceStanding.WARNING, 66.67, "Data Structures", 1) == (
        "Warning: 66.67% attendance in Data Structures. Need 1 more classes to reach 75%."
    )
    assert push_content(AttendanceStanding.CRITICAL, 50.0, "CS101", "Data Structures", 2) == (
        "Critical: CS101 Attendance",
        "Your Data Structures attendance is 50.0%. Attend 2 more classes urgently!",
    )


async def test_marked_fanout_end_to_end(
    seed, create_session, session_factory, fanout, transport, push_sender, email_sender
):
    first = await create_session(session_date=date(2024, 9, 2))
    await mark(session_factory, seed, first, {seed.x_id: P, seed.y_id: P})

    result = await fanout.attendance_marked(first, [seed.x_id, seed.y_id])

    assert result.failed == 0
    [marked] = transport.events("attendance_marked", room=f"batch:{seed.batch_a_id}")
    assert marked["markedCount"] == 2
    assert marked["teacherName"] == "Ada Lovelace"
    [updated] = transport.events("attendance_updated", room=f"user:{seed.x_user_id}")
    assert updated["newPercentage"] == 100.0
    assert updated["status"] == "GOOD"
    assert transport.events("low_attendance_alert") == []
    assert push_sender.sent == []

    transport.published.clear()
    second = await create_session(session_date=date(2024, 9, 3))
    await mark(session_factory, seed, second, {seed.x_id: A, seed.y_id: P})

    result = await fanout.attendance_marked(second, [seed.x_id, seed.y_id])

    assert result.failed == 0
    [live] = transport.events("live_session_status", room=f"enrollment:{seed.enrollment_id}")
    assert live == {
        **live,
        "sessionId": second,
        "totalStudents": 2,
        "markedCount": 2,
        "presentCount": 1,
        "absentCount": 1,
        "progress": 100.0,
    }

    [updated] = transport.events("attendance_updated", room=f"user:{seed.x_user_id}")
    assert updated["newPercentage"] == 50.0
    assert updated["status"] == "CRITICAL"
    assert updated["stats"]["totalSessions"] == 2

    [alert] = transport.events("low_attendance_alert", room=f"user:{seed.x_user_id}")
    assert alert["sessionsNeeded"] == 2
    assert alert["message"] == "Critical: 50% attendance in Data Structures. Attend 2 more classes!"

    [push] = push_sender.sent
    assert push["user_id"] == seed.x_user_id
    assert push["title"] == "Critical: CS101 Attendance"
    assert push["data"] == {
        "type": "LOW_ATTENDANCE",
        "subjectCode": "CS101",
        "percentage": "50.0",
        "status": "CRITICAL",
    }

    [email] = email_sender.sent
    assert email["to"] == seed.x_email
    assert email["subject"] == "Critical Attendance Alert: CS101"
    assert "Critical Attendance Alert: CS101" in email["html"]
    assert "Xena Park" in email["html"]


async def test_warning_sends_push_without_email(
    seed, create_session, session_factory, fanout, transport, push_sender, email_sender
):
    for day, status in ((2, P), (3, P), (4, A)):
        session_id = await create_session(session_date=date(2024, 9, day))
        await mark(session_factory, seed, session_id, {seed.x_id: status})

    result = await fanout.attendance_marked(session_id, [seed.x_id])

    assert result.failed == 0
    [alert] = transport.events("low_attendance_alert")
    assert alert["status"] == "WARNING"
    assert alert["percentage"] == 66.67
    assert alert["message"] == "Warning: 66.67% attendance in Data Structures. Need 1 more classes to reach 75%."
    assert [push["title"] for push in push_sender.sent] == ["Warning: CS101 Attendance"]
    assert email_sender.sent == []


async def test_failing_transport_does_not_stop_push_and_email(
    seed, create_session, session_factory
):
    push_sender = RecordingPushSender()
    email_sender = RecordingEmailSender()
    fanout = FanoutService(
        session_factory,
        FailingTransport(),
        push_sender,
        email_sender,
        dispatcher=BestEffortDispatcher(timeout=1.0),
    )
    session_id = await create_session()
    await mark(session_factory, seed, session_id, {seed.x_id: A})

    result = await fanout.attendance_marked(session_id, [seed.x_id])

    realtime = result.for_channel(CHANNEL_REALTIME)
    assert realtime and all(not call.dispatched for call in realtime)
    assert all("ConnectionError" in call.error for call in realtime)
    assert len(push_sender.sent) == 1
    assert len(email_sender.sent) == 1
    assert result.successful == 2


async def test_failing_email_is_recorded(seed, create_session, session_factory, transport, push_sender):
    fanout = FanoutService(
        session_factory,
        transport,
        push_sender,
        FailingEmailSender(),
        dispatcher=BestEffortDispatcher(timeout=1.0),
    )
    session_id = await create_session()
    await mark(session_factory, seed, session_id, {seed.x_id: A})

    result = await fanout.attendance_marked(session_id, [seed.x_id])

    [email_call] = result.for_channel(CHANNEL_EMAIL)
    assert not email_call.dispatched
    assert "smtp refused" in email_call.error
    assert result.for_channel(CHANNEL_PUSH)[0].dispatched
    assert transport.events("low_attendance_alert")


async def test_slow_email_times_out(seed, create_session, session_factory, transport, push_sender):
    fanout = FanoutService(
        session_factory,
        transport,
        push_sender,
        SlowEmailSender(),
        dispatcher=BestEffortDispatcher(timeout=0.05),
    )
    session_id = await create_session()
    await mark(session_factory, seed, session_id, {seed.x_id: A})

    result = await fanout.attendance_marked(session_id, [seed.x_id])

    [email_call] = result.for_channel(CHANNEL_EMAIL)
    assert email_call.error.startswith("timeout")
    assert result.failed == 1


async def test_push_rejected_by_every_device_is_recorded_as_failed(
    seed, create_session, session_factory, transport, email_sender
):
    fanout = FanoutService(
        session_factory,
        transport,
        RejectedPushSender(),
        email_sender,
        dispatcher=BestEffortDispatcher(timeout=1.0),
    )
    session_id = await create_session()
    await mark(session_factory, seed, session_id, {seed.x_id: A})

    result = await fanout.attendance_marked(session_id, [seed.x_id])

    [push_call] = result.for_channel(CHANNEL_PUSH)
    assert not push_call.dispatched
    assert push_call.value == PushResult(sent=0, failed=2)
    assert result.failed == 1
    assert len(email_sender.sent) == 1


async def test_only_students_in_this_mark_are_notified(
    seed, create_session, session_factory, fanout, transport
):
    session_id = await create_session()
    await mark(session_factory, seed, session_id, {seed.x_id: P, seed.y_id: P})

    await fanout.attendance_marked(session_id, [seed.y_id])

    rooms = [room for room, event, _ in transport.published if event == "attendance_updated"]
    assert rooms == [f"user:{seed.y_user_id}"]
    [marked] = transport.events("attendance_marked")
    assert marked["markedCount"] == 1


async def test_edit_fanout(seed, create_session, session_factory, fanout, transport, push_sender):
    session_id = await create_session()
    marked = await mark(session_factory, seed, session_id, {seed.x_id: P})
    async with session_factory() as session:
        update = await MarkingService(session).update_attendance_record(
            seed.teacher_user_id,
            marked.data.records[0].record_id,
            RecordUpdateRequest(status=A, reason="Left early"),
            notify=False,
        )

    result = await fanout.attendance_edited(update.metadata["edit_id"])

    assert result.failed == 0
    [edited] = transport.events("attendance_edited", room=f"user:{seed.x_user_id}")
    assert edited["oldStatus"] == "PRESENT"
    assert edited["newStatus"] == "ABSENT"
    assert edited["editedBy"] == seed.teacher_user_id
    assert edited["reason"] == "Left early"
    [updated] = transport.events("attendance_updated", room=f"user:{seed.x_user_id}")
    assert updated["status"] == "CRITICAL"
    assert len(push_sender.sent) == 1


async def test_session_created_fanout(seed, create_session, fanout, transport):
    session_id = await create_session()

    result = await fanout.session_created(session_id)

    assert result.successful == 1
    [created] = transport.events("session_created", room=f"enrollment:{seed.enrollment_id}")
    assert created["batchCode"] == "CS-2024-A"
    assert created["date"] == "2024-09-02"
    assert created["startTime"] == "09:00"


async def test_unknown_ids_produce_empty_results(seed, fanout, transport):
    assert (await fanout.session_created("missing")).total == 0
    assert (await fanout.attendance_marked("missing", [seed.x_id])).total == 0
    assert (await fanout.attendance_edited("missing")).total == 0
    assert transport.published == []
