"""
Shared fixtures: a throwaway SQLite database, seeded school data and
recording fakes for the notification channels.
"""

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import jwt
import pytest
from httpx import ASGITransport, AsyncClient

from attendease.config.database import build_engine, build_session_factory, init_db
from attendease.config.settings import settings
from attendease.models import (
    Batch,
    Student,
    Subject,
    SubjectEnrollment,
    Teacher,
    User,
)
from attendease.models.enums import AttendanceStatus, UserRole
from attendease.schemas.attendance.record import MarkAttendanceRequest, MarkEntry
from attendease.schemas.attendance.session import SessionCreate
from attendease.services.attendance import SessionService
from attendease.services.base import BestEffortDispatcher
from attendease.services.notification.fanout_service import FanoutService
from attendease.services.notification.push_sender import PushResult


# ==================== Recording fakes ====================

class RecordingTransport:
    def __init__(self):
        self.published: List[tuple] = []

    async def publish(self, room: str, event_type: str, payload: Dict[str, Any]) -> int:
        self.published.append((room, event_type, payload))
        return 1

    def events(self, event_type: str, room: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            payload
            for published_room, published_type, payload in self.published
            if published_type == event_type and (room is None or published_room == room)
        ]


class RecordingPushSender:
    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    async def send_push(self, user_id, title, body, data=None) -> PushResult:
        self.sent.append({"user_id": user_id, "title": title, "body": body, "data": data})
        return PushResult(sent=1, failed=0)


class RecordingEmailSender:
    def __init__(self):
        self.sent: List[Dict[str, str]] = []

    async def send_email(self, to: str, subject: str, html: str) -> None:
        self.sent.append({"to": to, "subject": subject, "html": html})


# ==================== Database ====================

@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'attendease.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(session_factory) -> SimpleNamespace:
    """
    Two teachers, three batches and two subjects.

    Batch A holds students X and Y and takes CS101 (teacher 1) and MA101
    (teacher 2). Batch B holds student Z. Batch C is empty and takes CS101
    with teacher 1. Student W has no batch.
    """
    async with session_factory() as session:
        def user(email: str, role: UserRole) -> User:
            u = User(email=email, role=role)
            session.add(u)
            return u

        teacher_user = user("ada@school.edu", UserRole.TEACHER)
        other_teacher_user = user("alan@school.edu", UserRole.TEACHER)
        admin_user = user("admin@school.edu", UserRole.ADMIN)
        x_user = user("x@school.edu", UserRole.STUDENT)
        y_user = user("y@school.edu", UserRole.STUDENT)
        z_user = user("z@school.edu", UserRole.STUDENT)
        w_user = user("w@school.edu", UserRole.STUDENT)
        await session.flush()

        teacher = Teacher(user_id=teacher_user.id, employee_id="E001", first_name="Ada", last_name="Lovelace")
        other_teacher = Teacher(
            user_id=other_teacher_user.id, employee_id="E002", first_name="Alan", last_name="Turing"
        )
        batch_a = Batch(code="CS-2024-A", name="Computer Science A", year=2024)
        batch_b = Batch(code="CS-2024-B", name="Computer Science B", year=2024)
        batch_c = Batch(code="CS-2024-C", name="Computer Science C", year=2024)
        cs101 = Subject(code="CS101", name="Data Structures", semester=1)
        ma101 = Subject(code="MA101", name="Calculus", semester=1)
        session.add_all([teacher, other_teacher, batch_a, batch_b, batch_c, cs101, ma101])
        await session.flush()

        x = Student(user_id=x_user.id, student_code="CS24001", first_name="Xena", last_name="Park", batch_id=batch_a.id)
        y = Student(user_id=y_user.id, student_code="CS24002", first_name="Yuri", last_name="Chen", batch_id=batch_a.id)
        z = Student(user_id=z_user.id, student_code="CS24101", first_name="Zoe", last_name="Ng", batch_id=batch_b.id)
        w = Student(user_id=w_user.id, student_code="CS24999", first_name="Will", last_name="Moss")
        enrollment = SubjectEnrollment(
            subject_id=cs101.id, batch_id=batch_a.id, teacher_id=teacher.id, semester="2024-1"
        )
        other_enrollment = SubjectEnrollment(
            subject_id=ma101.id, batch_id=batch_a.id, teacher_id=other_teacher.id, semester="2024-1"
        )
        empty_enrollment = SubjectEnrollment(
            subject_id=cs101.id, batch_id=batch_c.id, teacher_id=teacher.id, semester="2024-1"
        )
        session.add_all([x, y, z, w, enrollment, other_enrollment, empty_enrollment])
        await session.commit()

        return SimpleNamespace(
            teacher_user_id=teacher_user.id,
            teacher_id=teacher.id,
            other_teacher_user_id=other_teacher_user.id,
            admin_user_id=admin_user.id,
            batch_a_id=batch_a.id,
            batch_b_id=batch_b.id,
            x_id=x.id,
            x_user_id=x_user.id,
            x_email=x_user.email,
            y_id=y.id,
            y_user_id=y_user.id,
            z_id=z.id,
            w_id=w.id,
            w_user_id=w_user.id,
            enrollment_id=enrollment.id,
            other_enrollment_id=other_enrollment.id,
            empty_enrollment_id=empty_enrollment.id,
        )


# ==================== Notification fakes ====================

@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def push_sender():
    return RecordingPushSender()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def fanout(session_factory, transport, push_sender, email_sender):
    return FanoutService(
        session_factory=session_factory,
        transport=transport,
        push_sender=push_sender,
        email_sender=email_sender,
        dispatcher=BestEffortDispatcher(timeout=1.0),
    )


# ==================== Helpers ====================

@pytest.fixture
def create_session(session_factory, seed):
    """Create a session through the service and return its id."""

    async def _create(
        session_date: date = date(2024, 9, 2),
        start_time: str = "09:00",
        end_time: str = "10:00",
        enrollment_id: Optional[str] = None,
    ) -> str:
        async with session_factory() as session:
            result = await SessionService(session).create_session(
                seed.teacher_user_id,
                SessionCreate(
                    subject_enrollment_id=enrollment_id or seed.enrollment_id,
                    date=session_date,
                    start_time=start_time,
                    end_time=end_time,
                ),
            )
            assert result.is_success, result.error
            return result.data.id

    return _create


def mark_request(statuses: Dict[str, AttendanceStatus]) -> MarkAttendanceRequest:
    return MarkAttendanceRequest(
        records=[MarkEntry(student_id=student_id, status=status) for student_id, status in statuses.items()]
    )


def make_token(user_id: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    return jwt.encode(
        {"sub": user_id, "exp": datetime.now(timezone.utc) + expires_in},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )


def auth_headers(user_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


# ==================== HTTP ====================

@pytest.fixture
async def client(session_factory, transport, push_sender, email_sender):
    from attendease.main import create_app

    app = create_app(
        session_factory=session_factory,
        transport=transport,
        push_sender=push_sender,
        email_sender=email_sender,
    )
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
