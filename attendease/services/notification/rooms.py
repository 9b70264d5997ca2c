"""
Real-time room naming and membership.
"""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from attendease.core.constants import ROOM_BATCH_PREFIX, ROOM_ENROLLMENT_PREFIX, ROOM_USER_PREFIX
from attendease.models.enums import UserRole
from attendease.models.user import User
from attendease.repositories.academic.enrollment_repository import SubjectEnrollmentRepository
from attendease.repositories.user.user_repository import StudentRepository, TeacherRepository


def user_room(user_id: str) -> str:
    return f"{ROOM_USER_PREFIX}{user_id}"


def batch_room(batch_id: str) -> str:
    return f"{ROOM_BATCH_PREFIX}{batch_id}"


def enrollment_room(enrollment_id: str) -> str:
    return f"{ROOM_ENROLLMENT_PREFIX}{enrollment_id}"


async def resolve_rooms(db: AsyncSession, user: User) -> List[str]:
    """
    Rooms a connected user listens on.

    Everyone joins their own user room; students also join their batch room
    and teachers the room of every enrollment they teach.
    """
    rooms = [user_room(user.id)]

    if user.role == UserRole.STUDENT:
        student = await StudentRepository(db).get_by_user_id(user.id)
        if student is not None and student.batch_id:
            rooms.append(batch_room(student.batch_id))

    elif user.role == UserRole.TEACHER:
        teacher = await TeacherRepository(db).get_by_user_id(user.id)
        if teacher is not None:
            enrollments = await SubjectEnrollmentRepository(db).list_by_teacher(teacher.id)
            rooms.extend(enrollment_room(enrollment.id) for enrollment in enrollments)

    return rooms
