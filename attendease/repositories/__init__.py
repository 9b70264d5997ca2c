from attendease.repositories.base.base_repository import BaseRepository
from attendease.repositories.user.user_repository import (
    StudentRepository,
    TeacherRepository,
    UserRepository,
)
from attendease.repositories.academic.enrollment_repository import SubjectEnrollmentRepository
from attendease.repositories.attendance.session_repository import AttendanceSessionRepository
from attendease.repositories.attendance.record_repository import AttendanceRecordRepository
from attendease.repositories.attendance.edit_repository import AttendanceEditRepository
from attendease.repositories.notification.device_token_repository import DeviceTokenRepository

__all__ = [
    "BaseRepository",
    "StudentRepository",
    "TeacherRepository",
    "UserRepository",
    "SubjectEnrollmentRepository",
    "AttendanceSessionRepository",
    "AttendanceRecordRepository",
    "AttendanceEditRepository",
    "DeviceTokenRepository",
]
