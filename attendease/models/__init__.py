from attendease.models.base import Base, BaseModel, TimestampModel
from attendease.models.enums import (
    AttendanceStanding,
    AttendanceStatus,
    EnrollmentStatus,
    EventType,
    SessionType,
    UserRole,
)
from attendease.models.user import Student, Teacher, User
from attendease.models.academic import Batch, Subject, SubjectEnrollment
from attendease.models.attendance import AttendanceEdit, AttendanceRecord, AttendanceSession
from attendease.models.device_token import DeviceToken

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "AttendanceStanding",
    "AttendanceStatus",
    "EnrollmentStatus",
    "EventType",
    "SessionType",
    "UserRole",
    "User",
    "Student",
    "Teacher",
    "Subject",
    "Batch",
    "SubjectEnrollment",
    "AttendanceSession",
    "AttendanceRecord",
    "AttendanceEdit",
    "DeviceToken",
]
