"""
Database enums shared by models, schemas and events.
"""

import enum


class UserRole(str, enum.Enum):
    """User role enumeration."""
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"


class AttendanceStatus(str, enum.Enum):
    """Attendance status of a student in one session."""
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class SessionType(str, enum.Enum):
    """Kind of class session."""
    REGULAR = "REGULAR"
    MAKEUP = "MAKEUP"
    EXTRA = "EXTRA"


class EnrollmentStatus(str, enum.Enum):
    """Lifecycle of a subject offered to a batch."""
    ACTIVE = "ACTIVE"
    DROPPED = "DROPPED"
    COMPLETED = "COMPLETED"


class AttendanceStanding(str, enum.Enum):
    """Standing derived from an attendance percentage."""
    GOOD = "GOOD"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class EventType(str, enum.Enum):
    """Real-time event types published to rooms."""
    SESSION_CREATED = "SESSION_CREATED"
    ATTENDANCE_MARKED = "ATTENDANCE_MARKED"
    LIVE_SESSION_STATUS = "LIVE_SESSION_STATUS"
    ATTENDANCE_UPDATED = "ATTENDANCE_UPDATED"
    LOW_ATTENDANCE_ALERT = "LOW_ATTENDANCE_ALERT"
    ATTENDANCE_EDITED = "ATTENDANCE_EDITED"

    @property
    def event_name(self) -> str:
        """Transport-level event name (e.g. ``attendance_marked``)."""
        return self.value.lower()
