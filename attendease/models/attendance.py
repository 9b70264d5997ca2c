"""
Attendance sessions, per-student records and the correction audit trail.
"""

from datetime import date as date_type, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendease.models.base import BaseModel, TimestampModel, utcnow
from attendease.models.enums import AttendanceStatus, SessionType

if TYPE_CHECKING:
    from attendease.models.academic import SubjectEnrollment
    from attendease.models.user import Student, Teacher

__all__ = [
    "AttendanceSession",
    "AttendanceRecord",
    "AttendanceEdit",
]


class AttendanceSession(TimestampModel, BaseModel):
    """
    A dated class meeting of a subject enrollment.

    ``teacher_id`` records who created the session and is never updated;
    ownership checks go through the enrollment instead.
    """

    __tablename__ = "attendance_sessions"
    __table_args__ = (
        UniqueConstraint(
            "subject_enrollment_id",
            "date",
            "start_time",
            name="uq_session_enrollment_date_start",
        ),
        Index("idx_session_teacher_date", "teacher_id", "date"),
    )

    subject_enrollment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("subject_enrollments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("teachers.id"),
        nullable=False,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False, comment="HH:MM")
    end_time: Mapped[str] = mapped_column(String(5), nullable=False, comment="HH:MM")
    type: Mapped[SessionType] = mapped_column(
        Enum(SessionType, name="session_type"),
        default=SessionType.REGULAR,
        nullable=False,
    )

    enrollment: Mapped["SubjectEnrollment"] = relationship(back_populates="sessions", lazy="selectin")
    teacher: Mapped["Teacher"] = relationship(lazy="selectin")
    records: Mapped[List["AttendanceRecord"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class AttendanceRecord(TimestampModel, BaseModel):
    """Status of one student in one session."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_record_session_student"),
        Index("idx_record_student", "student_id"),
    )

    session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("attendance_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[AttendanceStatus] = mapped_column(
        Enum(AttendanceStatus, name="attendance_status"),
        default=AttendanceStatus.PRESENT,
        nullable=False,
    )
    marked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    session: Mapped["AttendanceSession"] = relationship(back_populates="records", lazy="selectin")
    student: Mapped["Student"] = relationship(lazy="selectin")
    edits: Mapped[List["AttendanceEdit"]] = relationship(
        back_populates="record",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class AttendanceEdit(BaseModel):
    """
    Append-only audit row for a record correction.

    Rows are written in the same transaction as the status change and are
    never updated or deleted by the application.
    """

    __tablename__ = "attendance_edits"

    record_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("attendance_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("attendance_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    edited_by: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        comment="User id of the editing teacher",
    )
    old_status: Mapped[AttendanceStatus] = mapped_column(
        Enum(AttendanceStatus, name="attendance_status"),
        nullable=False,
    )
    new_status: Mapped[AttendanceStatus] = mapped_column(
        Enum(AttendanceStatus, name="attendance_status"),
        nullable=False,
    )
    reason: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    record: Mapped["AttendanceRecord"] = relationship(back_populates="edits")
