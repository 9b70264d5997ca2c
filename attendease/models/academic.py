"""
Academic structure: subjects, batches and the enrollment linking them.

A ``SubjectEnrollment`` is the offering of one subject to one batch taught
by exactly one teacher. It is the unit that owns attendance sessions.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendease.models.base import BaseModel, TimestampModel
from attendease.models.enums import EnrollmentStatus

if TYPE_CHECKING:
    from attendease.models.attendance import AttendanceSession
    from attendease.models.user import Student, Teacher

__all__ = ["Subject", "Batch", "SubjectEnrollment"]


class Subject(TimestampModel, BaseModel):
    """Institution-wide subject, independent of who teaches it."""

    __tablename__ = "subjects"

    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    semester: Mapped[Optional[int]] = mapped_column(Integer)
    department: Mapped[Optional[str]] = mapped_column(String(100))
    credits: Mapped[Optional[int]] = mapped_column(Integer)

    enrollments: Mapped[List["SubjectEnrollment"]] = relationship(back_populates="subject")


class Batch(TimestampModel, BaseModel):
    """Cohort of students taught together."""

    __tablename__ = "batches"

    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    department: Mapped[Optional[str]] = mapped_column(String(100))
    year: Mapped[Optional[int]] = mapped_column(Integer)
    capacity: Mapped[Optional[int]] = mapped_column(Integer)
    class_room: Mapped[Optional[str]] = mapped_column(String(50))

    students: Mapped[List["Student"]] = relationship(back_populates="batch")
    enrollments: Mapped[List["SubjectEnrollment"]] = relationship(back_populates="batch")


class SubjectEnrollment(TimestampModel, BaseModel):
    """
    Offering of a subject to a batch.

    ``teacher_id`` decides ownership of every session and record under this
    enrollment; reassigning the teacher transfers that ownership.
    """

    __tablename__ = "subject_enrollments"
    __table_args__ = (
        UniqueConstraint("subject_id", "batch_id", name="uq_enrollment_subject_batch"),
    )

    subject_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("teachers.id"),
        nullable=False,
        index=True,
    )
    semester: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[EnrollmentStatus] = mapped_column(
        Enum(EnrollmentStatus, name="enrollment_status"),
        default=EnrollmentStatus.ACTIVE,
        nullable=False,
    )
    room: Mapped[Optional[str]] = mapped_column(String(50))

    subject: Mapped["Subject"] = relationship(back_populates="enrollments", lazy="selectin")
    batch: Mapped["Batch"] = relationship(back_populates="enrollments", lazy="selectin")
    teacher: Mapped["Teacher"] = relationship(back_populates="enrollments", lazy="selectin")
    sessions: Mapped[List["AttendanceSession"]] = relationship(
        back_populates="enrollment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
