"""
User accounts and their role profiles.

A ``User`` carries identity and role; the ``Student`` and ``Teacher``
tables hold the role-specific profile in a 1:1 relationship.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendease.models.base import BaseModel, TimestampModel
from attendease.models.enums import UserRole

if TYPE_CHECKING:
    from attendease.models.academic import Batch, SubjectEnrollment
    from attendease.models.device_token import DeviceToken

__all__ = ["User", "Student", "Teacher"]


class User(TimestampModel, BaseModel):
    """Login identity; role decides which profile table applies."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        nullable=False,
    )

    student: Mapped[Optional["Student"]] = relationship(
        back_populates="user",
        uselist=False,
    )
    teacher: Mapped[Optional["Teacher"]] = relationship(
        back_populates="user",
        uselist=False,
    )


class Student(TimestampModel, BaseModel):
    """Student profile; ``batch_id`` is empty until the student is placed in a batch."""

    __tablename__ = "students"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    student_code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        comment="Institution roll number",
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    batch_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("batches.id", ondelete="SET NULL"),
        index=True,
    )

    user: Mapped["User"] = relationship(back_populates="student", lazy="selectin")
    batch: Mapped[Optional["Batch"]] = relationship(back_populates="students", lazy="selectin")
    device_tokens: Mapped[List["DeviceToken"]] = relationship(
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Teacher(TimestampModel, BaseModel):
    """Teacher profile."""

    __tablename__ = "teachers"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    employee_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    department: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(20))

    user: Mapped["User"] = relationship(back_populates="teacher", lazy="selectin")
    enrollments: Mapped[List["SubjectEnrollment"]] = relationship(back_populates="teacher")
    device_tokens: Mapped[List["DeviceToken"]] = relationship(
        back_populates="teacher",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
