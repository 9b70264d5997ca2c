"""
Push notification device tokens.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendease.models.base import BaseModel, TimestampModel

if TYPE_CHECKING:
    from attendease.models.user import Student, Teacher

__all__ = ["DeviceToken"]


class DeviceToken(TimestampModel, BaseModel):
    """FCM registration token owned by exactly one student or teacher."""

    __tablename__ = "device_tokens"
    __table_args__ = (
        CheckConstraint(
            "(student_id IS NOT NULL) OR (teacher_id IS NOT NULL)",
            name="ck_device_token_owner",
        ),
    )

    token: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    device_id: Mapped[Optional[str]] = mapped_column(String(255))
    student_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("students.id", ondelete="CASCADE"),
        index=True,
    )
    teacher_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("teachers.id", ondelete="CASCADE"),
        index=True,
    )

    student: Mapped[Optional["Student"]] = relationship(back_populates="device_tokens")
    teacher: Mapped[Optional["Teacher"]] = relationship(back_populates="device_tokens")
