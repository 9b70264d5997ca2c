"""
Subject enrollment repository.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.models.academic import Batch, Subject, SubjectEnrollment
from attendease.models.enums import EnrollmentStatus
from attendease.repositories.base.base_repository import BaseRepository


class SubjectEnrollmentRepository(BaseRepository[SubjectEnrollment]):
    """Subject, batch and teacher are loaded with every enrollment."""

    def __init__(self, db: AsyncSession):
        super().__init__(SubjectEnrollment, db)

    async def list_by_teacher(self, teacher_id: str) -> List[SubjectEnrollment]:
        return await self.list_where(SubjectEnrollment.teacher_id == teacher_id)

    async def list_active_by_teacher(self, teacher_id: str) -> List[SubjectEnrollment]:
        stmt = (
            select(SubjectEnrollment)
            .join(Subject, SubjectEnrollment.subject_id == Subject.id)
            .join(Batch, SubjectEnrollment.batch_id == Batch.id)
            .where(
                SubjectEnrollment.teacher_id == teacher_id,
                SubjectEnrollment.status == EnrollmentStatus.ACTIVE,
            )
            .order_by(Subject.code, Batch.code)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_by_batch(self, batch_id: str) -> List[SubjectEnrollment]:
        stmt = (
            select(SubjectEnrollment)
            .join(Subject, SubjectEnrollment.subject_id == Subject.id)
            .where(SubjectEnrollment.batch_id == batch_id)
            .order_by(Subject.code)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_by_batch_and_subject_code(
        self,
        batch_id: str,
        subject_code: str,
    ) -> Optional[SubjectEnrollment]:
        stmt = (
            select(SubjectEnrollment)
            .join(Subject, SubjectEnrollment.subject_id == Subject.id)
            .where(
                SubjectEnrollment.batch_id == batch_id,
                Subject.code == subject_code,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
