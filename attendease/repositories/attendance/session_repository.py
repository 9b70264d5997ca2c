"""
Attendance session repository.
"""

from datetime import date
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.models.attendance import AttendanceRecord, AttendanceSession
from attendease.repositories.base.base_repository import BaseRepository


class AttendanceSessionRepository(BaseRepository[AttendanceSession]):
    """Queries over sessions; newest-first ordering is (date desc, start_time desc)."""

    def __init__(self, db: AsyncSession):
        super().__init__(AttendanceSession, db)

    @staticmethod
    def _newest_first():
        return (desc(AttendanceSession.date), desc(AttendanceSession.start_time))

    async def find_by_slot(
        self,
        enrollment_id: str,
        session_date: date,
        start_time: str,
    ) -> Optional[AttendanceSession]:
        stmt = select(AttendanceSession).where(
            AttendanceSession.subject_enrollment_id == enrollment_id,
            AttendanceSession.date == session_date,
            AttendanceSession.start_time == start_time,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_with_record_counts(
        self,
        enrollment_ids: Sequence[str],
        limit: Optional[int] = None,
    ) -> List[Tuple[AttendanceSession, int]]:
        """Sessions of the given enrollments, newest first, with stored record counts."""
        if not enrollment_ids:
            return []
        stmt = (
            select(AttendanceSession, func.count(AttendanceRecord.id))
            .outerjoin(AttendanceRecord, AttendanceRecord.session_id == AttendanceSession.id)
            .where(AttendanceSession.subject_enrollment_id.in_(list(enrollment_ids)))
            .group_by(AttendanceSession.id)
            .order_by(*self._newest_first())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return [(session, int(count)) for session, count in result.all()]

    async def list_recent(self, enrollment_id: str, limit: int) -> List[AttendanceSession]:
        stmt = (
            select(AttendanceSession)
            .where(AttendanceSession.subject_enrollment_id == enrollment_id)
            .order_by(*self._newest_first())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_for_enrollment(self, enrollment_id: str) -> int:
        return await self.count(AttendanceSession.subject_enrollment_id == enrollment_id)

    async def last_session_date(self, enrollment_id: str) -> Optional[date]:
        result = await self.db.execute(
            select(func.max(AttendanceSession.date)).where(
                AttendanceSession.subject_enrollment_id == enrollment_id
            )
        )
        return result.scalar_one_or_none()
