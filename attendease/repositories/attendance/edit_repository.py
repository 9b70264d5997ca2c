"""
Attendance edit (audit trail) repository. Append-only: no update or delete helpers.
"""

from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.models.attendance import AttendanceEdit
from attendease.models.enums import AttendanceStatus
from attendease.repositories.base.base_repository import BaseRepository


class AttendanceEditRepository(BaseRepository[AttendanceEdit]):

    def __init__(self, db: AsyncSession):
        super().__init__(AttendanceEdit, db)

    async def record_edit(
        self,
        record_id: str,
        session_id: str,
        edited_by: str,
        old_status: AttendanceStatus,
        new_status: AttendanceStatus,
        reason: Optional[str],
    ) -> AttendanceEdit:
        return await self.create(
            AttendanceEdit(
                record_id=record_id,
                session_id=session_id,
                edited_by=edited_by,
                old_status=old_status,
                new_status=new_status,
                reason=reason,
            )
        )

    async def list_for_record(self, record_id: str) -> List[AttendanceEdit]:
        stmt = (
            select(AttendanceEdit)
            .where(AttendanceEdit.record_id == record_id)
            .order_by(desc(AttendanceEdit.created_at))
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
