"""
Attendance record repository.

Marking uses a native ``INSERT ... ON CONFLICT (session_id, student_id)
DO UPDATE`` so that re-submitting a roster converges on the same rows.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import case, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.models.attendance import AttendanceRecord, AttendanceSession
from attendease.models.base import utcnow
from attendease.models.enums import AttendanceStatus
from attendease.models.user import Student
from attendease.repositories.base.base_repository import BaseRepository

ATTENDED_STATUSES = (
    AttendanceStatus.PRESENT,
    AttendanceStatus.LATE,
    AttendanceStatus.EXCUSED,
)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AttendanceRecordRepository(BaseRepository[AttendanceRecord]):

    def __init__(self, db: AsyncSession):
        super().__init__(AttendanceRecord, db)

    # ==================== Marking ====================

    async def upsert(
        self,
        session_id: str,
        student_id: str,
        status: AttendanceStatus,
        marked_at: Optional[datetime] = None,
    ) -> None:
        """Insert the record or overwrite status and marked_at of the existing one."""
        insert = _UPSERT_DIALECTS.get(self.dialect_name)
        if insert is None:
            raise NotImplementedError(f"Upsert is not supported on {self.dialect_name}")

        now = marked_at or utcnow()
        stmt = insert(AttendanceRecord).values(
            session_id=session_id,
            student_id=student_id,
            status=status,
            marked_at=now,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[AttendanceRecord.session_id, AttendanceRecord.student_id],
            set_={
                "status": stmt.excluded.status,
                "marked_at": stmt.excluded.marked_at,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)

    # ==================== Reads ====================

    async def list_for_session(
        self,
        session_id: str,
        student_ids: Optional[Sequence[str]] = None,
    ) -> List[AttendanceRecord]:
        """Records of a session ordered by roll number, refreshed from the database."""
        stmt = (
            select(AttendanceRecord)
            .join(Student, AttendanceRecord.student_id == Student.id)
            .where(AttendanceRecord.session_id == session_id)
            .order_by(Student.student_code)
            .execution_options(populate_existing=True)
        )
        if student_ids is not None:
            stmt = stmt.where(AttendanceRecord.student_id.in_(list(student_ids)))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_for_session(self, session_id: str) -> int:
        return await self.count(AttendanceRecord.session_id == session_id)

    async def status_counts_for_session(self, session_id: str) -> Dict[AttendanceStatus, int]:
        stmt = (
            select(AttendanceRecord.status, func.count(AttendanceRecord.id))
            .where(AttendanceRecord.session_id == session_id)
            .group_by(AttendanceRecord.status)
        )
        result = await self.db.execute(stmt)
        return {status: int(count) for status, count in result.all()}

    async def status_counts_for_student(
        self,
        student_id: str,
        enrollment_id: str,
    ) -> Dict[AttendanceStatus, int]:
        """Per-status record counts of one student across an enrollment's sessions."""
        stmt = (
            select(AttendanceRecord.status, func.count(AttendanceRecord.id))
            .join(AttendanceSession, AttendanceRecord.session_id == AttendanceSession.id)
            .where(
                AttendanceRecord.student_id == student_id,
                AttendanceSession.subject_enrollment_id == enrollment_id,
            )
            .group_by(AttendanceRecord.status)
        )
        result = await self.db.execute(stmt)
        return {status: int(count) for status, count in result.all()}

    async def attended_count_for_enrollment(self, enrollment_id: str) -> int:
        stmt = (
            select(func.count(AttendanceRecord.id))
            .join(AttendanceSession, AttendanceRecord.session_id == AttendanceSession.id)
            .where(
                AttendanceSession.subject_enrollment_id == enrollment_id,
                AttendanceRecord.status.in_(ATTENDED_STATUSES),
            )
        )
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def attendance_totals_for_sessions(self, session_ids: Sequence[str]) -> Tuple[int, int]:
        """(attended, recorded) record counts over the given sessions."""
        if not session_ids:
            return 0, 0
        stmt = select(
            func.count(case((AttendanceRecord.status.in_(ATTENDED_STATUSES), 1))),
            func.count(AttendanceRecord.id),
        ).where(AttendanceRecord.session_id.in_(list(session_ids)))
        attended, recorded = (await self.db.execute(stmt)).one()
        return int(attended), int(recorded)

    async def map_for_student(
        self,
        student_id: str,
        session_ids: Sequence[str],
    ) -> Dict[str, AttendanceRecord]:
        """The student's records keyed by session id."""
        if not session_ids:
            return {}
        records = await self.list_where(
            AttendanceRecord.student_id == student_id,
            AttendanceRecord.session_id.in_(list(session_ids)),
        )
        return {record.session_id: record for record in records}
