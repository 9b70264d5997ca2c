"""
Statistics loader: reads counts through the repositories and applies the
pure statistics functions.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from attendease.repositories.attendance.record_repository import AttendanceRecordRepository
from attendease.repositories.attendance.session_repository import AttendanceSessionRepository
from attendease.schemas.attendance.stats import AttendanceStats
from attendease.services.attendance.statistics import stats_from_counts


class StatisticsService:
    """Read-only; safe to call inside or outside a transaction."""

    def __init__(self, db_session: AsyncSession):
        self.sessions = AttendanceSessionRepository(db_session)
        self.records = AttendanceRecordRepository(db_session)

    async def compute_stats(self, student_id: str, enrollment_id: str) -> AttendanceStats:
        total_sessions = await self.sessions.count_for_enrollment(enrollment_id)
        counts = await self.records.status_counts_for_student(student_id, enrollment_id)
        return stats_from_counts(total_sessions, counts)
