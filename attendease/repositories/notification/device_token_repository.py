"""
Push device token repository.
"""

from typing import List, Optional, Sequence

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.models.device_token import DeviceToken
from attendease.models.user import Student, Teacher
from attendease.repositories.base.base_repository import BaseRepository


class DeviceTokenRepository(BaseRepository[DeviceToken]):

    def __init__(self, db: AsyncSession):
        super().__init__(DeviceToken, db)

    async def get_by_token(self, token: str) -> Optional[DeviceToken]:
        result = await self.db.execute(select(DeviceToken).where(DeviceToken.token == token))
        return result.scalar_one_or_none()

    async def tokens_for_user(self, user_id: str) -> List[str]:
        """All tokens registered by the user's student or teacher profile."""
        stmt = (
            select(DeviceToken.token)
            .outerjoin(Student, DeviceToken.student_id == Student.id)
            .outerjoin(Teacher, DeviceToken.teacher_id == Teacher.id)
            .where(or_(Student.user_id == user_id, Teacher.user_id == user_id))
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def delete_tokens(self, tokens: Sequence[str]) -> int:
        if not tokens:
            return 0
        result = await self.db.execute(
            delete(DeviceToken).where(DeviceToken.token.in_(list(tokens)))
        )
        return result.rowcount or 0
