"""
User, Student and Teacher repositories.
"""

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from attendease.models.user import Student, Teacher, User
from attendease.repositories.base.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_with_profile(self, user_id: str) -> Optional[User]:
        """Load a user with both role profiles eagerly."""
        stmt = (
            select(User)
            .where(User.id == user_id)
            .options(
                selectinload(User.student),
                selectinload(User.teacher),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()


class TeacherRepository(BaseRepository[Teacher]):

    def __init__(self, db: AsyncSession):
        super().__init__(Teacher, db)

    async def get_by_user_id(self, user_id: str) -> Optional[Teacher]:
        result = await self.db.execute(select(Teacher).where(Teacher.user_id == user_id))
        return result.scalar_one_or_none()


class StudentRepository(BaseRepository[Student]):

    def __init__(self, db: AsyncSession):
        super().__init__(Student, db)

    async def get_by_user_id(self, user_id: str) -> Optional[Student]:
        result = await self.db.execute(select(Student).where(Student.user_id == user_id))
        return result.scalar_one_or_none()

    async def list_by_batch(self, batch_id: str) -> List[Student]:
        """Students currently in the batch, ordered by roll number."""
        return await self.list_where(
            Student.batch_id == batch_id,
            order_by=(Student.student_code,),
        )

    async def ids_in_batch(self, batch_id: str) -> set:
        result = await self.db.execute(select(Student.id).where(Student.batch_id == batch_id))
        return set(result.scalars().all())

    async def count_in_batch(self, batch_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Student.id)).where(Student.batch_id == batch_id)
        )
        return int(result.scalar_one())

    async def list_by_ids(self, student_ids: List[str]) -> List[Student]:
        if not student_ids:
            return []
        return await self.list_where(Student.id.in_(student_ids))
