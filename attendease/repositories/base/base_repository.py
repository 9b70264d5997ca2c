"""
Base repository with standardized async CRUD operations and error handling.

Repositories never commit; the calling service owns the transaction
boundary and decides when to commit or roll back.
"""

from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.config.logging import get_logger
from attendease.core.exceptions import DatabaseError, handle_database_exception
from attendease.models.base import BaseModel

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Abstract base repository with standardized operations.

    Provides lookup, create and delete helpers for all domain repositories.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    @property
    def dialect_name(self) -> str:
        return self.db.get_bind().dialect.name

    # ==================== Read Operations ====================

    async def get_by_id(self, entity_id: str, options: Sequence[Any] = ()) -> Optional[ModelType]:
        """Fetch a single entity by primary key, or None."""
        stmt = select(self.model).where(self.model.id == entity_id)
        if options:
            stmt = stmt.options(*options)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def count(self, *criteria) -> int:
        stmt = select(func.count()).select_from(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def list_where(self, *criteria, order_by: Sequence[Any] = ()) -> List[ModelType]:
        stmt = select(self.model).where(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # ==================== Write Operations ====================

    async def create(self, entity: ModelType) -> ModelType:
        """
        Add and flush a new entity.

        Raises:
            DuplicateEntryError: On unique constraint violations
            DatabaseError: On any other database failure
        """
        self.db.add(entity)
        try:
            await self.db.flush()
        except IntegrityError as e:
            logger.warning(f"Create {self.model.__name__} rejected: {e.orig}")
            raise handle_database_exception(e, table=self.model.__tablename__) from e
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Create failed: {str(e)}",
                operation="create",
                table=self.model.__tablename__,
            ) from e

        logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
        return entity

    async def delete(self, entity: ModelType) -> None:
        await self.db.delete(entity)
        await self.db.flush()
        logger.debug(f"Deleted {self.model.__name__} with id: {entity.id}")
