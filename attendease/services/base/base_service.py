"""
Base service class providing common functionality for all services.
"""

from typing import Optional, Dict, Any
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from attendease.config.logging import get_logger
from attendease.core.exceptions import (
    AuthorizationError,
    BadRequestError,
    BaseAppException,
    DuplicateEntryError,
    ResourceNotFoundError,
    ValidationError,
)
from attendease.services.base.service_result import (
    ServiceResult,
    ServiceError,
    ErrorCode,
    ErrorSeverity,
)


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Consistent error handling via ServiceResult
    - Transaction management utilities
    """

    def __init__(self, db_session: AsyncSession):
        """
        Initialize base service.

        Args:
            db_session: SQLAlchemy async database session
        """
        self.db: AsyncSession = db_session
        self._logger = get_logger(f"attendease.services.{self.__class__.__name__}")

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Convert exception to a ServiceResult failure with logging.

        Application exceptions are expected outcomes (missing rows, ownership,
        business rules) and keep their message. Anything else is logged with
        a traceback and reported as INTERNAL_ERROR.

        Args:
            exception: The caught exception
            operation: Description of the operation that failed
            entity_ref: Reference to the entity involved (ID, name, etc.)
            additional_context: Extra context for logging/debugging

        Returns:
            ServiceResult with failure status and error details
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }
        if additional_context:
            context.update(additional_context)

        error_code = self._map_exception_to_error_code(exception)

        if isinstance(exception, BaseAppException) and error_code != ErrorCode.INTERNAL_ERROR:
            self._logger.warning(f"{operation} rejected: {exception.message}", extra=context)
            return ServiceResult.failure(
                ServiceError(
                    code=error_code,
                    message=exception.message,
                    details=exception.details or None,
                    severity=ErrorSeverity.WARNING,
                )
            )

        self._logger.error(
            f"Error during {operation}: {exception}",
            exc_info=True,
            extra=context,
        )
        return ServiceResult.failure(
            ServiceError(
                code=error_code,
                message=f"Failed to {operation.replace('_', ' ')}",
                details={
                    "error": str(exception),
                    "entity_ref": str(entity_ref) if entity_ref is not None else None,
                },
                severity=ErrorSeverity.CRITICAL,
            )
        )

    def _map_exception_to_error_code(self, exception: Exception) -> ErrorCode:
        """
        Map exception types to appropriate error codes.

        Args:
            exception: The exception to map

        Returns:
            Appropriate ErrorCode for the exception
        """
        exception_mapping = {
            ResourceNotFoundError: ErrorCode.NOT_FOUND,
            AuthorizationError: ErrorCode.FORBIDDEN,
            BadRequestError: ErrorCode.BAD_REQUEST,
            DuplicateEntryError: ErrorCode.BAD_REQUEST,
            ValidationError: ErrorCode.VALIDATION_ERROR,
            SQLAlchemyError: ErrorCode.INTERNAL_ERROR,
        }

        for exc_type, error_code in exception_mapping.items():
            if isinstance(exception, exc_type):
                return error_code

        return ErrorCode.INTERNAL_ERROR

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self):
        """
        Context manager for database transactions with automatic rollback.

        Yields:
            The database session

        Example:
            async with self.transaction():
                await self.records.upsert(...)
                # commit on success, rollback on exception
        """
        try:
            yield self.db
            await self._commit()
        except Exception as e:
            await self._rollback()
            self._logger.warning(f"Transaction failed: {e}")
            raise

    async def _commit(self) -> None:
        """Commit the current transaction."""
        await self.db.commit()
        self._logger.debug("Transaction committed successfully")

    async def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            await self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except SQLAlchemyError as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")
