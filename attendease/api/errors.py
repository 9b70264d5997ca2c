"""
Error rendering for the HTTP API.

Every failure is returned as ``{"success": false, "error": {...}}``.
"""

from typing import TypeVar

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from attendease.config.logging import get_logger
from attendease.core.exceptions import BaseAppException
from attendease.services.base import ErrorCode, ServiceError, ServiceResult

logger = get_logger(__name__)

T = TypeVar("T")

STATUS_BY_ERROR_CODE = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ServiceFailure(Exception):
    """A failed ServiceResult surfacing at the HTTP boundary."""

    def __init__(self, error: ServiceError):
        self.error = error
        self.status_code = STATUS_BY_ERROR_CODE.get(
            error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        super().__init__(error.message)


def handle_result(result: ServiceResult[T]) -> T:
    """Return the payload of a successful result, or raise ``ServiceFailure``."""
    if result.is_success:
        return result.data
    raise ServiceFailure(result.error)


def error_body(code: str, message: str, details=None) -> dict:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details},
    }


async def service_failure_handler(request: Request, exc: ServiceFailure) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": jsonable_encoder(exc.error.to_dict())},
    )


async def app_exception_handler(request: Request, exc: BaseAppException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            ErrorCode.VALIDATION_ERROR.value,
            "Request validation failed",
            {"errors": jsonable_encoder(exc.errors())},
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(ErrorCode.INTERNAL_ERROR.value, "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceFailure, service_failure_handler)
    app.add_exception_handler(BaseAppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
