"""
Custom Exceptions for the attendance backend

This module defines custom exception classes used throughout the application
for better error handling and debugging.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Authentication & Authorization
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    FOREIGN_KEY_VIOLATION = "FOREIGN_KEY_VIOLATION"

    # External service errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    EMAIL_SERVICE_ERROR = "EMAIL_SERVICE_ERROR"
    NOTIFICATION_ERROR = "NOTIFICATION_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "success": False,
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# General Application Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when data validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details, 422)


class BadRequestError(BaseAppException):
    """Exception raised when a request violates a business rule"""

    def __init__(
        self,
        message: str = "Bad request",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, ErrorCode.BAD_REQUEST, details, 400)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


# ========================================
# Authentication & Authorization Exceptions
# ========================================

class AuthenticationError(BaseAppException):
    """Exception raised when authentication fails"""

    def __init__(
        self,
        message: str = "Authentication failed",
        error_code: ErrorCode = ErrorCode.AUTHENTICATION_FAILED,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details, 401)


class AuthorizationError(BaseAppException):
    """Exception raised when authorization fails"""

    def __init__(
        self,
        message: str = "Access denied",
        required_permission: Optional[str] = None,
    ):
        details = {"required_permission": required_permission} if required_permission else {}
        super().__init__(message, ErrorCode.AUTHORIZATION_FAILED, details, 403)


class TokenExpiredError(AuthenticationError):
    """Exception raised when a token has expired"""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message, ErrorCode.TOKEN_EXPIRED, {"token_type": "access_token"})


class InvalidTokenError(AuthenticationError):
    """Exception raised when token is invalid"""

    def __init__(self, message: str = "Invalid token", reason: Optional[str] = None):
        details = {"token_type": "access_token"}
        if reason:
            details["reason"] = reason
        super().__init__(message, ErrorCode.TOKEN_INVALID, details)


# ========================================
# Database Exceptions
# ========================================

class DatabaseError(BaseAppException):
    """Exception raised when database operations fail"""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
        table: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        status_code: int = 500
    ):
        details = {
            "operation": operation,
            "table": table
        }
        super().__init__(message, error_code, details, status_code)


class DuplicateEntryError(DatabaseError):
    """Exception raised when trying to create a duplicate entry"""

    def __init__(
        self,
        message: str = "Duplicate entry",
        table: Optional[str] = None
    ):
        super().__init__(message, table=table, error_code=ErrorCode.DUPLICATE_ENTRY, status_code=409)


class ForeignKeyViolationError(DatabaseError):
    """Exception raised when foreign key constraint is violated"""

    def __init__(self, message: str = "Foreign key constraint violation"):
        super().__init__(message, error_code=ErrorCode.FOREIGN_KEY_VIOLATION, status_code=409)


# ========================================
# External Service Exceptions
# ========================================

class ExternalServiceError(BaseAppException):
    """Exception raised when external service calls fail"""

    def __init__(
        self,
        message: str = "External service error",
        service_name: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
        status_code: int = 503
    ):
        details = {"service_name": service_name}
        super().__init__(message, error_code, details, status_code)


class EmailServiceError(ExternalServiceError):
    """Exception raised when email service operations fail"""

    def __init__(
        self,
        message: str = "Email service error",
        recipient: Optional[str] = None,
    ):
        super().__init__(message, service_name="smtp", error_code=ErrorCode.EMAIL_SERVICE_ERROR)
        if recipient:
            self.details["recipient"] = recipient


class NotificationError(ExternalServiceError):
    """Exception raised when push or real-time delivery fails"""

    def __init__(
        self,
        message: str = "Notification delivery failed",
        service_name: Optional[str] = None,
    ):
        super().__init__(message, service_name=service_name, error_code=ErrorCode.NOTIFICATION_ERROR)


# ========================================
# Utility Functions
# ========================================

def handle_database_exception(exc: Exception, table: Optional[str] = None) -> BaseAppException:
    """Convert database exceptions to application exceptions"""
    error_message = str(exc)

    if "duplicate" in error_message.lower() or "unique constraint" in error_message.lower():
        return DuplicateEntryError(f"Duplicate entry: {error_message}", table=table)
    elif "foreign key" in error_message.lower():
        return ForeignKeyViolationError(f"Foreign key violation: {error_message}")
    else:
        return DatabaseError(f"Database error: {error_message}", table=table)


__all__ = [
    'ErrorCode',
    'BaseAppException',
    'ValidationError',
    'BadRequestError',
    'ResourceNotFoundError',
    'AuthenticationError',
    'AuthorizationError',
    'TokenExpiredError',
    'InvalidTokenError',
    'DatabaseError',
    'DuplicateEntryError',
    'ForeignKeyViolationError',
    'ExternalServiceError',
    'EmailServiceError',
    'NotificationError',
    'handle_database_exception',
]
