from attendease.services.base.base_service import BaseService
from attendease.services.base.dispatch import BestEffortDispatcher, DispatchedCall, DispatchResult
from attendease.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

__all__ = [
    "BaseService",
    "BestEffortDispatcher",
    "DispatchedCall",
    "DispatchResult",
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
