"""
API v1 router: aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from attendease.api.v1 import attendance, notifications, realtime, users

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"},
    }
)

router.include_router(attendance.router, tags=["Attendance"])
router.include_router(notifications.router, tags=["Notifications"])
router.include_router(users.router, tags=["Users"])
router.include_router(realtime.router, tags=["Realtime"])
