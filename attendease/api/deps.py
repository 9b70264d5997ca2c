"""
FastAPI dependencies: database session, authenticated user and services.
"""

from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.core.exceptions import AuthenticationError, AuthorizationError
from attendease.core.security import decode_access_token
from attendease.models.enums import UserRole
from attendease.models.user import User
from attendease.repositories.user.user_repository import UserRepository
from attendease.services.notification.fanout_service import FanoutService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """One session per request from the factory configured on the app."""
    async with request.app.state.session_factory() as session:
        yield session


def get_fanout(request: Request) -> FanoutService:
    return request.app.state.fanout


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    user = await UserRepository(db).get_by_id(payload["sub"])
    if user is None:
        raise AuthenticationError("User not found")
    return user


async def require_teacher(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.TEACHER:
        raise AuthorizationError("Teacher access required", required_permission="TEACHER")
    return user


async def require_student(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.STUDENT:
        raise AuthorizationError("Student access required", required_permission="STUDENT")
    return user


__all__ = [
    "get_db",
    "get_fanout",
    "get_current_user",
    "require_teacher",
    "require_student",
]
