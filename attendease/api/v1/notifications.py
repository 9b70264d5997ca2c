"""
Push device registration.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.api.deps import get_current_user, get_db
from attendease.api.errors import handle_result
from attendease.models.user import User
from attendease.schemas.common.base import APIResponse
from attendease.schemas.notification.device_token import DeviceTokenRegister, DeviceTokenView
from attendease.services.notification.token_service import DeviceTokenService

router = APIRouter(prefix="/notifications")


@router.post(
    "/device-tokens",
    response_model=APIResponse[DeviceTokenView],
    status_code=status.HTTP_201_CREATED,
)
async def register_device_token(
    request: DeviceTokenRegister,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await DeviceTokenService(db).register(user.id, request)
    return APIResponse[DeviceTokenView](data=handle_result(result), message=result.message)


@router.delete("/device-tokens/{token}", response_model=APIResponse[bool])
async def unregister_device_token(
    token: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await DeviceTokenService(db).unregister(user.id, token)
    return APIResponse[bool](data=handle_result(result), message=result.message)
