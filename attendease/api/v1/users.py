from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from attendease.api.deps import get_current_user, get_db
from attendease.api.errors import handle_result
from attendease.models.user import User
from attendease.schemas.common.base import APIResponse
from attendease.schemas.user.profile import Profile
from attendease.services.user import UserService

router = APIRouter(prefix="/users")


@router.get("/me", response_model=APIResponse[Profile])
async def get_my_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Role-tagged profile: ``role`` is ``STUDENT`` or ``TEACHER``."""
    profile = handle_result(await UserService(db).get_profile(user.id))
    return APIResponse[Profile](data=profile)
