"""
Registry of push device tokens for students and teachers.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from attendease.core.exceptions import BadRequestError, ResourceNotFoundError
from attendease.models.device_token import DeviceToken
from attendease.repositories.notification.device_token_repository import DeviceTokenRepository
from attendease.repositories.user.user_repository import UserRepository
from attendease.schemas.notification.device_token import DeviceTokenRegister, DeviceTokenView
from attendease.services.base import BaseService, ServiceResult


class DeviceTokenService(BaseService):
    """
    Register and unregister FCM tokens.

    A token belongs to one owner at a time; registering a token already held
    by someone else moves it to the caller.
    """

    def __init__(self, db_session: AsyncSession):
        super().__init__(db_session)
        self.tokens = DeviceTokenRepository(db_session)
        self.users = UserRepository(db_session)

    async def _owner_ids(self, user_id: str):
        user = await self.users.get_with_profile(user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        if user.student is not None:
            return user.student.id, None
        if user.teacher is not None:
            return None, user.teacher.id
        raise BadRequestError("Only students and teachers can register devices")

    async def register(
        self,
        user_id: str,
        request: DeviceTokenRegister,
    ) -> ServiceResult[DeviceTokenView]:
        operation = "register_device_token"
        self._logger.info(f"{operation}: user_id={user_id}, device_id={request.device_id}")

        try:
            student_id, teacher_id = await self._owner_ids(user_id)

            async with self.transaction():
                token = await self.tokens.get_by_token(request.token)
                if token is None:
                    token = await self.tokens.create(
                        DeviceToken(
                            token=request.token,
                            device_id=request.device_id,
                            student_id=student_id,
                            teacher_id=teacher_id,
                        )
                    )
                else:
                    token.device_id = request.device_id
                    token.student_id = student_id
                    token.teacher_id = teacher_id
                    await self.db.flush()

            return ServiceResult.success(
                DeviceTokenView.model_validate(token),
                message="Device token registered",
            )

        except Exception as e:
            return self._handle_exception(e, operation, user_id)

    async def unregister(self, user_id: str, token_value: str) -> ServiceResult[bool]:
        operation = "unregister_device_token"

        try:
            student_id, teacher_id = await self._owner_ids(user_id)

            token = await self.tokens.get_by_token(token_value)
            if token is None or (token.student_id, token.teacher_id) != (student_id, teacher_id):
                return ServiceResult.not_found("Device token")

            async with self.transaction():
                await self.tokens.delete(token)

            return ServiceResult.success(True, message="Device token removed")

        except Exception as e:
            return self._handle_exception(e, operation, user_id)
