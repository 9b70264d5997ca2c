"""
Push notification delivery through Firebase Cloud Messaging.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

import firebase_admin
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendease.config.logging import get_logger
from attendease.config.settings import settings
from attendease.core.exceptions import NotificationError
from attendease.repositories.notification.device_token_repository import DeviceTokenRepository

logger = get_logger(__name__)

# FCM errors meaning the token will never be deliverable again
INVALID_TOKEN_ERRORS = (
    messaging.UnregisteredError,
    messaging.SenderIdMismatchError,
    firebase_exceptions.InvalidArgumentError,
)


@dataclass
class PushResult:
    sent: int = 0
    failed: int = 0

    @property
    def delivered(self) -> bool:
        """False when every device the user has rejected the message."""
        return not (self.sent == 0 and self.failed > 0)


class PushSender(Protocol):
    async def send_push(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> PushResult:
        ...


class FirebasePushSender:
    """
    Multicasts a notification to every device registered by a user.

    Tokens that FCM reports as unregistered or malformed are deleted after
    each send.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        credentials_file: Optional[str] = None,
        app: Optional[Any] = None,
    ):
        self.session_factory = session_factory
        self.credentials_file = credentials_file or settings.FIREBASE_CREDENTIALS_FILE
        self.app = app or self._init_firebase()

    def _init_firebase(self) -> Optional[Any]:
        """Initialize the default Firebase app once per process."""
        if not self.credentials_file:
            logger.warning("FIREBASE_CREDENTIALS_FILE not set; push notifications disabled")
            return None

        if not firebase_admin._apps:
            cred = credentials.Certificate(self.credentials_file)
            return firebase_admin.initialize_app(cred)
        return firebase_admin.get_app()

    async def send_push(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> PushResult:
        async with self.session_factory() as db:
            repository = DeviceTokenRepository(db)
            tokens = await repository.tokens_for_user(user_id)
            if not tokens:
                logger.debug(f"No device tokens for user {user_id}")
                return PushResult()

            if self.app is None:
                raise NotificationError(
                    "Push notification provider not configured",
                    service_name="fcm",
                )

            message = messaging.MulticastMessage(
                tokens=tokens,
                notification=messaging.Notification(title=title, body=body),
                data={key: str(value) for key, value in (data or {}).items()},
            )
            response = await asyncio.to_thread(
                messaging.send_each_for_multicast, message, app=self.app
            )

            invalid = self._invalid_tokens(tokens, response.responses)
            if invalid:
                removed = await repository.delete_tokens(invalid)
                await db.commit()
                logger.info(f"Removed {removed} invalid device token(s) for user {user_id}")

            logger.info(
                f"Push sent to user {user_id}: "
                f"{response.success_count} sent, {response.failure_count} failed"
            )
            return PushResult(sent=response.success_count, failed=response.failure_count)

    @staticmethod
    def _invalid_tokens(tokens: List[str], responses: List[Any]) -> List[str]:
        return [
            token
            for token, send_response in zip(tokens, responses)
            if not send_response.success
            and isinstance(send_response.exception, INVALID_TOKEN_ERRORS)
        ]
