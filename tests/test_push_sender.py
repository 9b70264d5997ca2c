from types import SimpleNamespace

import pytest
from firebase_admin import messaging
from sqlalchemy import select

from attendease.core.exceptions import NotificationError
from attendease.models import DeviceToken
from attendease.schemas.notification.device_token import DeviceTokenRegister
from attendease.services.notification import DeviceTokenService, FirebasePushSender, PushResult


async def register(session_factory, user_id, *tokens):
    async with session_factory() as session:
        for token in tokens:
            result = await DeviceTokenService(session).register(user_id, DeviceTokenRegister(token=token))
            assert result.is_success


async def test_no_tokens_sends_nothing(seed, session_factory):
    sender = FirebasePushSender(session_factory, app=object())

    assert await sender.send_push(seed.x_user_id, "t", "b") == PushResult()


async def test_unconfigured_provider_raises_when_tokens_exist(seed, session_factory):
    await register(session_factory, seed.x_user_id, "tok-1")
    sender = FirebasePushSender(session_factory, credentials_file="")
    sender.app = None

    with pytest.raises(NotificationError):
        await sender.send_push(seed.x_user_id, "t", "b")


async def test_multicast_removes_invalid_tokens(seed, session_factory, monkeypatch):
    await register(session_factory, seed.x_user_id, "good", "gone", "flaky")
    sent = []

    def fake_send_each_for_multicast(message, app=None):
        sent.append(message)
        outcomes = {
            "good": SimpleNamespace(success=True, exception=None),
            "gone": SimpleNamespace(success=False, exception=messaging.UnregisteredError("unregistered")),
            "flaky": SimpleNamespace(success=False, exception=RuntimeError("unavailable")),
        }
        responses = [outcomes[token] for token in message.tokens]
        return SimpleNamespace(
            responses=responses,
            success_count=sum(1 for r in responses if r.success),
            failure_count=sum(1 for r in responses if not r.success),
        )

    monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send_each_for_multicast)
    sender = FirebasePushSender(session_factory, app=object())

    result = await sender.send_push(
        seed.x_user_id, "Critical: CS101 Attendance", "body", {"percentage": 50.0}
    )

    assert result == PushResult(sent=1, failed=2)
    [message] = sent
    assert sorted(message.tokens) == ["flaky", "gone", "good"]
    assert message.notification.title == "Critical: CS101 Attendance"
    assert message.data == {"percentage": "50.0"}
    async with session_factory() as session:
        remaining = (await session.execute(select(DeviceToken.token))).scalars().all()
    assert sorted(remaining) == ["flaky", "good"]
