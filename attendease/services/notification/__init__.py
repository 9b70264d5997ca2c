"""
Notification services: real-time rooms, push, email and the post-write fan-out.
"""

from attendease.services.notification.email_sender import (
    EmailSender,
    EmailTemplateRenderer,
    SmtpEmailSender,
)
from attendease.services.notification.fanout_service import FanoutService
from attendease.services.notification.push_sender import FirebasePushSender, PushResult, PushSender
from attendease.services.notification.realtime import RealtimeTransport, RedisRealtimeTransport
from attendease.services.notification.token_service import DeviceTokenService

__all__ = [
    "DeviceTokenService",
    "EmailSender",
    "EmailTemplateRenderer",
    "FanoutService",
    "FirebasePushSender",
    "PushResult",
    "PushSender",
    "RealtimeTransport",
    "RedisRealtimeTransport",
    "SmtpEmailSender",
]
