"""
Real-time transport.

Events are published as JSON envelopes ``{"event", "room", "data"}`` on one
Redis pub/sub channel per room; WebSocket connections subscribe to the
channels of the rooms they joined.
"""

from typing import Any, Dict, Optional, Protocol

from attendease.config.logging import get_logger
from attendease.config.redis import RedisManager
from attendease.config.settings import settings
from attendease.schemas.attendance.events import RealtimeEvent

logger = get_logger(__name__)


class RealtimeTransport(Protocol):
    async def publish(self, room: str, event_type: str, payload: Dict[str, Any]) -> Any:
        ...


class RedisRealtimeTransport:
    """Publishes room events through Redis pub/sub."""

    def __init__(self, redis_manager: RedisManager, channel_prefix: Optional[str] = None):
        self.redis = redis_manager
        self.channel_prefix = channel_prefix or settings.REALTIME_CHANNEL_PREFIX

    def channel_for(self, room: str) -> str:
        return f"{self.channel_prefix}{room}"

    def room_for(self, channel: str) -> str:
        return channel[len(self.channel_prefix):] if channel.startswith(self.channel_prefix) else channel

    async def publish(self, room: str, event_type: str, payload: Dict[str, Any]) -> int:
        receivers = await self.redis.publish(
            self.channel_for(room),
            {"event": event_type, "room": room, "data": payload},
        )
        logger.debug(f"Published {event_type} to {room} ({receivers} receivers)")
        return receivers


async def publish_event(transport: RealtimeTransport, room: str, event: RealtimeEvent) -> Any:
    """Serialize an event to its camelCase wire form and publish it to a room."""
    return await transport.publish(room, event.event_name, event.to_wire())
