"""
Redis configuration for the attendance backend.
Provides the async Redis client used for real-time pub/sub fan-out.
"""

from typing import Optional, Any, Dict
import time
import json

import redis.asyncio as redis
from redis.asyncio.client import PubSub

from attendease.config.settings import settings
from attendease.config.logging import get_logger

logger = get_logger(__name__)


class RedisManager:
    """Redis manager for pub/sub operations"""

    def __init__(self, client: Optional[redis.Redis] = None, url: Optional[str] = None):
        self.client = client or redis.from_url(
            url or settings.REDIS_URL,
            max_connections=settings.REDIS_POOL_SIZE,
            decode_responses=True,  # Auto-decode Redis responses to strings
        )

    async def publish(self, channel: str, message: Any) -> int:
        """Publish message to channel, returning the receiver count"""
        if not isinstance(message, (str, int, float, bool)):
            message = json.dumps(message, default=str)
        try:
            return await self.client.publish(channel, message)
        except redis.RedisError as e:
            logger.error(f"Redis publish error on {channel}: {str(e)}")
            raise

    def get_pubsub(self) -> PubSub:
        """Get PubSub object for subscriptions"""
        return self.client.pubsub()

    async def check_connection(self) -> Dict[str, Any]:
        """Check Redis connection health"""
        start_time = time.time()
        try:
            is_connected = bool(await self.client.ping())
            error_message = None
        except redis.RedisError as e:
            is_connected = False
            error_message = str(e)

        return {
            "is_connected": is_connected,
            "response_time_ms": (time.time() - start_time) * 1000,
            "error": error_message,
        }

    async def close(self) -> None:
        await self.client.aclose()
