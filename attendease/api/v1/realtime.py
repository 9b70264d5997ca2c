"""
WebSocket relay for real-time attendance events.

A client connects to ``/realtime/ws?token=<access token>``, joins the rooms
resolved for its user, and receives every envelope published to them.
"""

import asyncio

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from redis.asyncio.client import PubSub

from attendease.config.logging import get_logger
from attendease.core.exceptions import AuthenticationError
from attendease.core.security import decode_access_token
from attendease.repositories.user.user_repository import UserRepository
from attendease.services.notification.realtime import RedisRealtimeTransport
from attendease.services.notification.rooms import resolve_rooms

logger = get_logger(__name__)

router = APIRouter(prefix="/realtime")


async def _relay(pubsub: PubSub, websocket: WebSocket) -> None:
    async for message in pubsub.listen():
        if message["type"] == "message":
            await websocket.send_text(message["data"])


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, token: str = Query(...)):
    transport = websocket.app.state.transport
    if not isinstance(transport, RedisRealtimeTransport):
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason="Realtime relay unavailable")
        return

    try:
        payload = decode_access_token(token)
    except AuthenticationError as e:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return

    async with websocket.app.state.session_factory() as db:
        user = await UserRepository(db).get_by_id(payload["sub"])
        if user is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="User not found")
            return
        rooms = await resolve_rooms(db, user)

    await websocket.accept()
    await websocket.send_json({"event": "connected", "data": {"userId": user.id, "rooms": rooms}})
    logger.info(f"Realtime client connected: user_id={user.id}, rooms={len(rooms)}")

    pubsub = transport.redis.get_pubsub()
    await pubsub.subscribe(*[transport.channel_for(room) for room in rooms])
    relay = asyncio.create_task(_relay(pubsub, websocket))
    try:
        # Client messages are ignored; receiving only detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Realtime client disconnected: user_id={user.id}")
    finally:
        relay.cancel()
        await pubsub.unsubscribe()
        await pubsub.aclose()
