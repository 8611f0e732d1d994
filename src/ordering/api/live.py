"""WebSocket endpoint streaming cart and order updates to the owning user."""

import asyncio

import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from notifications.channel import get_live_channel
from notifications.channel.websocket_hub import WebSocketHub

logger = structlog.get_logger(__name__)

live_router = APIRouter(tags=["live"])


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _drain(websocket: WebSocket) -> None:
    # Clients only listen; anything they send is read and dropped so a close is noticed
    while True:
        await websocket.receive_text()


@live_router.websocket("/ws/cart")
async def cart_updates(websocket: WebSocket, user_id: str = Query(alias="userId")):
    hub = get_live_channel()
    if not isinstance(hub, WebSocketHub):
        await websocket.close(code=1013)
        return

    await websocket.accept()
    queue = hub.connect(user_id)
    await websocket.send_json({"event": "connected", "data": {"userId": user_id}})

    tasks = [asyncio.create_task(_forward(websocket, queue)), asyncio.create_task(_drain(websocket))]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Live connection failed", user_id=user_id, error=str(exc))
    finally:
        hub.disconnect(user_id, queue)
