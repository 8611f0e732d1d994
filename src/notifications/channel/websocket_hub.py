"""WebSocket hub — per-user fan-out to connected browser sessions.

Each WebSocket connection registers an ``asyncio.Queue`` under its user id
(a "room" per user), together with the event loop that owns the queue.
Publishing enqueues the message on every queue of that user without
awaiting; the connection's own task drains its queue and sends. Commands run
in worker threads, so a publish from outside the owning loop is handed over
with ``call_soon_threadsafe``. Full queues drop the message; delivery is
best-effort.
"""

import asyncio
from collections import defaultdict

import structlog

from notifications.channel.live_port import LiveChannelPort

logger = structlog.get_logger(__name__)

MAX_PENDING_MESSAGES = 100


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class WebSocketHub(LiveChannelPort):
    def __init__(self, max_pending: int = MAX_PENDING_MESSAGES) -> None:
        self.max_pending = max_pending
        self.rooms: dict[str, dict[asyncio.Queue, asyncio.AbstractEventLoop | None]] = defaultdict(dict)

    def connect(self, user_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_pending)
        self.rooms[str(user_id)][queue] = _running_loop()
        logger.info("Live connection opened", user_id=str(user_id), connections=len(self.rooms[str(user_id)]))
        return queue

    def disconnect(self, user_id: str, queue: asyncio.Queue) -> None:
        room = self.rooms.get(str(user_id))
        if room is None:
            return
        room.pop(queue, None)
        if not room:
            del self.rooms[str(user_id)]
        logger.info("Live connection closed", user_id=str(user_id))

    def publish(self, user_id: str, event: str, payload: dict) -> int:
        message = {"event": event, "data": payload}
        current = _running_loop()
        delivered = 0
        for queue, loop in list(self.rooms.get(str(user_id), {}).items()):
            if loop is None or loop is current:
                delivered += self._enqueue(user_id, queue, message)
            elif loop.is_closed():
                continue
            else:
                loop.call_soon_threadsafe(self._enqueue, user_id, queue, message)
                delivered += 1
        return delivered

    def _enqueue(self, user_id: str, queue: asyncio.Queue, message: dict) -> int:
        try:
            queue.put_nowait(message)
            return 1
        except asyncio.QueueFull:
            logger.warning(
                "Live connection queue full, dropping message",
                user_id=str(user_id),
                notification_event=message["event"],
            )
            return 0
