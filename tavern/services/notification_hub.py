"""WebSocket fan-out for notifications.

Each user has a room ``user:<id>`` holding that user's open sockets.
Delivery is best-effort: a failed send drops the socket and is only
logged, never raised back to the request that produced the event.
"""

import asyncio
from collections import defaultdict
from typing import Any, Protocol

from tavern.core.logging import get_logger

logger = get_logger(__name__)

EVENT_NEW = "notification:new"
EVENT_READ = "notification:read"
EVENT_BADGE = "notification:badge"


class SocketLike(Protocol):
    async def send_json(self, data: Any) -> None: ...


def room_for(user_id: str) -> str:
    return f"user:{user_id}"


class NotificationHub:
    """Per-user socket rooms.

    Sockets join from the event loop (``join``); sync request handlers
    running in the threadpool call ``publish``, which hands the send to
    that loop without waiting for it.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, set[SocketLike]] = defaultdict(set)
        self._loop: asyncio.AbstractEventLoop | None = None

    def join(self, user_id: str, socket: SocketLike) -> None:
        self._loop = asyncio.get_running_loop()
        self._rooms[room_for(user_id)].add(socket)
        logger.info("Socket joined %s (%d open)", room_for(user_id), self.connection_count(user_id))

    def leave(self, user_id: str, socket: SocketLike) -> None:
        room = room_for(user_id)
        sockets = self._rooms.get(room)
        if not sockets:
            return
        sockets.discard(socket)
        if not sockets:
            del self._rooms[room]
        logger.info("Socket left %s", room)

    def connection_count(self, user_id: str) -> int:
        return len(self._rooms.get(room_for(user_id), ()))

    async def broadcast(self, user_id: str, event: str, data: dict[str, Any]) -> int:
        """Send one event to every socket in the user's room. Returns sends."""
        message = {"event": event, "data": data}
        delivered = 0
        for socket in list(self._rooms.get(room_for(user_id), ())):
            try:
                await socket.send_json(message)
                delivered += 1
            except Exception:
                logger.warning(
                    "Dropping socket in %s after failed send of %s",
                    room_for(user_id),
                    event,
                    exc_info=True,
                )
                self.leave(user_id, socket)
        return delivered

    def publish(self, user_id: str, event: str, data: dict[str, Any]) -> None:
        """Fire-and-forget delivery callable from any thread."""
        if not self.connection_count(user_id) or self._loop is None:
            logger.debug("No open sockets for %s, skipping %s", room_for(user_id), event)
            return
        if self._loop.is_closed():
            logger.debug("Socket loop closed, skipping %s", event)
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        coro = self.broadcast(user_id, event, data)
        if running is self._loop:
            running.create_task(coro)
        else:
            asyncio.run_coroutine_threadsafe(coro, self._loop)
