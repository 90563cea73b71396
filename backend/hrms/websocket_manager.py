"""WebSocket fan-out and the event publisher used by the services."""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Protocol

from fastapi import WebSocket

from .config import get_settings
from .logging_config import get_logger
from .schemas import RelayEvent

logger = get_logger(__name__)


class WebSocketManager:
    """Tracks open WebSocket connections, one room per user."""

    def __init__(self) -> None:
        self._connections: Dict[str, List[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, room: str, websocket: WebSocket) -> None:
        """Register a websocket connection under a room."""

        await websocket.accept()
        async with self._lock:
            self._connections.setdefault(room, []).append(websocket)

    async def disconnect(self, room: str, websocket: WebSocket) -> None:
        """Remove a websocket connection if it still exists."""

        async with self._lock:
            if room not in self._connections:
                return
            if websocket in self._connections[room]:
                self._connections[room].remove(websocket)
            if not self._connections[room]:
                del self._connections[room]

    def connection_count(self, room: str) -> int:
        return len(self._connections.get(room, []))

    async def broadcast(self, room: str, payload: Dict[str, Any]) -> None:
        """Send a payload to every websocket registered for a room."""

        async with self._lock:
            targets = list(self._connections.get(room, []))

        stale_connections: list[WebSocket] = []
        for connection in targets:
            try:
                await connection.send_json(payload)
            except Exception:
                logger.warning("Dropping unreachable websocket in room %s", room, exc_info=True)
                stale_connections.append(connection)

        for websocket in stale_connections:
            await self.disconnect(room, websocket)


ws_manager = WebSocketManager()


def user_room(user_id: int) -> str:
    return f"user:{user_id}"


class EventPublisher(Protocol):
    """Fire-and-forget sink for lifecycle events addressed to one user."""

    def publish(self, user_id: int, channel: str, action: str, data: Dict[str, Any]) -> None:
        ...


class NullPublisher:
    """Publisher that discards every event."""

    def publish(self, user_id: int, channel: str, action: str, data: Dict[str, Any]) -> None:
        return None


class WebSocketPublisher:
    """Schedules delivery on the running loop and returns immediately.

    Delivery failures are logged and dropped; nothing is retried.
    """

    def __init__(self, manager: WebSocketManager) -> None:
        self._manager = manager
        self._pending: set[asyncio.Task[None]] = set()

    def publish(self, user_id: int, channel: str, action: str, data: Dict[str, Any]) -> None:
        event = RelayEvent(channel=channel, action=action, data=data)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running loop; dropping %s/%s event for user %s", channel, action, user_id)
            return
        task = loop.create_task(self._deliver(user_room(user_id), event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, room: str, event: RelayEvent) -> None:
        try:
            await self._manager.broadcast(room, event.model_dump(mode="json"))
        except Exception:
            logger.warning(
                "Failed to deliver %s/%s event to %s", event.channel, event.action, room, exc_info=True
            )


publisher = WebSocketPublisher(ws_manager)
null_publisher = NullPublisher()


def get_publisher() -> EventPublisher:
    """Dependency returning the process-wide event publisher.

    With ``RELAY_ENABLED`` off, events are dropped and only the stored
    notifications remain.
    """

    if not get_settings().relay_enabled:
        return null_publisher
    return publisher
