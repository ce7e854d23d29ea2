import asyncio
import logging
from typing import Dict, Set

from fastapi import WebSocket

logger = logging.getLogger("notifications.utils")


class ConnectionManager:
    """In-memory registry of live notification subscribers, grouped by topic."""
    def __init__(self) -> None:
        self._topic_to_connections: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, websocket: WebSocket, topic: str) -> None:
        async with self._lock:
            self._topic_to_connections.setdefault(topic, set()).add(websocket)
        logger.info(f"Subscriber joined {topic}")

    async def unsubscribe(self, websocket: WebSocket, topic: str) -> None:
        async with self._lock:
            conns = self._topic_to_connections.get(topic)
            if conns and websocket in conns:
                conns.remove(websocket)
                if not conns:
                    self._topic_to_connections.pop(topic, None)

    async def broadcast(self, topic: str, message: dict) -> None:
        # Copy to avoid size change during iteration
        connections = list(self._topic_to_connections.get(topic, set()))
        for ws in connections:
            try:
                await ws.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping broken subscriber on {topic}: {e}")
                await self.unsubscribe(ws, topic)


manager = ConnectionManager()


def topic_for_user(user_id: str) -> str:
    return f"user:{user_id}"
