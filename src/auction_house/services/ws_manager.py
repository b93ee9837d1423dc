"""WebSocket connection manager for real-time auction events."""

import asyncio
import logging
from typing import Any, Protocol

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    """Delivery capability used by the bid and closing services."""

    async def publish(self, auction_id: int, message: dict[str, Any]) -> int:
        ...

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> bool:
        ...


class ConnectionRegistry:
    """Maps a user identity to their live connection.

    Process-local and not durable: entries appear when a connection
    authenticates and vanish on disconnect. The last registration for a user
    wins. A user without a live connection simply misses targeted events.
    """

    def __init__(self):
        self._connections: dict[int, WebSocket] = {}

    def register(self, user_id: int, websocket: WebSocket) -> None:
        self._connections[user_id] = websocket

    def lookup(self, user_id: int) -> WebSocket | None:
        return self._connections.get(user_id)

    def remove(self, websocket: WebSocket) -> None:
        stale = [uid for uid, ws in self._connections.items() if ws is websocket]
        for user_id in stale:
            del self._connections[user_id]


class ConnectionManager:
    """Manages WebSocket connections organized by auction topics.

    Structure: {auction_id: {id(websocket): WebSocket}}
    Starlette websockets are unhashable, hence the id() keys.
    """

    def __init__(self, registry: ConnectionRegistry | None = None):
        self.topics: dict[int, dict[int, WebSocket]] = {}
        self.registry = registry or ConnectionRegistry()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()

    def authenticate(self, user_id: int, websocket: WebSocket) -> None:
        self.registry.register(user_id, websocket)
        logger.info(f"WebSocket authenticated: user={user_id}")

    def join(self, auction_id: int, websocket: WebSocket) -> None:
        self.topics.setdefault(auction_id, {})[id(websocket)] = websocket

    def leave(self, auction_id: int, websocket: WebSocket) -> None:
        members = self.topics.get(auction_id)
        if members is None:
            return
        members.pop(id(websocket), None)
        if not members:
            del self.topics[auction_id]

    def disconnect(self, websocket: WebSocket) -> None:
        """Drop a connection from every topic and from the user registry."""
        for auction_id in list(self.topics):
            self.leave(auction_id, websocket)
        self.registry.remove(websocket)

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> bool:
        """Send a message to one user's live connection.

        Returns:
            True if sent, False if the user is not connected or the send failed
        """
        websocket = self.registry.lookup(user_id)
        if websocket is None:
            return False

        try:
            await websocket.send_json(message)
            return True
        except Exception as e:
            logger.warning(f"Failed to send to user {user_id}: {e}")
            self.disconnect(websocket)
            return False

    async def publish(self, auction_id: int, message: dict[str, Any]) -> int:
        """Fan a message out to every subscriber of an auction topic.

        Returns:
            Number of connections successfully sent to
        """
        # Copy so concurrent joins/leaves don't disturb iteration
        members = list(self.topics.get(auction_id, {}).values())
        if not members:
            return 0

        async def send_to_one(ws: WebSocket) -> bool:
            try:
                await ws.send_json(message)
                return True
            except Exception as e:
                logger.warning(f"Failed to publish to auction {auction_id} subscriber: {e}")
                return False

        results = await asyncio.gather(*[send_to_one(ws) for ws in members])

        sent_count = 0
        for ws, success in zip(members, results):
            if success:
                sent_count += 1
            else:
                self.disconnect(ws)

        return sent_count

    def get_topic_size(self, auction_id: int) -> int:
        return len(self.topics.get(auction_id, {}))

    def get_active_auctions(self) -> list[int]:
        return list(self.topics.keys())


# Global singleton instance
manager = ConnectionManager()
