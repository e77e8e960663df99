"""WebSocket connection manager with per-wishlist rooms"""

from typing import Dict, List, Set, Optional
import asyncio
from fastapi import WebSocket, status
from datetime import datetime, timezone
import logging
import uuid

from app.core.config import settings
from app.core.security import SecurityUtils
from app.core.monitoring import websocket_connections

logger = logging.getLogger(__name__)

class Connection:
    """A connected socket and the rooms it has joined"""

    def __init__(self, websocket: WebSocket, user_id: uuid.UUID):
        self.websocket = websocket
        self.user_id = user_id
        self.rooms: Set[str] = set()

    async def send(self, message: dict):
        await self.websocket.send_json(message)

class ConnectionManager:
    """
    Manages WebSocket connections and broadcast rooms

    Delivery is best effort: a socket that fails to receive is dropped and
    clients that are not connected miss the event.
    """

    def __init__(self):
        # Active connections: {user_id: [connection1, connection2]}
        self.active_connections: Dict[uuid.UUID, List[Connection]] = {}
        # Room subscriptions: {room_id: {connections}}
        self.rooms: Dict[str, Set[Connection]] = {}

    async def connect(self, websocket: WebSocket, user_id: uuid.UUID) -> Connection:
        """Accept new connection"""
        await websocket.accept()

        connection = Connection(websocket, user_id)
        self.active_connections.setdefault(user_id, []).append(connection)
        websocket_connections.inc()

        logger.info(f"User {user_id} connected via WebSocket")

        await connection.send({
            "event": "connection",
            "status": "connected",
            "timestamp": datetime.now(timezone.utc).isoformat()
        })
        return connection

    def disconnect(self, connection: Connection):
        """Remove connection and leave every room it joined"""
        for room_id in list(connection.rooms):
            self.leave_room(connection, room_id)

        connections = self.active_connections.get(connection.user_id, [])
        if connection in connections:
            connections.remove(connection)
            websocket_connections.dec()
        if not connections:
            self.active_connections.pop(connection.user_id, None)

        logger.info(f"User {connection.user_id} disconnected from WebSocket")

    def join_room(self, connection: Connection, room_id: str):
        """Add connection to a room"""
        self.rooms.setdefault(room_id, set()).add(connection)
        connection.rooms.add(room_id)
        logger.debug(f"User {connection.user_id} joined room {room_id}")

    def leave_room(self, connection: Connection, room_id: str):
        """Remove connection from a room"""
        members = self.rooms.get(room_id)
        if members is not None:
            members.discard(connection)
            if not members:
                del self.rooms[room_id]
        connection.rooms.discard(room_id)
        logger.debug(f"User {connection.user_id} left room {room_id}")

    def is_in_room(self, connection: Connection, room_id: str) -> bool:
        return room_id in connection.rooms

    async def _send(self, connection: Connection, message: dict) -> bool:
        """Send with a time limit; False if the socket failed or stalled"""
        try:
            await asyncio.wait_for(connection.send(message), settings.WS_SEND_TIMEOUT_SECONDS)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Dropping stalled connection of user {connection.user_id}")
        except Exception as e:
            logger.warning(f"Dropping connection of user {connection.user_id}: {e}")
        return False

    async def broadcast_to_room(
        self,
        room_id: str,
        message: dict,
        exclude: Optional[Connection] = None
    ) -> int:
        """
        Broadcast message to every connection in a room

        Sends run concurrently, each bounded by WS_SEND_TIMEOUT_SECONDS.
        Returns the number of connections the message was delivered to.
        An empty room is a no-op.
        """
        # Snapshot; joins and leaves may happen while sending
        targets = [c for c in list(self.rooms.get(room_id, ())) if c is not exclude]
        if not targets:
            return 0

        results = await asyncio.gather(*(self._send(c, message) for c in targets))

        # Clean up failed and stalled sockets
        for connection, delivered in zip(targets, results):
            if not delivered:
                self.disconnect(connection)

        return sum(results)

# Global connection manager
manager = ConnectionManager()

async def get_current_user_ws(
    websocket: WebSocket,
    token: Optional[str] = None
) -> Optional[uuid.UUID]:
    """Authenticate WebSocket connection"""
    if not token:
        # Try to get token from query params
        token = websocket.query_params.get("token")

    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None

    try:
        return SecurityUtils.verify(token)["id"]
    except Exception:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None
