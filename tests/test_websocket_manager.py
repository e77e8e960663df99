import asyncio
import uuid

from app.core.config import settings
from app.core.websocket import ConnectionManager
from app.services.notification_websocket import WebSocketNotificationService

class FakeWebSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.stall = False
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.stall:
            await asyncio.Event().wait()
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)

async def connect(manager, fail=False):
    websocket = FakeWebSocket()
    connection = await manager.connect(websocket, uuid.uuid4())
    websocket.fail = fail
    return connection

async def test_connect_acknowledges():
    manager = ConnectionManager()
    connection = await connect(manager)

    assert connection.websocket.accepted
    assert connection.websocket.sent[0]["event"] == "connection"
    assert manager.active_connections[connection.user_id] == [connection]

async def test_broadcast_to_empty_room_is_noop():
    manager = ConnectionManager()
    assert await manager.broadcast_to_room("missing", {"event": "refresh-wishlist"}) == 0
    assert manager.rooms == {}

async def test_broadcast_reaches_room_only():
    manager = ConnectionManager()
    inside, outside = await connect(manager), await connect(manager)
    manager.join_room(inside, "room")

    delivered = await manager.broadcast_to_room("room", {"event": "refresh-wishlist"})

    assert delivered == 1
    assert inside.websocket.sent[-1] == {"event": "refresh-wishlist"}
    assert len(outside.websocket.sent) == 1

async def test_broadcast_excludes_sender():
    manager = ConnectionManager()
    sender, other = await connect(manager), await connect(manager)
    manager.join_room(sender, "room")
    manager.join_room(other, "room")

    assert await manager.broadcast_to_room("room", {"event": "x"}, exclude=sender) == 1
    assert sender.websocket.sent[-1]["event"] == "connection"

async def test_failing_socket_is_dropped():
    manager = ConnectionManager()
    healthy, broken = await connect(manager), await connect(manager, fail=True)
    for connection in (healthy, broken):
        manager.join_room(connection, "room")

    assert await manager.broadcast_to_room("room", {"event": "x"}) == 1
    assert manager.rooms["room"] == {healthy}
    assert broken.user_id not in manager.active_connections

async def test_disconnect_leaves_all_rooms():
    manager = ConnectionManager()
    connection = await connect(manager)
    manager.join_room(connection, "a")
    manager.join_room(connection, "b")

    manager.disconnect(connection)

    assert manager.rooms == {}
    assert connection.rooms == set()
    assert manager.active_connections == {}

async def test_notification_envelope():
    manager = ConnectionManager()
    connection = await connect(manager)
    wishlist_id = uuid.uuid4()
    product_id = uuid.uuid4()
    manager.join_room(connection, str(wishlist_id))

    await WebSocketNotificationService(manager).send_product_deleted(wishlist_id, product_id)

    message = connection.websocket.sent[-1]
    assert message["event"] == "product-deleted"
    assert message["wishlist_id"] == str(wishlist_id)
    assert message["data"] == {"wishlistId": str(wishlist_id), "productId": str(product_id)}
    assert "timestamp" in message

async def test_stalled_socket_does_not_block_broadcast(monkeypatch):
    monkeypatch.setattr(settings, "WS_SEND_TIMEOUT_SECONDS", 0.1)
    manager = ConnectionManager()
    stalled, healthy = await connect(manager), await connect(manager)
    stalled.websocket.stall = True
    wishlist_id = uuid.uuid4()
    for connection in (stalled, healthy):
        manager.join_room(connection, str(wishlist_id))

    service = WebSocketNotificationService(manager)
    delivered = await asyncio.wait_for(service.send_refresh(wishlist_id), 2)

    assert delivered == 1
    assert healthy.websocket.sent[-1]["event"] == "refresh-wishlist"
    assert manager.rooms[str(wishlist_id)] == {healthy}
    assert stalled.user_id not in manager.active_connections
