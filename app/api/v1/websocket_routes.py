"""WebSocket route handlers"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from typing import Optional
import logging
import uuid

from app.core.database import get_db_context
from app.core.websocket import manager, get_current_user_ws, Connection
from app.api.v1.wishlists import permissions
from app.api.v1.wishlists.crud import WishlistCRUD
from app.services.notification_websocket import WebSocketNotificationService

router = APIRouter()
logger = logging.getLogger(__name__)

def _parse_wishlist_id(data: dict) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(data.get("wishlist_id", data.get("wishlistId"))))
    except (TypeError, ValueError):
        return None

async def handle_join(connection: Connection, wishlist_id: uuid.UUID):
    """Join a wishlist room if the user may view the wishlist"""
    async with get_db_context() as db:
        wishlist = await WishlistCRUD.get_by_id(db, wishlist_id)
        allowed = wishlist is not None and permissions.can_view(wishlist, connection.user_id)

    if not allowed:
        logger.warning(f"User {connection.user_id} may not join wishlist {wishlist_id}")
        return

    manager.join_room(connection, str(wishlist_id))
    await connection.send({"event": "joined-wishlist", "wishlist_id": str(wishlist_id)})

async def handle_leave(connection: Connection, wishlist_id: uuid.UUID):
    manager.leave_room(connection, str(wishlist_id))
    await connection.send({"event": "left-wishlist", "wishlist_id": str(wishlist_id)})

async def handle_manual_refresh(connection: Connection, wishlist_id: uuid.UUID):
    """Relay a client's refresh request to the rest of the room"""
    if not manager.is_in_room(connection, str(wishlist_id)):
        return
    await WebSocketNotificationService(manager).send_refresh(wishlist_id, exclude=connection)

@router.websocket("/ws/wishlists")
async def wishlist_updates(
    websocket: WebSocket,
    token: Optional[str] = Query(None)
):
    """Live wishlist updates WebSocket"""
    user_id = await get_current_user_ws(websocket, token)
    if not user_id:
        return

    connection = await manager.connect(websocket, user_id)

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                logger.debug(f"Ignoring non-JSON frame from user {user_id}")
                continue

            event = data.get("event") if isinstance(data, dict) else None

            if event == "ping":
                await connection.send({"event": "pong"})
                continue

            wishlist_id = _parse_wishlist_id(data) if event else None
            if wishlist_id is None:
                continue

            if event == "join-wishlist":
                await handle_join(connection, wishlist_id)

            elif event == "leave-wishlist":
                await handle_leave(connection, wishlist_id)

            elif event == "wishlist-updated":
                await handle_manual_refresh(connection, wishlist_id)

    except WebSocketDisconnect:
        manager.disconnect(connection)
    except Exception as e:
        logger.error(f"WebSocket error for user {user_id}: {str(e)}")
        manager.disconnect(connection)
