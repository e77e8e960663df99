"""WebSocket change notifications for wishlist rooms"""

from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging
import uuid

from app.core.websocket import manager, ConnectionManager, Connection
from app.core.monitoring import notifications_sent

logger = logging.getLogger(__name__)

PRODUCT_ADDED = "product-added"
PRODUCT_DELETED = "product-deleted"
MEMBER_ADDED = "member-added"
REFRESH_WISHLIST = "refresh-wishlist"

class WebSocketNotificationService:
    """
    Pushes change notifications to everyone viewing a wishlist

    Notifications are hints for clients to merge or re-fetch; the database
    stays authoritative.
    """

    def __init__(self, connection_manager: Optional[ConnectionManager] = None):
        self.manager = connection_manager or manager

    async def _emit(
        self,
        event: str,
        wishlist_id: uuid.UUID,
        data: Dict[str, Any],
        exclude: Optional[Connection] = None
    ) -> int:
        message = {
            "event": event,
            "wishlist_id": str(wishlist_id),
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
        delivered = await self.manager.broadcast_to_room(str(wishlist_id), message, exclude=exclude)
        notifications_sent.labels(event=event).inc()
        logger.info(f"Sent {event} for wishlist {wishlist_id} to {delivered} connection(s)")
        return delivered

    async def send_product_added(self, wishlist_id: uuid.UUID, product: Dict[str, Any]) -> int:
        return await self._emit(PRODUCT_ADDED, wishlist_id, {
            "wishlistId": str(wishlist_id),
            "product": product
        })

    async def send_product_deleted(self, wishlist_id: uuid.UUID, product_id: uuid.UUID) -> int:
        return await self._emit(PRODUCT_DELETED, wishlist_id, {
            "wishlistId": str(wishlist_id),
            "productId": str(product_id)
        })

    async def send_member_added(self, wishlist_id: uuid.UUID, member: Dict[str, Any]) -> int:
        return await self._emit(MEMBER_ADDED, wishlist_id, {
            "wishlistId": str(wishlist_id),
            "member": member
        })

    async def send_refresh(
        self,
        wishlist_id: uuid.UUID,
        exclude: Optional[Connection] = None
    ) -> int:
        """Ask viewers to re-fetch the whole wishlist"""
        return await self._emit(REFRESH_WISHLIST, wishlist_id, {
            "wishlistId": str(wishlist_id)
        }, exclude=exclude)
