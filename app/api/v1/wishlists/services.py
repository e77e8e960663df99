"""
Wishlist service layer
Handles authorization, persistence and change notifications for wishlists
"""

from typing import Any, Dict, List, Optional
from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import uuid

from app.core.config import settings
from app.core.cache import get_cached_wishlist, cache_wishlist, invalidate_wishlist
from app.core.exceptions import (
    ForbiddenException,
    InviteeNotFoundException,
    AlreadyMemberException,
    ProductNotFoundException,
    WishlistNotFoundException,
)
from app.models import Wishlist
from app.services.email_service import EmailService
from app.services.notification_websocket import WebSocketNotificationService
from . import permissions
from .crud import UserCRUD, WishlistCRUD
from .schemas import (
    WishlistCreate,
    ProductCreate,
    MemberInvite,
    CommentCreate,
    ReactionCreate,
    WishlistResponse,
    MemberAddedResponse,
)

logger = logging.getLogger(__name__)

class WishlistService:
    """
    Application operations on shared wishlists

    Each mutation resolves the wishlist, checks the policy against the
    current snapshot, applies the write, re-fetches the populated wishlist
    and only then notifies the wishlist's room.
    """

    def __init__(
        self,
        db: AsyncSession,
        notifier: Optional[WebSocketNotificationService] = None,
        invitation_notifier: Optional[EmailService] = None
    ):
        self.db = db
        self.notifier = notifier or WebSocketNotificationService()
        self.invitation_notifier = invitation_notifier or EmailService()

    async def _get_wishlist(self, wishlist_id: uuid.UUID) -> Wishlist:
        wishlist = await WishlistCRUD.get_by_id(self.db, wishlist_id)
        if not wishlist:
            raise WishlistNotFoundException()
        return wishlist

    async def _refresh_view(self, wishlist_id: uuid.UUID) -> WishlistResponse:
        """Re-fetch the populated wishlist and refresh its cached view"""
        wishlist = await self._get_wishlist(wishlist_id)
        view = WishlistResponse.model_validate(wishlist)
        await cache_wishlist(wishlist_id, view.model_dump(mode="json"))
        return view

    async def create_wishlist(self, user_id: uuid.UUID, data: WishlistCreate) -> WishlistResponse:
        """Create wishlist owned by the caller"""
        wishlist = await WishlistCRUD.create_wishlist(
            self.db,
            name=data.name,
            description=data.description,
            creator_id=user_id
        )
        logger.info(f"User {user_id} created wishlist {wishlist.id}")
        return WishlistResponse.model_validate(wishlist)

    async def list_wishlists(self, user_id: uuid.UUID) -> List[WishlistResponse]:
        """Get wishlists the caller is a member of"""
        wishlists = await WishlistCRUD.list_for_member(self.db, user_id)
        return [WishlistResponse.model_validate(wishlist) for wishlist in wishlists]

    async def get_wishlist(self, wishlist_id: uuid.UUID, user_id: uuid.UUID) -> WishlistResponse:
        """
        Get populated wishlist through the read cache

        Raises:
            WishlistNotFoundException: If wishlist not found
            ForbiddenException: If the caller is not a member
        """
        cached = await get_cached_wishlist(wishlist_id)
        if cached is not None:
            view = WishlistResponse.model_validate(cached)
        else:
            view = await self._refresh_view(wishlist_id)

        if not permissions.can_view(view, user_id):
            raise ForbiddenException("Not authorized to view this wishlist")
        return view

    async def add_product(
        self,
        wishlist_id: uuid.UUID,
        user_id: uuid.UUID,
        data: ProductCreate
    ) -> WishlistResponse:
        """Append product added by the caller"""
        wishlist = await self._get_wishlist(wishlist_id)
        if not permissions.can_add_product(wishlist, user_id):
            raise ForbiddenException("Not authorized to add to this wishlist")

        product = await WishlistCRUD.append_product(
            self.db,
            wishlist_id=wishlist_id,
            name=data.name,
            image_url=data.image_url,
            price=data.price,
            added_by_id=user_id
        )
        product_id = product.id

        view = await self._refresh_view(wishlist_id)
        added = next((p for p in view.products if p.id == product_id), None)
        if added is not None:
            await self.notifier.send_product_added(wishlist_id, added.model_dump(mode="json"))

        logger.info(f"User {user_id} added product {product_id} to wishlist {wishlist_id}")
        return view

    async def add_member(
        self,
        wishlist_id: uuid.UUID,
        user_id: uuid.UUID,
        data: MemberInvite,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> MemberAddedResponse:
        """
        Invite a registered user by email

        The invitation email is sent after the membership is stored; a failed
        delivery is logged and does not undo the membership.
        """
        wishlist = await self._get_wishlist(wishlist_id)
        if not permissions.can_add_member(wishlist, user_id):
            raise ForbiddenException("Only the creator can add members")

        invitee = await UserCRUD.get_by_email(self.db, data.email)
        if not invitee:
            raise InviteeNotFoundException(data.email)

        if invitee.id in wishlist.member_ids:
            raise AlreadyMemberException()

        invitee_id, invitee_email = invitee.id, invitee.email
        wishlist_name, inviter_name = wishlist.name, wishlist.creator.username

        await WishlistCRUD.append_member(self.db, wishlist_id, invitee_id)

        view = await self._refresh_view(wishlist_id)
        member = next((m for m in view.members if m.id == invitee_id), None)
        if member is not None:
            await self.notifier.send_member_added(wishlist_id, member.model_dump(mode="json"))

        logger.info(f"User {user_id} added member {invitee_id} to wishlist {wishlist_id}")

        invitation = (invitee_email, wishlist_name, inviter_name, settings.join_link(wishlist_id))
        if background_tasks is not None:
            background_tasks.add_task(self.send_invitation, *invitation)
        else:
            await self.send_invitation(*invitation)

        return MemberAddedResponse(wishlist=view)

    async def send_invitation(
        self,
        to_email: str,
        wishlist_name: str,
        inviter_name: str,
        join_link: str
    ) -> bool:
        """Deliver the invitation email; never raises"""
        try:
            sent = await self.invitation_notifier.notify(to_email, wishlist_name, inviter_name, join_link)
        except Exception as e:
            logger.error(f"Invitation to {to_email} failed: {str(e)}")
            return False

        if not sent:
            logger.warning(f"Invitation to {to_email} for '{wishlist_name}' was not delivered")
        return sent

    async def add_comment(
        self,
        wishlist_id: uuid.UUID,
        product_id: uuid.UUID,
        user_id: uuid.UUID,
        data: CommentCreate
    ) -> WishlistResponse:
        """Comment on a product"""
        wishlist = await self._get_wishlist(wishlist_id)
        if not permissions.can_comment(wishlist, user_id):
            raise ForbiddenException("Not authorized to comment on this wishlist")

        await WishlistCRUD.append_comment(self.db, wishlist_id, product_id, user_id, data.text)

        view = await self._refresh_view(wishlist_id)
        await self.notifier.send_refresh(wishlist_id)
        return view

    async def add_reaction(
        self,
        wishlist_id: uuid.UUID,
        product_id: uuid.UUID,
        user_id: uuid.UUID,
        data: ReactionCreate
    ) -> WishlistResponse:
        """Add or replace the caller's reaction on a product"""
        wishlist = await self._get_wishlist(wishlist_id)
        if not permissions.can_react(wishlist, user_id):
            raise ForbiddenException("Not authorized to react on this wishlist")

        await WishlistCRUD.upsert_reaction(self.db, wishlist_id, product_id, user_id, data.emoji)

        view = await self._refresh_view(wishlist_id)
        await self.notifier.send_refresh(wishlist_id)
        return view

    async def delete_wishlist(self, wishlist_id: uuid.UUID, user_id: uuid.UUID) -> Dict[str, Any]:
        """Delete wishlist; creator only"""
        wishlist = await self._get_wishlist(wishlist_id)
        if not permissions.can_delete_wishlist(wishlist, user_id):
            raise ForbiddenException("Only the creator can delete this wishlist")

        if not await WishlistCRUD.delete_wishlist(self.db, wishlist_id):
            raise WishlistNotFoundException()

        await invalidate_wishlist(wishlist_id)
        await self.notifier.send_refresh(wishlist_id)

        logger.info(f"User {user_id} deleted wishlist {wishlist_id}")
        return {"message": "Wishlist deleted successfully"}

    async def delete_product(
        self,
        wishlist_id: uuid.UUID,
        product_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> WishlistResponse:
        """
        Delete product; allowed for the wishlist creator and the product's adder

        The check runs against a freshly fetched wishlist, never the cache.
        """
        wishlist = await self._get_wishlist(wishlist_id)
        if not permissions.is_member(wishlist, user_id):
            raise ForbiddenException("Not authorized to modify this wishlist")

        product = wishlist.get_product(product_id)
        if product is None:
            raise ProductNotFoundException()

        if not permissions.can_delete_product(wishlist, product, user_id):
            raise ForbiddenException("Not authorized to delete this product")

        await WishlistCRUD.remove_product(self.db, wishlist_id, product_id)

        view = await self._refresh_view(wishlist_id)
        await self.notifier.send_product_deleted(wishlist_id, product_id)

        logger.info(f"User {user_id} deleted product {product_id} from wishlist {wishlist_id}")
        return view
