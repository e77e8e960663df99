"""
Wishlist CRUD operations
Database operations for wishlists and their nested collections

Every write commits its own transaction, so each operation either fully
applies to the wishlist or leaves it unchanged.
"""

from typing import List, Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
import logging
import uuid

from app.models import User, Wishlist, WishlistMember, WishlistProduct, ProductComment, ProductReaction
from app.core.exceptions import (
    AlreadyMemberException,
    ProductNotFoundException,
    UnauthorizedException,
    WishlistNotFoundException,
)

logger = logging.getLogger(__name__)

def _populated_options():
    """Loader options resolving every user reference of a wishlist"""
    products = selectinload(Wishlist.products)
    return (
        selectinload(Wishlist.creator),
        selectinload(Wishlist.memberships).selectinload(WishlistMember.user),
        products.selectinload(WishlistProduct.added_by),
        products.selectinload(WishlistProduct.comments).selectinload(ProductComment.user),
        products.selectinload(WishlistProduct.reactions).selectinload(ProductReaction.user),
    )

class UserCRUD:
    """User lookups for resolving identities"""

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        """Get active user by email, case-insensitively"""
        result = await db.execute(
            select(User).where(
                func.lower(User.email) == email.strip().lower(),
                User.is_active == True
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def create(db: AsyncSession, username: str, email: str) -> User:
        user = User(username=username, email=email.strip().lower())
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

class WishlistCRUD:
    """Wishlist CRUD operations"""

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        wishlist_id: uuid.UUID
    ) -> Optional[Wishlist]:
        """Get fully populated wishlist by ID"""
        result = await db.execute(
            select(Wishlist)
            .where(Wishlist.id == wishlist_id)
            .options(*_populated_options())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_for_member(
        db: AsyncSession,
        user_id: uuid.UUID
    ) -> List[Wishlist]:
        """Get all wishlists the user is a member of, newest first"""
        result = await db.execute(
            select(Wishlist)
            .join(WishlistMember, WishlistMember.wishlist_id == Wishlist.id)
            .where(WishlistMember.user_id == user_id)
            .options(*_populated_options())
            .order_by(Wishlist.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().unique().all())

    @staticmethod
    async def create_wishlist(
        db: AsyncSession,
        name: str,
        description: Optional[str],
        creator_id: uuid.UUID
    ) -> Wishlist:
        """Create wishlist with its creator as first member"""
        wishlist = Wishlist(
            name=name,
            description=description,
            creator_id=creator_id,
            memberships=[WishlistMember(user_id=creator_id)],
        )
        db.add(wishlist)
        try:
            await db.commit()
        except IntegrityError:
            # Token subject has no row in users
            await db.rollback()
            raise UnauthorizedException("Unknown user", error_code="UNKNOWN_USER")
        return await WishlistCRUD.get_by_id(db, wishlist.id)

    @staticmethod
    async def append_product(
        db: AsyncSession,
        wishlist_id: uuid.UUID,
        name: str,
        image_url: str,
        price: Decimal,
        added_by_id: uuid.UUID
    ) -> WishlistProduct:
        """Append product to the end of the wishlist"""
        product = WishlistProduct(
            wishlist_id=wishlist_id,
            name=name,
            image_url=image_url,
            price=price,
            added_by_id=added_by_id,
        )
        db.add(product)
        try:
            await db.commit()
        except IntegrityError:
            # The wishlist was deleted concurrently
            await db.rollback()
            raise WishlistNotFoundException()
        return product

    @staticmethod
    async def remove_product(
        db: AsyncSession,
        wishlist_id: uuid.UUID,
        product_id: uuid.UUID
    ) -> None:
        """
        Remove product with its comments and reactions

        Raises:
            ProductNotFoundException: If the product is not in the wishlist,
                including when a concurrent request removed it first
        """
        result = await db.execute(
            delete(WishlistProduct)
            .where(
                WishlistProduct.id == product_id,
                WishlistProduct.wishlist_id == wishlist_id
            )
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        if result.rowcount == 0:
            raise ProductNotFoundException()

    @staticmethod
    async def append_member(
        db: AsyncSession,
        wishlist_id: uuid.UUID,
        user_id: uuid.UUID
    ) -> WishlistMember:
        """
        Add user to the member set

        Raises:
            AlreadyMemberException: If the user is already a member
        """
        existing = await db.execute(
            select(WishlistMember.id).where(
                WishlistMember.wishlist_id == wishlist_id,
                WishlistMember.user_id == user_id
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise AlreadyMemberException()

        membership = WishlistMember(wishlist_id=wishlist_id, user_id=user_id)
        db.add(membership)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race against an identical invite
            await db.rollback()
            raise AlreadyMemberException()
        return membership

    @staticmethod
    async def _get_product(
        db: AsyncSession,
        wishlist_id: uuid.UUID,
        product_id: uuid.UUID
    ) -> WishlistProduct:
        result = await db.execute(
            select(WishlistProduct).where(
                WishlistProduct.id == product_id,
                WishlistProduct.wishlist_id == wishlist_id
            )
        )
        product = result.scalar_one_or_none()
        if not product:
            raise ProductNotFoundException()
        return product

    @staticmethod
    async def append_comment(
        db: AsyncSession,
        wishlist_id: uuid.UUID,
        product_id: uuid.UUID,
        user_id: uuid.UUID,
        text: str
    ) -> ProductComment:
        """Append comment to a product"""
        product = await WishlistCRUD._get_product(db, wishlist_id, product_id)

        comment = ProductComment(product_id=product.id, user_id=user_id, text=text)
        db.add(comment)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ProductNotFoundException()
        return comment

    @staticmethod
    async def upsert_reaction(
        db: AsyncSession,
        wishlist_id: uuid.UUID,
        product_id: uuid.UUID,
        user_id: uuid.UUID,
        emoji: str
    ) -> ProductReaction:
        """
        Replace the user's reaction on a product

        The previous reaction of the user is removed and the new one is
        appended, so it moves to the end while other reactions keep their
        order. Concurrent upserts by the same user resolve last-write-wins.
        """
        product = await WishlistCRUD._get_product(db, wishlist_id, product_id)
        # Rollback expires loaded objects
        product_pk = product.id

        for attempt in range(2):
            await db.execute(
                delete(ProductReaction)
                .where(
                    ProductReaction.product_id == product_pk,
                    ProductReaction.user_id == user_id
                )
                .execution_options(synchronize_session=False)
            )
            reaction = ProductReaction(product_id=product_pk, user_id=user_id, emoji=emoji)
            db.add(reaction)
            try:
                await db.commit()
                return reaction
            except IntegrityError:
                await db.rollback()
                if attempt:
                    raise
                logger.info(
                    f"Concurrent reaction by user {user_id} on product {product_id}, retrying"
                )

    @staticmethod
    async def delete_wishlist(
        db: AsyncSession,
        wishlist_id: uuid.UUID
    ) -> bool:
        """Delete wishlist with all memberships, products, comments and reactions"""
        wishlist = await WishlistCRUD.get_by_id(db, wishlist_id)
        if not wishlist:
            return False

        await db.delete(wishlist)
        await db.commit()
        return True
