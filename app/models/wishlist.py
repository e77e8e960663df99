"""
Shared wishlist models

A wishlist owns its memberships and products; products own their
comments and reactions. Children are deleted with their parent.
"""

from sqlalchemy import Column, String, Text, Numeric, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from .base import BaseModel, TimestampedModel, UUIDModel

class Wishlist(BaseModel, TimestampedModel, UUIDModel):
    """Wishlist shared between its members"""

    __tablename__ = "wishlists"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    creator_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    creator = relationship("User", foreign_keys=[creator_id])
    memberships = relationship(
        "WishlistMember",
        back_populates="wishlist",
        cascade="all, delete-orphan",
        order_by="WishlistMember.created_at",
    )
    products = relationship(
        "WishlistProduct",
        back_populates="wishlist",
        cascade="all, delete-orphan",
        order_by="WishlistProduct.created_at",
    )

    @property
    def member_ids(self) -> set:
        return {membership.user_id for membership in self.memberships}

    @property
    def members(self) -> list:
        """Member users, in the order they joined"""
        return [membership.user for membership in self.memberships]

    def get_product(self, product_id):
        """Find a product of this wishlist by id"""
        for product in self.products:
            if product.id == product_id:
                return product
        return None

class WishlistMember(BaseModel, TimestampedModel, UUIDModel):
    """Membership of a user in a wishlist"""

    __tablename__ = "wishlist_members"

    wishlist_id = Column(Uuid(as_uuid=True), ForeignKey("wishlists.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Relationships
    wishlist = relationship("Wishlist", back_populates="memberships")
    user = relationship("User", back_populates="memberships")

    # Constraints
    __table_args__ = (
        UniqueConstraint("wishlist_id", "user_id", name="uq_wishlist_member"),
        Index("idx_wishlist_member_user", "user_id"),
    )

class WishlistProduct(BaseModel, TimestampedModel, UUIDModel):
    """Product entry inside a wishlist"""

    __tablename__ = "wishlist_products"

    wishlist_id = Column(Uuid(as_uuid=True), ForeignKey("wishlists.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    image_url = Column(String(1000), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    added_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Relationships
    wishlist = relationship("Wishlist", back_populates="products")
    added_by = relationship("User", foreign_keys=[added_by_id])
    comments = relationship(
        "ProductComment",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductComment.created_at",
    )
    reactions = relationship(
        "ProductReaction",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductReaction.created_at",
    )

class ProductComment(BaseModel, TimestampedModel, UUIDModel):
    """Append-only comment on a product"""

    __tablename__ = "product_comments"

    product_id = Column(Uuid(as_uuid=True), ForeignKey("wishlist_products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)

    # Relationships
    product = relationship("WishlistProduct", back_populates="comments")
    user = relationship("User")

class ProductReaction(BaseModel, TimestampedModel, UUIDModel):
    """Emoji reaction; one per user and product"""

    __tablename__ = "product_reactions"

    product_id = Column(Uuid(as_uuid=True), ForeignKey("wishlist_products.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    emoji = Column(String(32), nullable=False)

    # Relationships
    product = relationship("WishlistProduct", back_populates="reactions")
    user = relationship("User")

    # Constraints
    __table_args__ = (
        UniqueConstraint("product_id", "user_id", name="uq_product_reaction_user"),
    )
