"""Models package initialization"""

from .base import Base
from .user import User
from .wishlist import Wishlist, WishlistMember, WishlistProduct, ProductComment, ProductReaction

# Export all models
__all__ = [
    "Base",
    "User",
    "Wishlist",
    "WishlistMember",
    "WishlistProduct",
    "ProductComment",
    "ProductReaction",
]
