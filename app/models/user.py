"""
User model
Identities are issued elsewhere; wishlists reference them by id and
resolve username and email for display
"""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from .base import BaseModel, TimestampedModel, UUIDModel

class User(BaseModel, TimestampedModel, UUIDModel):
    """Registered user"""

    __tablename__ = "users"

    username = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    memberships = relationship("WishlistMember", back_populates="user")
