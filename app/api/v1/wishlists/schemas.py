"""
Wishlist schemas for request/response validation
"""

from pydantic import AnyUrl, BaseModel, EmailStr, Field, TypeAdapter, ValidationError, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
import uuid

from app.middleware.security import InputSanitizer

_uri_adapter = TypeAdapter(AnyUrl)

def _require_text(value: str) -> str:
    value = InputSanitizer.sanitize_text(value)
    if not value:
        raise ValueError("must not be blank")
    return value

# Requests

class WishlistCreate(BaseModel):
    """Schema for creating a wishlist"""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _require_text(v)

class ProductCreate(BaseModel):
    """Schema for adding a product to a wishlist"""
    name: str = Field(..., min_length=1, max_length=255)
    image_url: str = Field(..., alias="imageUrl", min_length=1, max_length=1000)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)

    class Config:
        populate_by_name = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _require_text(v)

    @field_validator('image_url')
    @classmethod
    def validate_image_url(cls, v):
        # Stored as sent; only checked to parse as an absolute URI
        v = v.strip()
        try:
            _uri_adapter.validate_python(v)
        except ValidationError:
            raise ValueError("must be a valid URI")
        return v

class MemberInvite(BaseModel):
    """Schema for inviting a member by email"""
    email: EmailStr

class CommentCreate(BaseModel):
    """Schema for commenting on a product"""
    text: str = Field(..., min_length=1, max_length=2000)

    @field_validator('text')
    @classmethod
    def validate_text(cls, v):
        v = InputSanitizer.sanitize_message(v)
        if not v:
            raise ValueError("must not be blank")
        return v

class ReactionCreate(BaseModel):
    """Schema for reacting to a product"""
    emoji: str = Field(..., min_length=1, max_length=32)

    @field_validator('emoji')
    @classmethod
    def validate_emoji(cls, v):
        return _require_text(v)

# Responses

class UserSummary(BaseModel):
    """Display attributes of a user"""
    id: uuid.UUID
    username: str
    email: str

    class Config:
        from_attributes = True

class CommentResponse(BaseModel):
    id: uuid.UUID
    text: str
    user: UserSummary
    created_at: datetime

    class Config:
        from_attributes = True

class ReactionResponse(BaseModel):
    id: uuid.UUID
    emoji: str
    user: UserSummary

    class Config:
        from_attributes = True

class ProductResponse(BaseModel):
    """Schema for a product with its comments and reactions"""
    id: uuid.UUID
    name: str
    image_url: str
    price: Decimal
    added_by: UserSummary
    comments: List[CommentResponse] = []
    reactions: List[ReactionResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True

class WishlistResponse(BaseModel):
    """Fully populated wishlist view"""
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    creator: UserSummary
    members: List[UserSummary]
    products: List[ProductResponse] = []
    created_at: datetime

    class Config:
        from_attributes = True

    @property
    def creator_id(self) -> uuid.UUID:
        return self.creator.id

    @property
    def member_ids(self) -> set:
        return {member.id for member in self.members}

class MemberAddedResponse(BaseModel):
    wishlist: WishlistResponse
    message: str = "Member added successfully"

class MessageResponse(BaseModel):
    message: str
