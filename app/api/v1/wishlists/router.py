"""Wishlists API router"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List
import uuid

from app.core.database import get_db
from app.core.security import get_current_user
from app.services.email_service import EmailService, get_invitation_notifier
from .schemas import (
    WishlistCreate,
    ProductCreate,
    MemberInvite,
    CommentCreate,
    ReactionCreate,
    WishlistResponse,
    MemberAddedResponse,
    MessageResponse,
)
from .services import WishlistService

router = APIRouter()

def get_wishlist_service(
    db: AsyncSession = Depends(get_db),
    invitation_notifier: EmailService = Depends(get_invitation_notifier)
) -> WishlistService:
    return WishlistService(db, invitation_notifier=invitation_notifier)

@router.post("", response_model=WishlistResponse, status_code=status.HTTP_201_CREATED)
async def create_wishlist(
    data: WishlistCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Create a new wishlist"""
    return await service.create_wishlist(current_user["id"], data)

@router.get("", response_model=List[WishlistResponse])
async def list_wishlists(
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Get all wishlists the current user is a member of"""
    return await service.list_wishlists(current_user["id"])

@router.get("/{wishlist_id}", response_model=WishlistResponse)
async def get_wishlist(
    wishlist_id: uuid.UUID,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Get a specific wishlist"""
    return await service.get_wishlist(wishlist_id, current_user["id"])

@router.post("/{wishlist_id}/products", response_model=WishlistResponse)
async def add_product(
    wishlist_id: uuid.UUID,
    data: ProductCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Add a product to a wishlist"""
    return await service.add_product(wishlist_id, current_user["id"], data)

@router.post("/{wishlist_id}/members", response_model=MemberAddedResponse)
async def add_member(
    wishlist_id: uuid.UUID,
    data: MemberInvite,
    background_tasks: BackgroundTasks,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Invite a registered user to a wishlist by email"""
    return await service.add_member(wishlist_id, current_user["id"], data, background_tasks)

@router.post("/{wishlist_id}/products/{product_id}/comments", response_model=WishlistResponse)
async def add_comment(
    wishlist_id: uuid.UUID,
    product_id: uuid.UUID,
    data: CommentCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Comment on a product"""
    return await service.add_comment(wishlist_id, product_id, current_user["id"], data)

@router.post("/{wishlist_id}/products/{product_id}/reactions", response_model=WishlistResponse)
async def add_reaction(
    wishlist_id: uuid.UUID,
    product_id: uuid.UUID,
    data: ReactionCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Add or replace the current user's reaction on a product"""
    return await service.add_reaction(wishlist_id, product_id, current_user["id"], data)

@router.delete("/{wishlist_id}", response_model=MessageResponse)
async def delete_wishlist(
    wishlist_id: uuid.UUID,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Delete a wishlist"""
    return await service.delete_wishlist(wishlist_id, current_user["id"])

@router.delete("/{wishlist_id}/products/{product_id}", response_model=WishlistResponse)
async def delete_product(
    wishlist_id: uuid.UUID,
    product_id: uuid.UUID,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Delete a product from a wishlist"""
    return await service.delete_product(wishlist_id, product_id, current_user["id"])
