"""
Wishlist access policy

Pure decisions over a wishlist snapshot and the caller id. Nothing here
touches the database; callers raise ForbiddenException on a deny.
"""

import uuid

def is_member(wishlist, user_id: uuid.UUID) -> bool:
    return user_id in wishlist.member_ids

def is_creator(wishlist, user_id: uuid.UUID) -> bool:
    return wishlist.creator_id == user_id

def can_view(wishlist, user_id: uuid.UUID) -> bool:
    return is_member(wishlist, user_id)

def can_add_product(wishlist, user_id: uuid.UUID) -> bool:
    return is_member(wishlist, user_id)

def can_add_member(wishlist, user_id: uuid.UUID) -> bool:
    """Only the creator invites"""
    return is_member(wishlist, user_id) and is_creator(wishlist, user_id)

def can_comment(wishlist, user_id: uuid.UUID) -> bool:
    return is_member(wishlist, user_id)

def can_react(wishlist, user_id: uuid.UUID) -> bool:
    return is_member(wishlist, user_id)

def can_delete_wishlist(wishlist, user_id: uuid.UUID) -> bool:
    return is_creator(wishlist, user_id)

def can_delete_product(wishlist, product, user_id: uuid.UUID) -> bool:
    """Members may delete a product if they created the wishlist or added the product"""
    if not is_member(wishlist, user_id):
        return False
    return is_creator(wishlist, user_id) or product.added_by_id == user_id
