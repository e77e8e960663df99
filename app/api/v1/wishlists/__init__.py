"""Wishlists module exports"""

from . import router, schemas, services, crud, permissions

__all__ = ["router", "schemas", "services", "crud", "permissions"]
