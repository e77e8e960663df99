"""API v1 routes aggregation"""

from fastapi import APIRouter

from .wishlists.router import router as wishlists_router
from .websocket_routes import router as websocket_router

# Create v1 router
api_router = APIRouter()

# Include all routers
api_router.include_router(wishlists_router, prefix="/wishlists", tags=["Wishlists"])
api_router.include_router(websocket_router, tags=["Realtime"])

# Export router
router = api_router
