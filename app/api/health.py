"""Health check endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Any
from datetime import datetime, timezone

from app.core.database import get_db
from app.core.cache import cache
from app.core.config import settings
from app.core.websocket import manager

router = APIRouter()

@router.get("/health")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

@router.get("/health/detailed")
async def detailed_health_check(
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """Detailed health check with component status"""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {}
    }

    # Check database
    try:
        await db.execute(text("SELECT 1"))
        health_status["components"]["database"] = {"status": "healthy"}
    except Exception as e:
        health_status["components"]["database"] = {
            "status": "unhealthy",
            "error": str(e)
        }
        health_status["status"] = "unhealthy"

    # Check cache backend
    if cache.redis_client is not None:
        try:
            await cache.redis_client.ping()
            health_status["components"]["cache"] = {"status": "healthy", "backend": "redis"}
        except Exception as e:
            health_status["components"]["cache"] = {
                "status": "unhealthy",
                "backend": "redis",
                "error": str(e)
            }
            health_status["status"] = "degraded"
    else:
        health_status["components"]["cache"] = {"status": "healthy", "backend": "memory"}

    health_status["components"]["realtime"] = {
        "status": "healthy",
        "connected_users": len(manager.active_connections),
        "open_rooms": len(manager.rooms)
    }

    return health_status
