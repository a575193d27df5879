from fastapi import APIRouter, HTTPException
from typing import Dict, Any
import logging

from app.core.config import settings
from app.db.async_session import get_async_db_manager, check_async_database_health
from app.services.supabase_auth import supabase_configured

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=Dict[str, Any])
async def health_check():
    """
    Basic health check endpoint.

    Returns:
        dict: Service status and which post store backend is active
    """
    result = {
        "status": "healthy",
        "service": "content-platform-api",
        "store_backend": settings.STORE_BACKEND,
        "identity_provider": "configured" if supabase_configured() else "not_configured",
    }
    if settings.STORE_BACKEND != "database":
        return result

    try:
        manager = await get_async_db_manager()
        connection_test = await manager.test_connection()
    except (ValueError, RuntimeError) as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unavailable")

    result["status"] = "healthy" if connection_test else "unhealthy"
    result["database"] = "connected" if connection_test else "disconnected"
    return result


@router.get("/database", response_model=Dict[str, Any])
async def database_health_check():
    """
    Database health check with connection pool information.

    Returns:
        dict: Detailed database health status
    """
    health_status = await check_async_database_health()
    if health_status["status"] != "healthy":
        raise HTTPException(status_code=503, detail=health_status)
    return health_status
