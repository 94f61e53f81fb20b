"""
estate_identity/api/health.py — Health check эндпоинт.

GET /api/health — какое хранилище активно и доступен ли PostgreSQL.
"""

from fastapi import APIRouter

from estate_identity.database import check_connection, pool_is_active

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check Identity-сервиса")
async def health():
    """Без пула PostgreSQL сервис работает на in-memory хранилище (degraded)."""
    if not pool_is_active():
        return {"status": "degraded", "store": "memory", "service": "estate-identity"}
    db_ok = await check_connection()
    return {
        "status": "healthy" if db_ok else "degraded",
        "store": "postgres",
        "database": "connected" if db_ok else "disconnected",
        "service": "estate-identity",
    }
