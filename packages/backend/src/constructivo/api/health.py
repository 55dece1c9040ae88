"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and
dependencies (database, Redis) are reachable. Also reports how many
realtime connections are open.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text

from constructivo import __version__
from constructivo.db.engine import engine
from constructivo.realtime.invalidation import get_registry
from constructivo.realtime.registry import ConnectionRegistry

router = APIRouter()


@router.get("/health")
async def health_check(registry: ConnectionRegistry = Depends(get_registry)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    # Redis only backs rate limiting; reported, not required
    try:
        from constructivo.db.redis_pool import get_redis

        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"unavailable: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"

    return {
        "status": status,
        **checks,
        "realtime": {"connections": len(registry), "admins": registry.admin_count},
    }
