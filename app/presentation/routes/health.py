import logging
from typing import Annotated

import psycopg
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from psycopg_pool import AsyncConnectionPool, PoolTimeout
from redis.asyncio import Redis

from app.infrastructure.redis_cache.pool import ping_redis
from app.presentation.dependencies import get_db_pool, get_redis_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


async def ping_database(pool: AsyncConnectionPool) -> bool:
    try:
        async with pool.connection() as conn:
            await conn.execute("SELECT 1")
        return True
    except (psycopg.Error, PoolTimeout, OSError):
        return False


@router.get("/healthz")
async def healthz() -> dict:
    """Liveness: the process answers."""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    pool: Annotated[AsyncConnectionPool, Depends(get_db_pool)],
    redis: Annotated[Redis, Depends(get_redis_client)],
):
    """Readiness: both backing stores answer."""
    checks = {
        "database": await ping_database(pool),
        "redis": await ping_redis(redis),
    }
    ready = all(checks.values())
    if not ready:
        logger.warning("not ready", extra={"checks": checks})
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if ready else "unavailable",
            "checks": {k: "ok" if v else "down" for k, v in checks.items()},
        },
    )
