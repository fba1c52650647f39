from __future__ import annotations

from typing import Optional
from psycopg_pool import AsyncConnectionPool
from app.settings import get_settings

_pool: Optional[AsyncConnectionPool] = None


def _add_connect_timeout(dsn: str, seconds: int = 3) -> str:
    if "connect_timeout=" in dsn:
        return dsn
    sep = "&" if "?" in dsn else "?"
    return f"{dsn}{sep}connect_timeout={seconds}"


def get_pool() -> AsyncConnectionPool:
    """
    Create (if needed) and return the global pool WITHOUT opening it.
    Opening is the lifespan's job.
    """
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = AsyncConnectionPool(
            _add_connect_timeout(settings.database_url),
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            timeout=settings.db_pool_timeout_seconds,
            open=False,
        )
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
