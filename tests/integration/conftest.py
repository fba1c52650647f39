# tests/integration/conftest.py
import pytest_asyncio
from redis.asyncio import Redis

from app.settings import get_settings
from tests.integration.db_fixtures import pool  # noqa: F401


@pytest_asyncio.fixture
async def redis_client():
    r = Redis.from_url(
        get_settings().redis_url, encoding="utf-8", decode_responses=True
    )
    try:
        yield r
    finally:
        await r.aclose()


async def flush_prefix(redis, prefix: str) -> None:
    keys = await redis.keys(f"{prefix}*")
    if keys:
        await redis.delete(*keys)
