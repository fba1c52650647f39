from __future__ import annotations

import json
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.domain.errors import StoreUnavailable
from app.domain.ports.registration_session_cache import RegistrationSessionCachePort


class RedisRegistrationSessionCache(RegistrationSessionCachePort):
    """Registration sessions as JSON strings under `reg_session:<id>` with a TTL."""

    def __init__(self, redis: Redis, *, key_prefix: str = "reg_session:") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    async def save(
        self, session_id: str, data: dict[str, Any], ttl_seconds: int
    ) -> None:
        try:
            await self._redis.set(self._key(session_id), json.dumps(data), ex=ttl_seconds)
        except RedisError as e:
            raise StoreUnavailable(str(e)) from e

    async def load(self, session_id: str) -> Optional[dict[str, Any]]:
        try:
            raw = await self._redis.get(self._key(session_id))
        except RedisError as e:
            raise StoreUnavailable(str(e)) from e
        if raw is None:
            return None
        return json.loads(raw)

    async def delete(self, session_id: str) -> None:
        try:
            await self._redis.delete(self._key(session_id))
        except RedisError as e:
            raise StoreUnavailable(str(e)) from e
