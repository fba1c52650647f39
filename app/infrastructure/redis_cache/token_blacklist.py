from __future__ import annotations

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.domain.errors import StoreUnavailable
from app.domain.ports.token_blacklist import TokenBlacklistPort


class RedisTokenBlacklist(TokenBlacklistPort):
    """
    Revoked access-token ids. Each marker lives exactly as long as the token
    it revokes would have, so the set never grows past the live tokens.
    """

    def __init__(self, redis: Redis, *, key_prefix: str = "jwt_revoked:") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _key(self, jti: str) -> str:
        return f"{self._prefix}{jti}"

    async def revoke(self, jti: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        try:
            await self._redis.set(self._key(jti), "1", ex=ttl_seconds)
        except RedisError as e:
            raise StoreUnavailable(str(e)) from e

    async def is_revoked(self, jti: str) -> bool:
        try:
            return bool(await self._redis.exists(self._key(jti)))
        except RedisError as e:
            raise StoreUnavailable(str(e)) from e
