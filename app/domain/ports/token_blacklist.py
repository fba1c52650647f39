from __future__ import annotations

from typing import Protocol


class TokenBlacklistPort(Protocol):
    async def revoke(self, jti: str, ttl_seconds: int) -> None:
        """Remember `jti` as revoked for `ttl_seconds`."""

    async def is_revoked(self, jti: str) -> bool:
        """True if `jti` was revoked and has not aged out."""
