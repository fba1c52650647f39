from __future__ import annotations

from typing import Any, Optional, Protocol


class RegistrationSessionCachePort(Protocol):
    async def save(self, session_id: str, data: dict[str, Any], ttl_seconds: int) -> None:
        """Store/replace the session payload and (re)start its TTL."""

    async def load(self, session_id: str) -> Optional[dict[str, Any]]:
        """Return the payload, or None if missing/expired."""

    async def delete(self, session_id: str) -> None:
        """Drop the session."""
