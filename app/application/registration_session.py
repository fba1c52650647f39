from __future__ import annotations

import time
from typing import Any, Callable

import app.domain.services as domain_services
from app.domain.entities import Contact, RegistrationSession, SessionStep
from app.domain.errors import SessionNotFound, VerificationRequired
from app.domain.ports.registration_session_cache import RegistrationSessionCachePort


class RegistrationSessionManager:
    """
    Threads initiate -> verify -> complete through a cache-backed session.

    The cache TTL is the only expiry; every write restarts it. Concurrent
    writers to one session id are last-write-wins.
    """

    def __init__(
        self,
        cache: RegistrationSessionCachePort,
        *,
        ttl_seconds: int = 30 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = cache
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    async def create_session(self, contact: Contact) -> str:
        session_id = domain_services.generate_session_id()
        now = self._clock()
        session = RegistrationSession(
            session_id=session_id,
            contact=contact,
            step=SessionStep.INITIATED,
            verified=False,
            created_at=now,
            updated_at=now,
        )
        await self._cache.save(session_id, session.to_dict(), self.ttl_seconds)
        return session_id

    async def get_session(self, session_id: str) -> RegistrationSession:
        raw = await self._cache.load(session_id) if session_id else None
        if not raw:
            raise SessionNotFound()
        return RegistrationSession.from_dict(session_id, raw)

    async def _save(self, session: RegistrationSession) -> RegistrationSession:
        session.updated_at = self._clock()
        await self._cache.save(session.session_id, session.to_dict(), self.ttl_seconds)
        return session

    async def mark_verified(self, session_id: str) -> RegistrationSession:
        session = await self.get_session(session_id)
        session.verified = True
        session.step = SessionStep.VERIFIED
        return await self._save(session)

    async def complete_session(
        self, session_id: str, user_data: dict[str, Any]
    ) -> RegistrationSession:
        session = await self.get_session(session_id)
        if not session.verified:
            raise VerificationRequired()
        session.data.update(user_data)
        session.step = SessionStep.COMPLETED
        return await self._save(session)

    async def delete_session(self, session_id: str) -> None:
        await self._cache.delete(session_id)
