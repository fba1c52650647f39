from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from app.domain.entities import Contact, Purpose, VerificationCode


class CodeStorePort(Protocol):
    async def upsert_active(
        self, contact: Contact, purpose: Purpose, code: str, expires_at: datetime
    ) -> VerificationCode:
        """
        Delete every unverified record for (contact, purpose), then insert a new
        one with attempt_count=0. At most one unverified record per key survives.
        """

    async def find_active(
        self, contact: Contact, purpose: Purpose
    ) -> Optional[VerificationCode]:
        """
        Return the unverified record for (contact, purpose), or None.
        Expiry and attempt cap are judged by the caller.
        """

    async def increment_attempt(
        self, contact: Contact, purpose: Purpose, cap: int
    ) -> Optional[int]:
        """
        Bump attempt_count of the unverified record by one, never past `cap`.
        Return the new count, or None if nothing was incremented.
        """

    async def mark_verified(self, code_id: int) -> None:
        """Flip verified to true."""

    async def delete(self, code_id: int) -> None:
        """Remove one record (used to roll back an undelivered code)."""

    async def issue_reset_token(self, code_id: int) -> str:
        """Store a fresh unique reset token on the record (token_used=false)."""

    async def find_by_reset_token(
        self, contact: Contact, token: str, now: datetime
    ) -> Optional[VerificationCode]:
        """Only matches verified, unused, unexpired records."""

    async def find_verified(
        self, contact: Contact, purpose: Purpose, now: datetime
    ) -> Optional[VerificationCode]:
        """Newest verified, unexpired record for (contact, purpose)."""

    async def mark_used_and_delete(self, code_id: int) -> bool:
        """
        Flip token_used false->true, then delete the record.
        Return False if the token was already used (nothing flipped).
        """

    async def delete_expired_and_used(
        self, now: datetime, contact: Contact | None = None
    ) -> int:
        """Housekeeping; return number of deleted records."""
