from __future__ import annotations

from typing import Protocol

from app.domain.entities import Contact, Purpose


class NotificationPort(Protocol):
    async def send_code(
        self, contact: Contact, code: str, purpose: Purpose, expires_in_minutes: int
    ) -> None:
        """Deliver `code` over the contact's channel. Raises DeliveryFailed."""
