from __future__ import annotations

from typing import Optional, Protocol

from app.domain.entities import Account, Channel, Contact


class AccountRepositoryPort(Protocol):
    async def find_by_contact(self, contact: Contact) -> Optional[Account]:
        """Return the account owning the email/phone, or None."""

    async def get_with_hash_by_contact(
        self, contact: Contact
    ) -> tuple[Account, str] | None:
        """Fetch account and its password hash; None if not found."""

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        """Return the account or None."""

    async def create(
        self,
        contact: Contact,
        password_hash: str,
        full_name: str | None = None,
        contact_verified: bool = False,
    ) -> Account:
        """Insert a new account. Raises AccountAlreadyExists on duplicate contact."""

    async def update_password_hash(self, account_id: str, password_hash: str) -> None:
        """Replace the stored credential."""

    async def mark_contact_verified(self, account_id: str, channel: Channel) -> None:
        """Set email_verified or phone_verified."""
