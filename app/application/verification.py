from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Mapping, Optional

import app.domain.services as domain_services
from app.domain.entities import Account, Contact, Purpose, VerificationCode
from app.domain.errors import (
    AccountAlreadyExists,
    CodeExpired,
    CodeNotFound,
    DeliveryFailed,
    InvalidCode,
    InvalidResetToken,
    ResetTokenUsed,
    TooManyAttempts,
)
from app.domain.ports.code_store import CodeStorePort
from app.domain.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

DEFAULT_WINDOWS: Mapping[Purpose, timedelta] = {
    Purpose.REGISTRATION: timedelta(minutes=30),
    Purpose.PASSWORD_RESET: timedelta(minutes=5),
    Purpose.EMAIL_VERIFICATION: timedelta(minutes=30),
    Purpose.CHANGE_EMAIL: timedelta(minutes=30),
    Purpose.CHANGE_PHONE: timedelta(minutes=30),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IssuedCode:
    message: str
    expires_at: datetime


class VerificationEngine:
    """
    Issues, validates and retires one-time codes.

    One unverified code per (contact, purpose). Every validate call spends one
    attempt before the value is compared; a correct value past its expiry is
    reported as CodeExpired rather than InvalidCode.
    """

    def __init__(
        self,
        store: CodeStorePort,
        notifier: NotificationPort,
        *,
        find_account: Callable[[Contact], Awaitable[Optional[Account]]],
        max_attempts: int = 5,
        code_length: int = 6,
        windows: Mapping[Purpose, timedelta] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._find_account = find_account
        self.max_attempts = max_attempts
        self.code_length = code_length
        self._windows = {**DEFAULT_WINDOWS, **(windows or {})}
        self._clock = clock

    def window(self, purpose: Purpose) -> timedelta:
        return self._windows[purpose]

    def _expiry(self, purpose: Purpose) -> datetime:
        return self._clock() + self.window(purpose)

    async def issue(self, contact: Contact, purpose: Purpose) -> IssuedCode:
        if purpose is Purpose.REGISTRATION and await self._find_account(contact):
            raise AccountAlreadyExists()

        await self.cleanup(contact)

        code = domain_services.generate_code(self.code_length)
        expires_at = self._expiry(purpose)
        record = await self._store.upsert_active(contact, purpose, code, expires_at)

        minutes = int(self.window(purpose).total_seconds() // 60)
        try:
            await self._notifier.send_code(contact, code, purpose, minutes)
        except Exception as exc:
            # no orphaned codes: an undelivered code must not stay active
            await self._store.delete(record.id)
            logger.warning(
                "code delivery failed; record rolled back",
                extra={
                    "contact": contact.masked,
                    "channel": contact.channel.value,
                    "purpose": purpose.value,
                },
            )
            if isinstance(exc, DeliveryFailed):
                raise
            raise DeliveryFailed(str(exc)) from exc

        logger.info(
            "verification code issued",
            extra={
                "contact": contact.masked,
                "channel": contact.channel.value,
                "purpose": purpose.value,
                "expires_at": expires_at.isoformat(),
            },
        )
        return IssuedCode(
            message=f"Verification code sent to your {contact.channel.value}",
            expires_at=expires_at,
        )

    def simulate_issue(self, purpose: Purpose) -> IssuedCode:
        """Same work as issue() minus persistence and delivery."""
        domain_services.generate_code(self.code_length)
        return IssuedCode(message="", expires_at=self._expiry(purpose))

    async def validate(
        self, contact: Contact, purpose: Purpose, submitted_code: str
    ) -> VerificationCode:
        record = await self._store.find_active(contact, purpose)
        if record is None:
            raise CodeNotFound()

        extra = {"contact": contact.masked, "purpose": purpose.value}
        if record.attempts_exhausted(self.max_attempts):
            logger.warning("too many verification attempts", extra=extra)
            raise TooManyAttempts()

        attempts = await self._store.increment_attempt(
            contact, purpose, cap=self.max_attempts
        )
        if attempts is None:
            # a concurrent validator spent the last attempt
            raise TooManyAttempts()
        record.attempt_count = attempts

        if not domain_services.secure_compare(submitted_code or "", record.code):
            logger.warning(
                "invalid verification code", extra={**extra, "attempts": attempts}
            )
            raise InvalidCode()

        if record.is_expired(self._clock()):
            logger.warning("expired verification code", extra=extra)
            raise CodeExpired()

        await self._store.mark_verified(record.id)
        record.verified = True
        logger.info("verification code accepted", extra=extra)
        return record

    async def issue_reset_token(
        self, contact: Contact, purpose: Purpose = Purpose.PASSWORD_RESET
    ) -> str:
        record = await self._store.find_verified(contact, purpose, self._clock())
        if record is None:
            raise CodeNotFound()
        return await self._store.issue_reset_token(record.id)

    async def check_reset_token(
        self, contact: Contact, token: str, purpose: Purpose = Purpose.PASSWORD_RESET
    ) -> VerificationCode:
        record = await self._store.find_by_reset_token(contact, token, self._clock())
        if record is None or record.purpose is not purpose:
            logger.warning("invalid reset token", extra={"contact": contact.masked})
            raise InvalidResetToken()
        if record.token_used:
            raise ResetTokenUsed()
        return record

    async def consume_reset_token(
        self, contact: Contact, token: str, purpose: Purpose = Purpose.PASSWORD_RESET
    ) -> Contact:
        record = await self.check_reset_token(contact, token, purpose)
        if not await self._store.mark_used_and_delete(record.id):
            raise ResetTokenUsed()
        logger.info("reset token consumed", extra={"contact": contact.masked})
        return record.contact

    async def cleanup(self, contact: Contact | None = None) -> int:
        deleted = await self._store.delete_expired_and_used(self._clock(), contact)
        if deleted:
            logger.info("verification codes cleaned up", extra={"deleted": deleted})
        return deleted
