from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable

from app.application.verification import VerificationEngine
from app.domain.entities import Contact, Purpose
from app.domain.errors import AccountNotFound, DomainError
from app.domain.ports.unit_of_work import UnitOfWorkPort

logger = logging.getLogger(__name__)

GENERIC_RESET_MESSAGE = (
    "If an account exists for this contact, a password reset code has been sent"
)

# schedule(func, *args): run `await func(*args)` after the caller has answered
Defer = Callable[..., None]

_background: set[asyncio.Task] = set()


def spawn(func: Callable[..., Awaitable[Any]], *args: Any) -> None:
    """Default Defer: an event-loop task, strongly referenced until done."""
    task = asyncio.get_running_loop().create_task(func(*args))
    _background.add(task)
    task.add_done_callback(_background.discard)


async def drain() -> None:
    """Wait for every task started by `spawn`."""
    if _background:
        await asyncio.gather(*list(_background), return_exceptions=True)


@dataclass(frozen=True)
class ResetRequested:
    message: str
    expires_at: datetime


@dataclass(frozen=True)
class ResetCodeVerified:
    verified: bool
    reset_token: str
    expires_at: datetime


class CredentialResetOrchestrator:
    """
    request_code -> verify_code -> reset_password.

    request_code answers identically, in content and in time, whether or not
    the contact has an account: storing and delivering the code is deferred
    past the response. reset_password updates the credential before the token
    is spent, so a failed update leaves the token usable.
    """

    def __init__(
        self,
        engine: VerificationEngine,
        uow: UnitOfWorkPort,
        hash_password: Callable[..., str],
        *,
        defer: Defer = spawn,
    ) -> None:
        self._engine = engine
        self._uow = uow
        self._hash_password = hash_password
        self._defer = defer

    async def request_code(self, contact: Contact) -> ResetRequested:
        async with self._uow as transaction:
            account = await transaction.accounts.find_by_contact(contact)

        answer = self._engine.simulate_issue(Purpose.PASSWORD_RESET)
        if account is None:
            logger.info(
                "password reset requested for unknown contact",
                extra={"contact": contact.masked},
            )
        else:
            self._defer(self._issue_code, contact)
        return ResetRequested(GENERIC_RESET_MESSAGE, answer.expires_at)

    async def _issue_code(self, contact: Contact) -> None:
        # nobody is waiting on this anymore; failures can only be logged
        try:
            await self._engine.issue(contact, Purpose.PASSWORD_RESET)
        except DomainError:
            logger.exception(
                "password reset code not issued", extra={"contact": contact.masked}
            )

    async def verify_code(self, contact: Contact, code: str) -> ResetCodeVerified:
        record = await self._engine.validate(contact, Purpose.PASSWORD_RESET, code)
        token = await self._engine.issue_reset_token(contact, Purpose.PASSWORD_RESET)
        return ResetCodeVerified(
            verified=True, reset_token=token, expires_at=record.expires_at
        )

    async def reset_password(
        self, contact: Contact, reset_token: str, new_password: str
    ) -> Contact:
        await self._engine.check_reset_token(contact, reset_token)
        password_hash = self._hash_password(new_password)

        async with self._uow as transaction:
            account = await transaction.accounts.find_by_contact(contact)
            if account is None:
                raise AccountNotFound()
            await transaction.accounts.update_password_hash(account.id, password_hash)
            await transaction.commit()

        consumed = await self._engine.consume_reset_token(contact, reset_token)
        logger.info("password reset", extra={"contact": contact.masked})
        return consumed
