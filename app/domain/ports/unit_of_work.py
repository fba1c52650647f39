from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Protocol, Type

from app.domain.ports.account_repository import AccountRepositoryPort


@dataclass
class UnitOfWorkPort(Protocol):
    """
    Transaction boundary for account changes.

    Usage:
        async with uow as tx:
            account = await tx.accounts.create(contact, pwd_hash)
            await tx.commit()
    """

    accounts: AccountRepositoryPort

    async def __aenter__(self) -> "UnitOfWorkPort":
        """Begin a new transaction. Code here runs before code in the context manager."""

    async def __aexit__(
        self,
        exc_type: Type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """End the transaction. Rolls back unless committed."""

    async def commit(self) -> None:
        """Commit the transaction."""

    async def rollback(self) -> None:
        """Rollback the transaction."""
