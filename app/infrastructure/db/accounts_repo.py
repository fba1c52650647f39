from __future__ import annotations

import uuid
from typing import Optional

import psycopg
from psycopg import errors as pg_errors

from app.domain.entities import Account, Channel, Contact
from app.domain.errors import AccountAlreadyExists, StoreUnavailable
from app.domain.ports.account_repository import AccountRepositoryPort

_ACCOUNT_COLUMNS = "id, email, phone, full_name, email_verified, phone_verified"


def _to_account(row: tuple) -> Account:
    id_, email, phone, full_name, email_verified, phone_verified = row
    return Account(
        id=str(id_),
        email=email,
        phone=phone,
        full_name=full_name,
        email_verified=bool(email_verified),
        phone_verified=bool(phone_verified),
    )


def _contact_clause(contact: Contact) -> tuple[str, str]:
    if contact.channel is Channel.EMAIL:
        return "email = %s", contact.value
    return "phone = %s", contact.value


class PgAccountRepository(AccountRepositoryPort):
    """
    Postgres implementation of AccountRepositoryPort.

    NOTE:
    - This repo is constructed with an *active async connection* supplied by the UoW.
    - It does not commit; the UnitOfWork controls the transaction boundary.
    """

    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    async def _fetchone(self, sql: str, params: tuple) -> Optional[tuple]:
        try:
            async with self._conn.cursor() as cur:
                await cur.execute(sql, params)
                return await cur.fetchone()
        except psycopg.Error as e:
            raise StoreUnavailable(str(e)) from e

    async def find_by_contact(self, contact: Contact) -> Optional[Account]:
        clause, value = _contact_clause(contact)
        row = await self._fetchone(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE {clause}", (value,)
        )
        return _to_account(row) if row else None

    async def get_with_hash_by_contact(
        self, contact: Contact
    ) -> Optional[tuple[Account, str]]:
        clause, value = _contact_clause(contact)
        row = await self._fetchone(
            f"SELECT {_ACCOUNT_COLUMNS}, password_hash FROM accounts WHERE {clause}",
            (value,),
        )
        if not row:
            return None
        return _to_account(row[:-1]), row[-1]

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        try:
            uuid.UUID(str(account_id))
        except ValueError:
            # ids are uuids; anything else can not match and would abort the transaction
            return None
        row = await self._fetchone(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = %s", (account_id,)
        )
        return _to_account(row) if row else None

    async def create(
        self,
        contact: Contact,
        password_hash: str,
        full_name: str | None = None,
        contact_verified: bool = False,
    ) -> Account:
        email, phone = contact.as_columns()
        sql = f"""
        INSERT INTO accounts
            (email, phone, full_name, password_hash, email_verified, phone_verified)
        VALUES (%s, %s, %s, %s, %s, %s)
        RETURNING {_ACCOUNT_COLUMNS}
        """
        params = (
            email,
            phone,
            full_name,
            password_hash,
            contact_verified and email is not None,
            contact_verified and phone is not None,
        )
        try:
            async with self._conn.cursor() as cur:
                await cur.execute(sql, params)
                row = await cur.fetchone()
        except pg_errors.UniqueViolation as e:
            raise AccountAlreadyExists() from e
        except psycopg.Error as e:
            raise StoreUnavailable(str(e)) from e

        if not row:
            raise RuntimeError("account insert returned no row")
        return _to_account(row)

    async def update_password_hash(self, account_id: str, password_hash: str) -> None:
        await self._fetchone(
            """
            UPDATE accounts SET password_hash = %s, updated_at = now()
            WHERE id = %s
            RETURNING id
            """,
            (password_hash, account_id),
        )

    async def mark_contact_verified(self, account_id: str, channel: Channel) -> None:
        column = "email_verified" if channel is Channel.EMAIL else "phone_verified"
        await self._fetchone(
            f"""
            UPDATE accounts SET {column} = true, updated_at = now()
            WHERE id = %s
            RETURNING id
            """,
            (account_id,),
        )
