from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

import app.domain.services as domain_services
from app.domain.entities import Contact, Purpose, VerificationCode
from app.domain.errors import StoreUnavailable
from app.domain.ports.code_store import CodeStorePort

_COLUMNS = """
    id, email, phone, code, type, verified, reset_token, token_used,
    attempt_count, expires_at, verify_type, created_at, updated_at
"""

# (email, phone, verify_type) identify the contact; NULL-safe on both columns
_CONTACT_MATCH = """
    email IS NOT DISTINCT FROM %(email)s
    AND phone IS NOT DISTINCT FROM %(phone)s
    AND verify_type = %(channel)s
"""


def _key(contact: Contact, purpose: Purpose | None = None) -> dict:
    email, phone = contact.as_columns()
    params = {"email": email, "phone": phone, "channel": contact.channel.value}
    if purpose is not None:
        params["purpose"] = purpose.value
    return params


def _to_code(row: dict) -> VerificationCode:
    return VerificationCode(
        id=int(row["id"]),
        contact=Contact.from_columns(row["email"], row["phone"]),
        code=row["code"],
        purpose=Purpose(row["type"]),
        expires_at=row["expires_at"],
        verified=bool(row["verified"]),
        attempt_count=int(row["attempt_count"] or 0),
        reset_token=row["reset_token"],
        token_used=bool(row["token_used"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PgVerificationCodeStore(CodeStorePort):
    """
    Postgres-backed code store over the `verification_codes` table.

    Each method borrows its own pooled connection and runs in its own
    transaction; there is no caller-controlled transaction here.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    @asynccontextmanager
    async def _cursor(self) -> AsyncIterator[psycopg.AsyncCursor]:
        try:
            async with self._pool.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor(row_factory=dict_row) as cur:
                        yield cur
        except psycopg.Error as e:
            raise StoreUnavailable(str(e)) from e

    async def upsert_active(
        self, contact: Contact, purpose: Purpose, code: str, expires_at: datetime
    ) -> VerificationCode:
        params = {**_key(contact, purpose), "code": code, "expires_at": expires_at}
        delete_sql = f"""
        DELETE FROM verification_codes
        WHERE {_CONTACT_MATCH} AND type = %(purpose)s AND verified = false
        """
        # the partial unique index makes racing issuers converge on one row
        insert_sql = f"""
        INSERT INTO verification_codes
            (email, phone, code, type, verify_type, expires_at)
        VALUES
            (%(email)s, %(phone)s, %(code)s, %(purpose)s, %(channel)s, %(expires_at)s)
        ON CONFLICT ((coalesce(email, '')), (coalesce(phone, '')), type, verify_type)
            WHERE verified = false
        DO UPDATE SET
            code = EXCLUDED.code,
            expires_at = EXCLUDED.expires_at,
            attempt_count = 0,
            reset_token = NULL,
            token_used = false,
            updated_at = now()
        RETURNING {_COLUMNS}
        """
        async with self._cursor() as cur:
            await cur.execute(delete_sql, params)
            await cur.execute(insert_sql, params)
            row = await cur.fetchone()
        if not row:
            raise StoreUnavailable("verification code insert returned no row")
        return _to_code(row)

    async def find_active(
        self, contact: Contact, purpose: Purpose
    ) -> Optional[VerificationCode]:
        sql = f"""
        SELECT {_COLUMNS} FROM verification_codes
        WHERE {_CONTACT_MATCH} AND type = %(purpose)s AND verified = false
        ORDER BY created_at DESC
        LIMIT 1
        """
        async with self._cursor() as cur:
            await cur.execute(sql, _key(contact, purpose))
            row = await cur.fetchone()
        return _to_code(row) if row else None

    async def increment_attempt(
        self, contact: Contact, purpose: Purpose, cap: int
    ) -> Optional[int]:
        sql = f"""
        UPDATE verification_codes
        SET attempt_count = attempt_count + 1, updated_at = now()
        WHERE {_CONTACT_MATCH} AND type = %(purpose)s AND verified = false
          AND attempt_count < %(cap)s
        RETURNING attempt_count
        """
        async with self._cursor() as cur:
            await cur.execute(sql, {**_key(contact, purpose), "cap": cap})
            row = await cur.fetchone()
        return int(row["attempt_count"]) if row else None

    async def mark_verified(self, code_id: int) -> None:
        async with self._cursor() as cur:
            await cur.execute(
                """
                UPDATE verification_codes SET verified = true, updated_at = now()
                WHERE id = %(id)s
                """,
                {"id": code_id},
            )

    async def delete(self, code_id: int) -> None:
        async with self._cursor() as cur:
            await cur.execute(
                "DELETE FROM verification_codes WHERE id = %(id)s", {"id": code_id}
            )

    async def issue_reset_token(self, code_id: int) -> str:
        token = domain_services.generate_reset_token()
        async with self._cursor() as cur:
            await cur.execute(
                """
                UPDATE verification_codes
                SET reset_token = %(token)s, token_used = false, updated_at = now()
                WHERE id = %(id)s
                """,
                {"token": token, "id": code_id},
            )
        return token

    async def find_by_reset_token(
        self, contact: Contact, token: str, now: datetime
    ) -> Optional[VerificationCode]:
        sql = f"""
        SELECT {_COLUMNS} FROM verification_codes
        WHERE {_CONTACT_MATCH}
          AND reset_token = %(token)s
          AND verified = true
          AND token_used = false
          AND expires_at >= %(now)s
        """
        async with self._cursor() as cur:
            await cur.execute(sql, {**_key(contact), "token": token, "now": now})
            row = await cur.fetchone()
        return _to_code(row) if row else None

    async def find_verified(
        self, contact: Contact, purpose: Purpose, now: datetime
    ) -> Optional[VerificationCode]:
        sql = f"""
        SELECT {_COLUMNS} FROM verification_codes
        WHERE {_CONTACT_MATCH} AND type = %(purpose)s
          AND verified = true
          AND token_used = false
          AND expires_at >= %(now)s
        ORDER BY updated_at DESC
        LIMIT 1
        """
        async with self._cursor() as cur:
            await cur.execute(sql, {**_key(contact, purpose), "now": now})
            row = await cur.fetchone()
        return _to_code(row) if row else None

    async def mark_used_and_delete(self, code_id: int) -> bool:
        # flip happens-before delete, both inside one transaction
        async with self._cursor() as cur:
            await cur.execute(
                """
                UPDATE verification_codes SET token_used = true, updated_at = now()
                WHERE id = %(id)s AND token_used = false
                RETURNING id
                """,
                {"id": code_id},
            )
            if await cur.fetchone() is None:
                return False
            await cur.execute(
                "DELETE FROM verification_codes WHERE id = %(id)s", {"id": code_id}
            )
        return True

    async def delete_expired_and_used(
        self, now: datetime, contact: Contact | None = None
    ) -> int:
        sql = """
        DELETE FROM verification_codes
        WHERE (expires_at < %(now)s OR token_used = true)
        """
        params: dict = {"now": now}
        if contact is not None:
            sql += f" AND {_CONTACT_MATCH}"
            params.update(_key(contact))
        async with self._cursor() as cur:
            await cur.execute(sql, params)
            return cur.rowcount
