import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from app.domain.entities import Contact, Purpose
from app.infrastructure.db.verification_codes_repo import PgVerificationCodeStore

pytestmark = pytest.mark.integration

EMAIL = Contact.email("store@example.com")
PHONE = Contact.phone("+15551234567")


def _in(minutes: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)


async def test_upsert_keeps_one_active_record(pool):
    store = PgVerificationCodeStore(pool)

    await store.upsert_active(EMAIL, Purpose.REGISTRATION, "111111", _in(30))
    second = await store.upsert_active(EMAIL, Purpose.REGISTRATION, "222222", _in(30))

    active = await store.find_active(EMAIL, Purpose.REGISTRATION)
    assert active.id == second.id and active.code == "222222"
    assert active.attempt_count == 0
    assert active.contact == EMAIL


async def test_concurrent_issuers_converge(pool):
    store = PgVerificationCodeStore(pool)
    await asyncio.gather(
        *(
            store.upsert_active(PHONE, Purpose.REGISTRATION, f"{i:06d}", _in(30))
            for i in range(5)
        )
    )
    async with pool.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT count(*) FROM verification_codes WHERE phone = %s AND verified = false",
                (PHONE.value,),
            )
            (count,) = await cur.fetchone()
    assert count == 1


async def test_increment_is_capped(pool):
    store = PgVerificationCodeStore(pool)
    await store.upsert_active(EMAIL, Purpose.PASSWORD_RESET, "123456", _in(5))

    counts = [await store.increment_attempt(EMAIL, Purpose.PASSWORD_RESET, 2) for _ in range(3)]
    assert counts == [1, 2, None]


async def test_reset_token_lifecycle(pool):
    store = PgVerificationCodeStore(pool)
    record = await store.upsert_active(EMAIL, Purpose.PASSWORD_RESET, "123456", _in(5))
    await store.mark_verified(record.id)

    found = await store.find_verified(EMAIL, Purpose.PASSWORD_RESET, datetime.now(timezone.utc))
    token = await store.issue_reset_token(found.id)
    assert len(token) == 64

    now = datetime.now(timezone.utc)
    assert (await store.find_by_reset_token(EMAIL, token, now)).id == record.id
    assert await store.find_by_reset_token(PHONE, token, now) is None

    assert await store.mark_used_and_delete(record.id) is True
    assert await store.mark_used_and_delete(record.id) is False
    assert await store.find_by_reset_token(EMAIL, token, now) is None


async def test_cleanup_only_touches_expired_or_used(pool):
    store = PgVerificationCodeStore(pool)
    await store.upsert_active(EMAIL, Purpose.REGISTRATION, "111111", _in(-1))
    await store.upsert_active(PHONE, Purpose.REGISTRATION, "222222", _in(30))

    deleted = await store.delete_expired_and_used(datetime.now(timezone.utc))
    assert deleted == 1
    assert await store.find_active(PHONE, Purpose.REGISTRATION) is not None
