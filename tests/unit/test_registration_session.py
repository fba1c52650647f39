import pytest

from app.application.registration_session import RegistrationSessionManager
from app.domain.entities import SessionStep
from app.domain.errors import SessionNotFound, VerificationRequired


async def test_create_and_get_session(sessions, session_cache, email_contact):
    session_id = await sessions.create_session(email_contact)

    session = await sessions.get_session(session_id)
    assert session.contact == email_contact
    assert session.step is SessionStep.INITIATED
    assert session.verified is False
    assert session_cache.ttls[session_id] == 1800


async def test_scenario_d_complete_before_verify(sessions, email_contact):
    session_id = await sessions.create_session(email_contact)

    with pytest.raises(VerificationRequired):
        await sessions.complete_session(session_id, {"full_name": "Ada"})


async def test_verify_then_complete(sessions, email_contact):
    session_id = await sessions.create_session(email_contact)
    await sessions.mark_verified(session_id)

    session = await sessions.complete_session(session_id, {"full_name": "Ada"})
    assert session.step is SessionStep.COMPLETED
    assert session.data == {"full_name": "Ada"}


async def test_every_write_refreshes_ttl(session_cache, email_contact):
    ticks = iter([100.0, 200.0, 300.0])
    sessions = RegistrationSessionManager(
        session_cache, ttl_seconds=60, clock=lambda: next(ticks)
    )
    session_id = await sessions.create_session(email_contact)
    session_cache.ttls[session_id] = 0

    updated = await sessions.mark_verified(session_id)
    assert session_cache.ttls[session_id] == 60
    assert updated.created_at == 100.0 and updated.updated_at == 200.0


async def test_missing_or_expired_session(sessions, session_cache, email_contact):
    with pytest.raises(SessionNotFound):
        await sessions.get_session("nope")

    session_id = await sessions.create_session(email_contact)
    session_cache.expire(session_id)
    with pytest.raises(SessionNotFound):
        await sessions.mark_verified(session_id)


async def test_delete_session(sessions, email_contact):
    session_id = await sessions.create_session(email_contact)
    await sessions.delete_session(session_id)
    with pytest.raises(SessionNotFound):
        await sessions.get_session(session_id)
