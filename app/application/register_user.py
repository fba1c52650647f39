from dataclasses import dataclass
from typing import Callable

from app.application.registration_session import RegistrationSessionManager
from app.application.verification import VerificationEngine
from app.domain.entities import Account, Contact, Purpose
from app.domain.ports.unit_of_work import UnitOfWorkPort


@dataclass(frozen=True)
class RegistrationStarted:
    session_id: str
    message: str


@dataclass(frozen=True)
class RegistrationCompleted:
    account: Account
    access_token: str


async def initiate_registration(
    engine: VerificationEngine,
    sessions: RegistrationSessionManager,
    contact: Contact,
) -> RegistrationStarted:
    # code first: a failed send must not leave a session behind
    issued = await engine.issue(contact, Purpose.REGISTRATION)
    session_id = await sessions.create_session(contact)
    return RegistrationStarted(session_id=session_id, message=issued.message)


async def verify_registration(
    engine: VerificationEngine,
    sessions: RegistrationSessionManager,
    session_id: str,
    code: str,
) -> None:
    session = await sessions.get_session(session_id)
    await engine.validate(session.contact, Purpose.REGISTRATION, code)
    await sessions.mark_verified(session_id)


async def complete_registration(
    uow: UnitOfWorkPort,
    sessions: RegistrationSessionManager,
    session_id: str,
    full_name: str,
    password: str,
    hash_password: Callable[..., str],
    issue_token: Callable[[str], str],
) -> RegistrationCompleted:
    session = await sessions.complete_session(session_id, {"full_name": full_name})
    hashed_password = hash_password(password)

    async with uow as transaction:
        account = await transaction.accounts.create(
            session.contact,
            hashed_password,
            full_name=full_name,
            contact_verified=True,
        )
        await transaction.commit()

    await sessions.delete_session(session_id)
    return RegistrationCompleted(account=account, access_token=issue_token(account.id))
