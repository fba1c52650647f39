import logging

from app.application.verification import IssuedCode, VerificationEngine
from app.domain.entities import Contact, Purpose
from app.domain.errors import AccountNotFound
from app.domain.ports.unit_of_work import UnitOfWorkPort

logger = logging.getLogger(__name__)

ALREADY_VERIFIED_MESSAGE = "Your email is already verified"


async def request_email_verification(
    engine: VerificationEngine,
    uow: UnitOfWorkPort,
    contact: Contact,
) -> IssuedCode | None:
    """Issue an email_verification code; None if the contact is already verified."""
    async with uow as transaction:
        account = await transaction.accounts.find_by_contact(contact)
    if account is None:
        raise AccountNotFound()
    if account.is_verified(contact.channel):
        logger.info("contact already verified", extra={"contact": contact.masked})
        return None
    return await engine.issue(contact, Purpose.EMAIL_VERIFICATION)


async def confirm_email_verification(
    engine: VerificationEngine,
    uow: UnitOfWorkPort,
    contact: Contact,
    code: str,
) -> None:
    await engine.validate(contact, Purpose.EMAIL_VERIFICATION, code)

    async with uow as transaction:
        account = await transaction.accounts.find_by_contact(contact)
        if account is None:
            raise AccountNotFound()
        await transaction.accounts.mark_contact_verified(account.id, contact.channel)
        await transaction.commit()
