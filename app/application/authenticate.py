from datetime import datetime, timezone
from typing import Callable

from app.domain.entities import AccessClaims, Account, Contact
from app.domain.errors import InvalidAccessToken, InvalidCredentials
from app.domain.ports.token_blacklist import TokenBlacklistPort
from app.domain.ports.unit_of_work import UnitOfWorkPort


async def login(
    uow: UnitOfWorkPort,
    contact: Contact,
    password: str,
    verify_password: Callable[[str, str], bool],
    issue_token: Callable[[str], str],
) -> str:
    async with uow as transaction:
        record = await transaction.accounts.get_with_hash_by_contact(contact)
    if not record:
        raise InvalidCredentials()
    account, password_hash = record
    if not password_hash or not verify_password(password, password_hash):
        raise InvalidCredentials()
    return issue_token(account.id)


async def logout(blacklist: TokenBlacklistPort, claims: AccessClaims) -> None:
    remaining = int((claims.expires_at - datetime.now(timezone.utc)).total_seconds())
    if remaining > 0:
        await blacklist.revoke(claims.jti, remaining)


async def resolve_account(
    uow: UnitOfWorkPort,
    blacklist: TokenBlacklistPort,
    claims: AccessClaims,
) -> Account:
    if await blacklist.is_revoked(claims.jti):
        raise InvalidAccessToken("token revoked")
    async with uow as transaction:
        account = await transaction.accounts.get_by_id(claims.subject)
    if account is None:
        raise InvalidAccessToken("unknown account")
    return account
