from datetime import timedelta
from typing import Annotated, Callable, Optional

from fastapi import BackgroundTasks, Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import AsyncConnectionPool
from redis.asyncio import Redis

from app.application.password_reset import CredentialResetOrchestrator
from app.application.registration_session import RegistrationSessionManager
from app.application.verification import VerificationEngine
from app.domain.entities import AccessClaims, Account, Contact, Purpose
from app.domain.ports.code_store import CodeStorePort
from app.domain.ports.notification_port import NotificationPort
from app.domain.ports.registration_session_cache import RegistrationSessionCachePort
from app.domain.ports.token_blacklist import TokenBlacklistPort
from app.domain.ports.unit_of_work import UnitOfWorkPort
from app.infrastructure.db.pool import get_pool
from app.infrastructure.db.uow import PgUnitOfWork
from app.infrastructure.db.verification_codes_repo import PgVerificationCodeStore
from app.infrastructure.redis_cache.pool import get_redis
from app.infrastructure.redis_cache.sessions import RedisRegistrationSessionCache
from app.infrastructure.redis_cache.token_blacklist import RedisTokenBlacklist
from app.infrastructure.security.password import hash_password, verify_password
from app.infrastructure.security.tokens import create_access_token, decode_access_token
from app.settings import Settings, get_settings

bearer_scheme = HTTPBearer()


def get_db_pool() -> AsyncConnectionPool:
    return get_pool()


def get_redis_client() -> Redis:
    return get_redis()


def get_uow() -> UnitOfWorkPort:
    return PgUnitOfWork(get_pool())


def get_code_store() -> CodeStorePort:
    return PgVerificationCodeStore(get_pool())


def get_notifier(request: Request) -> NotificationPort:
    # This is set in app.main lifespan()
    return request.app.state.notifier


def get_session_cache() -> RegistrationSessionCachePort:
    return RedisRegistrationSessionCache(get_redis())


def get_token_blacklist() -> TokenBlacklistPort:
    return RedisTokenBlacklist(get_redis())


def get_hash_password() -> Callable[..., str]:
    return hash_password


def get_verify_password() -> Callable[[str, str], bool]:
    return verify_password


def get_issue_token() -> Callable[[str], str]:
    return create_access_token


def code_windows(settings: Settings) -> dict[Purpose, timedelta]:
    return {
        Purpose.REGISTRATION: timedelta(minutes=settings.registration_code_ttl_minutes),
        Purpose.PASSWORD_RESET: timedelta(
            minutes=settings.password_reset_code_ttl_minutes
        ),
        Purpose.EMAIL_VERIFICATION: timedelta(
            minutes=settings.email_verification_code_ttl_minutes
        ),
        Purpose.CHANGE_EMAIL: timedelta(minutes=settings.contact_change_code_ttl_minutes),
        Purpose.CHANGE_PHONE: timedelta(minutes=settings.contact_change_code_ttl_minutes),
    }


def get_engine(
    store: Annotated[CodeStorePort, Depends(get_code_store)],
    notifier: Annotated[NotificationPort, Depends(get_notifier)],
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
) -> VerificationEngine:
    settings = get_settings()

    async def find_account(contact: Contact) -> Optional[Account]:
        async with uow as transaction:
            return await transaction.accounts.find_by_contact(contact)

    return VerificationEngine(
        store,
        notifier,
        find_account=find_account,
        max_attempts=settings.code_attempts,
        code_length=settings.code_length,
        windows=code_windows(settings),
    )


def get_sessions(
    cache: Annotated[RegistrationSessionCachePort, Depends(get_session_cache)],
) -> RegistrationSessionManager:
    return RegistrationSessionManager(
        cache, ttl_seconds=get_settings().registration_session_ttl_seconds
    )


def get_reset_orchestrator(
    engine: Annotated[VerificationEngine, Depends(get_engine)],
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    hash_password: Annotated[Callable[..., str], Depends(get_hash_password)],
    background_tasks: BackgroundTasks,
) -> CredentialResetOrchestrator:
    # deferred work runs after the response is sent
    return CredentialResetOrchestrator(
        engine, uow, hash_password, defer=background_tasks.add_task
    )


def get_current_claims(
    auth: HTTPAuthorizationCredentials = Security(bearer_scheme),
) -> AccessClaims:
    return decode_access_token(auth.credentials)
