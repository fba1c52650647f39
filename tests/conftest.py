from datetime import datetime, timedelta, timezone

import pytest

from app.application.registration_session import RegistrationSessionManager
from app.application.verification import VerificationEngine
from app.domain.entities import Account, Contact
from tests.fakes import (
    FakeAccountRepo,
    FakeCodeStore,
    FakeNotifier,
    FakeSessionCache,
    FakeUoW,
)

FIXED_CODE = "482913"


class Clock:
    """Mutable clock; call it for `now`, `advance()` to move forward."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return Clock()


@pytest.fixture()
def store():
    return FakeCodeStore()


@pytest.fixture()
def notifier():
    return FakeNotifier()


@pytest.fixture()
def accounts():
    return FakeAccountRepo()


@pytest.fixture()
def uow(accounts):
    return FakeUoW(accounts)


@pytest.fixture()
def engine(store, notifier, accounts, clock):
    return VerificationEngine(
        store,
        notifier,
        find_account=accounts.find_by_contact,
        max_attempts=5,
        clock=clock,
    )


@pytest.fixture()
def session_cache():
    return FakeSessionCache()


@pytest.fixture()
def sessions(session_cache):
    return RegistrationSessionManager(session_cache, ttl_seconds=1800)


@pytest.fixture()
def email_contact():
    return Contact.email("user@example.com")


@pytest.fixture()
def phone_contact():
    return Contact.phone("+15551234567")


@pytest.fixture()
def existing_account(accounts):
    return accounts.seed(
        Account(id="acc-existing", email="user@example.com", full_name="Ada")
    )


@pytest.fixture()
def hash_password_stub():
    return lambda p: "hashed-" + p


@pytest.fixture(autouse=True)
def patch_code(monkeypatch):
    """
    Make the generated code deterministic in all tests.
    You can override in a specific test by re-monkeypatching.
    """
    from app.domain import services as domain_services

    monkeypatch.setattr(domain_services, "generate_code", lambda length=6: FIXED_CODE)
    yield
