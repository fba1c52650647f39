import base64
from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from app.domain.entities import Account
from app.main import create_app
from app.presentation.dependencies import (
    get_code_store,
    get_hash_password,
    get_notifier,
    get_session_cache,
    get_token_blacklist,
    get_uow,
    get_verify_password,
)
from tests.fakes import (
    FakeCodeStore,
    FakeNotifier,
    FakeSessionCache,
    FakeTokenBlacklist,
    FakeUoW,
)


@dataclass
class Deps:
    uow: FakeUoW
    store: FakeCodeStore
    notifier: FakeNotifier
    session_cache: FakeSessionCache
    blacklist: FakeTokenBlacklist


@pytest.fixture()
def app_and_deps():
    app = create_app()
    deps = Deps(
        uow=FakeUoW(),
        store=FakeCodeStore(),
        notifier=FakeNotifier(),
        session_cache=FakeSessionCache(),
        blacklist=FakeTokenBlacklist(),
    )

    app.dependency_overrides[get_uow] = lambda: deps.uow
    app.dependency_overrides[get_code_store] = lambda: deps.store
    app.dependency_overrides[get_notifier] = lambda: deps.notifier
    app.dependency_overrides[get_session_cache] = lambda: deps.session_cache
    app.dependency_overrides[get_token_blacklist] = lambda: deps.blacklist
    app.dependency_overrides[get_hash_password] = lambda: (lambda p: "hashed-" + p)
    app.dependency_overrides[get_verify_password] = lambda: (
        lambda plain, hashed: hashed == "hashed-" + plain
    )

    try:
        yield app, deps
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _ = app_and_deps
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def deps(app_and_deps) -> Deps:
    return app_and_deps[1]


@pytest.fixture()
def seeded_account(deps) -> Account:
    return deps.uow.accounts.seed(
        Account(id="acc-1", email="login@example.com", full_name="Login User"),
        password_hash="hashed-s3cret",
    )


def basic_auth(username: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
