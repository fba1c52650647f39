import pytest
from fastapi.testclient import TestClient

from app.domain.errors import DomainError, StoreUnavailable
from app.presentation.errors import ERROR_MAP, describe
from app.presentation.dependencies import get_code_store


class _BrokenStore:
    async def delete_expired_and_used(self, now, contact=None):
        raise StoreUnavailable("connection refused to 10.0.0.5")


def test_store_outage_is_503_without_internals(app_and_deps, client: TestClient):
    app, _ = app_and_deps
    app.dependency_overrides[get_code_store] = lambda: _BrokenStore()

    r = client.post("/v1/auth/register", json={"email": "a@example.com"})
    assert r.status_code == 503
    assert r.json()["code"] == "store_unavailable"
    assert "10.0.0.5" not in r.text


@pytest.mark.parametrize("error_type", list(ERROR_MAP))
def test_every_domain_error_has_a_stable_code(error_type):
    status_code, code, detail = describe(error_type())
    assert 400 <= status_code < 600
    assert code and detail


def test_unmapped_subclass_falls_back():
    class Odd(DomainError):
        pass

    assert describe(Odd())[1] == "domain_error"
