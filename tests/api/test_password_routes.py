from fastapi.testclient import TestClient

from app.application.password_reset import GENERIC_RESET_MESSAGE
from tests.conftest import FIXED_CODE


def test_request_is_generic_for_known_and_unknown(client: TestClient, seeded_account, deps):
    known = client.post("/v1/auth/password/request", json={"email": seeded_account.email})
    unknown = client.post("/v1/auth/password/request", json={"email": "who@example.com"})

    assert known.status_code == unknown.status_code == 202
    assert known.json()["message"] == unknown.json()["message"] == GENERIC_RESET_MESSAGE
    assert set(known.json()) == set(unknown.json())
    assert len(deps.notifier.sent) == 1


def test_verify_and_reset(client: TestClient, seeded_account, deps):
    email = seeded_account.email
    client.post("/v1/auth/password/request", json={"email": email})

    r = client.post("/v1/auth/password/verify", json={"email": email, "code": FIXED_CODE})
    assert r.status_code == 200, r.text
    token = r.json()["reset_token"]
    assert r.json()["verified"] is True

    r = client.post(
        "/v1/auth/password/reset",
        json={"email": email, "reset_token": token, "new_password": "n3w-passw0rd"},
    )
    assert r.status_code == 200, r.text
    assert r.json() == {"status": "ok"}
    assert deps.uow.accounts.hashes["acc-1"] == "hashed-n3w-passw0rd"

    # second use of the same token
    r = client.post(
        "/v1/auth/password/reset",
        json={"email": email, "reset_token": token, "new_password": "another-0ne"},
    )
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_reset_token"


def test_verify_without_code(client: TestClient, seeded_account):
    r = client.post(
        "/v1/auth/password/verify", json={"email": seeded_account.email, "code": FIXED_CODE}
    )
    assert r.status_code == 404
    assert r.json()["code"] == "code_not_found"


def test_overlong_new_password_is_rejected(client: TestClient, seeded_account, deps):
    r = client.post(
        "/v1/auth/password/reset",
        json={
            "email": seeded_account.email,
            "reset_token": "whatever",
            "new_password": "x" * 200,
        },
    )
    assert r.status_code == 422
    assert deps.uow.accounts.hashes["acc-1"] == "hashed-s3cret"
