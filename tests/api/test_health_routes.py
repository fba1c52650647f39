from contextlib import asynccontextmanager

import psycopg
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from app.presentation.dependencies import get_db_pool, get_redis_client


class _Conn:
    async def execute(self, sql):
        return None


class _Pool:
    def __init__(self, up: bool = True) -> None:
        self.up = up

    @asynccontextmanager
    async def connection(self):
        if not self.up:
            raise psycopg.OperationalError("connection refused")
        yield _Conn()


class _Redis:
    def __init__(self, up: bool = True) -> None:
        self.up = up

    async def ping(self):
        if not self.up:
            raise RedisConnectionError("down")
        return True


def test_healthz(client: TestClient):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_ready_when_both_stores_answer(app_and_deps, client: TestClient):
    app, _ = app_and_deps
    app.dependency_overrides[get_db_pool] = lambda: _Pool()
    app.dependency_overrides[get_redis_client] = lambda: _Redis()

    r = client.get("/readyz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "checks": {"database": "ok", "redis": "ok"}}


def test_not_ready_when_a_store_is_down(app_and_deps, client: TestClient):
    app, _ = app_and_deps
    app.dependency_overrides[get_db_pool] = lambda: _Pool(up=False)
    app.dependency_overrides[get_redis_client] = lambda: _Redis()

    r = client.get("/readyz")
    assert r.status_code == 503
    assert r.json()["checks"] == {"database": "down", "redis": "ok"}
