import json
import pytest
import httpx

from app.infrastructure.email.http_smtp_adapter import HttpSmtpEmailAdapter


def _adapter(handler, **kwargs) -> tuple[HttpSmtpEmailAdapter, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    adapter = HttpSmtpEmailAdapter(
        base_url="http://smtp-mock:8025/", client=client, **kwargs
    )
    return adapter, client


async def test_send_posts_json_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["json"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(202, text="Accepted")

    adapter, client = _adapter(handler)
    await adapter.send(to="a@a.com", subject="Hi", body="Hello")

    assert seen["url"] == "http://smtp-mock:8025/send"
    assert seen["json"] == {"to": "a@a.com", "subject": "Hi", "body": "Hello"}
    await client.aclose()


async def test_sender_is_forwarded():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["json"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json={"ok": True})

    adapter, client = _adapter(handler, sender="no-reply@example.com", send_path="mail")
    await adapter.send(to="b@a.com", subject="Hi", body="Hello")

    assert seen["json"]["from"] == "no-reply@example.com"
    assert seen["path"] == "/mail"
    await client.aclose()


async def test_non_2xx_raises_runtimeerror():
    adapter, client = _adapter(lambda _: httpx.Response(422, text="nope"))

    with pytest.raises(RuntimeError) as ei:
        await adapter.send(to="x@y.com", subject="S", body="B")

    assert "SMTP responded 422" in str(ei.value)
    assert "nope" in str(ei.value)
    await client.aclose()


async def test_network_error_is_wrapped_as_runtimeerror():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    adapter, client = _adapter(handler)
    with pytest.raises(RuntimeError, match="SMTP HTTP error:"):
        await adapter.send(to="x@y.com", subject="S", body="B")
    await client.aclose()


async def test_aclose_closes_owned_client_only():
    owned = HttpSmtpEmailAdapter(base_url="http://smtp-mock:8025")
    await owned.aclose()
    assert owned._client.is_closed  # type: ignore[attr-defined]

    adapter, shared = _adapter(lambda _: httpx.Response(200))
    await adapter.aclose()
    assert shared.is_closed is False
    await shared.aclose()
