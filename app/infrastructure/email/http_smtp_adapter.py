from __future__ import annotations

import logging
from typing import Optional

import httpx

from app.domain.ports.email_port import EmailPort

logger = logging.getLogger(__name__)


class HttpSmtpEmailAdapter(EmailPort):
    """
    Posts `{"to", "subject", "body"[, "from"]}` as JSON to an HTTP mail relay.
    Any non-2xx answer or transport error is raised as RuntimeError.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
        send_path: str = "/send",
        sender: str | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._send_path = send_path if send_path.startswith("/") else f"/{send_path}"
        self._sender = sender
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, *, to: str, subject: str, body: str) -> None:
        url = f"{self._base_url}{self._send_path}"
        payload = {"to": to, "subject": subject, "body": body}
        if self._sender:
            payload["from"] = self._sender

        try:
            resp = await self._client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise RuntimeError(f"SMTP HTTP error: {e}") from e
        if not (200 <= resp.status_code < 300):
            raise RuntimeError(f"SMTP responded {resp.status_code}: {resp.text[:200]}")
        logger.debug("email accepted", extra={"status": resp.status_code})

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
