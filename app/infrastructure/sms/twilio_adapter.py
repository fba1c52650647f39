from __future__ import annotations

import logging
from typing import Optional

import httpx

from app.domain.ports.sms_port import SmsPort

logger = logging.getLogger(__name__)


class TwilioSmsAdapter(SmsPort):
    """
    Sends SMS through Twilio's Messages REST resource:
    POST {base}/2010-04-01/Accounts/{sid}/Messages.json (form-encoded, basic auth).
    """

    def __init__(
        self,
        *,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._base_url = base_url.rstrip("/")
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    @property
    def messages_url(self) -> str:
        return (
            f"{self._base_url}/2010-04-01/Accounts/{self._account_sid}/Messages.json"
        )

    async def send(self, *, to: str, body: str) -> None:
        if not (self._account_sid and self._auth_token and self._from_number):
            raise RuntimeError("Twilio credentials are not configured")

        data = {"To": to, "From": self._from_number, "Body": body}
        try:
            resp = await self._client.post(
                self.messages_url,
                data=data,
                auth=(self._account_sid, self._auth_token),
            )
        except httpx.HTTPError as e:
            raise RuntimeError(f"Twilio HTTP error: {e}") from e
        if not (200 <= resp.status_code < 300):
            raise RuntimeError(f"Twilio responded {resp.status_code}: {resp.text[:200]}")

        sid = None
        try:
            sid = resp.json().get("sid")
        except ValueError:
            pass
        logger.info("sms accepted", extra={"sid": sid, "status": resp.status_code})

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
