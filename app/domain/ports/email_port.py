from __future__ import annotations

from typing import Protocol


class EmailPort(Protocol):
    """Outbound mail transport used by the notification gateway."""

    async def send(self, *, to: str, subject: str, body: str) -> None:
        """
        Hand one plain-text message to the transport.
        Raises RuntimeError when the message was not accepted.
        """
