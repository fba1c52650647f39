from __future__ import annotations

import logging

from app.domain.entities import Channel, Contact, Purpose
from app.domain.errors import DeliveryFailed
from app.domain.ports.email_port import EmailPort
from app.domain.ports.notification_port import NotificationPort
from app.domain.ports.sms_port import SmsPort

logger = logging.getLogger(__name__)

SUBJECTS = {
    Purpose.REGISTRATION: "Verify your account",
    Purpose.PASSWORD_RESET: "Your password reset code",
    Purpose.EMAIL_VERIFICATION: "Verify your email address",
    Purpose.CHANGE_EMAIL: "Confirm your new email address",
    Purpose.CHANGE_PHONE: "Confirm your new phone number",
}


def render_body(code: str, purpose: Purpose, expires_in_minutes: int) -> str:
    if purpose is Purpose.PASSWORD_RESET:
        lead = f"Your password reset code is {code}."
    else:
        lead = f"Your verification code is {code}."
    return f"{lead} It expires in {expires_in_minutes} minutes."


class NotificationGateway(NotificationPort):
    """Routes a code to the email or SMS adapter according to the contact's channel."""

    def __init__(self, *, email: EmailPort, sms: SmsPort) -> None:
        self._email = email
        self._sms = sms

    async def send_code(
        self, contact: Contact, code: str, purpose: Purpose, expires_in_minutes: int
    ) -> None:
        body = render_body(code, purpose, expires_in_minutes)
        try:
            if contact.channel is Channel.EMAIL:
                await self._email.send(
                    to=contact.value, subject=SUBJECTS[purpose], body=body
                )
            else:
                await self._sms.send(to=contact.value, body=body)
        except Exception as e:
            logger.error(
                "notification delivery failed",
                extra={"channel": contact.channel.value, "error": str(e)},
            )
            raise DeliveryFailed(str(e)) from e
