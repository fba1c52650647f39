from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class Channel(str, Enum):
    EMAIL = "email"
    PHONE = "phone"


class Purpose(str, Enum):
    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFICATION = "email_verification"
    CHANGE_EMAIL = "change_email"
    CHANGE_PHONE = "change_phone"


class SessionStep(str, Enum):
    INITIATED = "initiated"
    VERIFIED = "verified"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Contact:
    """An email address or a phone number, tagged with its channel."""

    channel: Channel
    value: str

    @classmethod
    def email(cls, address: str) -> "Contact":
        normalized = (address or "").strip().lower()
        if not _EMAIL_RE.match(normalized):
            raise ValueError("invalid email address")
        return cls(Channel.EMAIL, normalized)

    @classmethod
    def phone(cls, number: str) -> "Contact":
        raw = (number or "").strip()
        digits = "".join(ch for ch in raw if ch.isdigit())
        if not 8 <= len(digits) <= 15:
            raise ValueError("invalid phone number")
        return cls(Channel.PHONE, "+" + digits)

    @classmethod
    def parse(cls, identifier: str) -> "Contact":
        if "@" in (identifier or ""):
            return cls.email(identifier)
        return cls.phone(identifier)

    @classmethod
    def from_columns(cls, email: str | None, phone: str | None) -> "Contact":
        if email and phone:
            raise ValueError("exactly one of email or phone must be set")
        if email:
            return cls.email(email)
        if phone:
            return cls.phone(phone)
        raise ValueError("exactly one of email or phone must be set")

    def as_columns(self) -> tuple[str | None, str | None]:
        """(email, phone) pair as persisted."""
        if self.channel is Channel.EMAIL:
            return self.value, None
        return None, self.value

    @property
    def masked(self) -> str:
        if self.channel is Channel.EMAIL:
            local, _, domain = self.value.partition("@")
            return f"{local[:1]}***@{domain}"
        return f"{self.value[:3]}***{self.value[-2:]}"

    def __str__(self) -> str:
        return self.value


@dataclass
class VerificationCode:
    id: int | None
    contact: Contact
    code: str
    purpose: Purpose
    expires_at: datetime
    verified: bool = False
    attempt_count: int = 0
    reset_token: str | None = None
    token_used: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def channel(self) -> Channel:
        return self.contact.channel

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def attempts_exhausted(self, max_attempts: int) -> bool:
        return self.attempt_count >= max_attempts


@dataclass
class RegistrationSession:
    session_id: str
    contact: Contact
    step: SessionStep = SessionStep.INITIATED
    verified: bool = False
    data: dict[str, Any] = field(default_factory=dict)
    created_at: float | None = None
    updated_at: float | None = None

    @property
    def channel(self) -> Channel:
        return self.contact.channel

    def to_dict(self) -> dict[str, Any]:
        return {
            "contact": self.contact.value,
            "channel": self.contact.channel.value,
            "step": self.step.value,
            "verified": self.verified,
            "data": dict(self.data),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, session_id: str, raw: dict[str, Any]) -> "RegistrationSession":
        contact = Contact(Channel(raw["channel"]), raw["contact"])
        return cls(
            session_id=session_id,
            contact=contact,
            step=SessionStep(raw.get("step", SessionStep.INITIATED.value)),
            verified=bool(raw.get("verified", False)),
            data=dict(raw.get("data") or {}),
            created_at=raw.get("created_at"),
            updated_at=raw.get("updated_at"),
        )


@dataclass
class Account:
    id: str | None = None
    email: str | None = None
    phone: str | None = None
    full_name: str | None = None
    email_verified: bool = False
    phone_verified: bool = False

    def __post_init__(self):
        if self.email:
            self.email = self.email.strip().lower()
        if not self.email and not self.phone:
            raise ValueError("email or phone is required")

    def is_verified(self, channel: Channel) -> bool:
        if channel is Channel.EMAIL:
            return self.email_verified
        return self.phone_verified

    def mark_verified(self, channel: Channel) -> None:
        if channel is Channel.EMAIL:
            self.email_verified = True
        else:
            self.phone_verified = True


@dataclass(frozen=True)
class AccessClaims:
    subject: str
    jti: str
    issued_at: datetime
    expires_at: datetime
