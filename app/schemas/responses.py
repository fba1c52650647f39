from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.domain.entities import Account


class AccountOut(BaseModel):
    id: str = Field(..., description="The id of the account")
    email: str | None = None
    phone: str | None = None
    full_name: str | None = None
    email_verified: bool = False
    phone_verified: bool = False

    @classmethod
    def from_account(cls, account: Account) -> "AccountOut":
        return cls(
            id=account.id,
            email=account.email,
            phone=account.phone,
            full_name=account.full_name,
            email_verified=account.email_verified,
            phone_verified=account.phone_verified,
        )


class RegistrationStartedOut(BaseModel):
    session_id: str
    message: str


class RegistrationVerifiedOut(BaseModel):
    verified: bool = True
    session_id: str


class TokenOut(BaseModel):
    access_token: str
    token_type: Literal["bearer"] = "bearer"


class RegistrationCompletedOut(TokenOut):
    account: AccountOut


class MessageOut(BaseModel):
    message: str
    expires_at: datetime | None = None


class ResetCodeVerifiedOut(BaseModel):
    verified: bool
    reset_token: str
    expires_at: datetime


class VerifiedOut(BaseModel):
    verified: bool = True


class OkOut(BaseModel):
    status: Literal["ok"] = "ok"


class ErrorOut(BaseModel):
    detail: str
    code: str
