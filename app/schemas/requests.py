from pydantic import BaseModel, EmailStr, Field, model_validator

from app.domain.entities import Contact


class ContactIn(BaseModel):
    """Exactly one of `email` / `phone`."""

    email: EmailStr | None = Field(None, description="Email address")
    phone: str | None = Field(None, description="Phone number, E.164", max_length=20)

    @model_validator(mode="after")
    def _exactly_one_contact(self):
        if bool(self.email) == bool(self.phone):
            raise ValueError("provide exactly one of email or phone")
        # surfaces malformed phone numbers as a 422
        self.to_contact()
        return self

    def to_contact(self) -> Contact:
        if self.email:
            return Contact.email(self.email)
        return Contact.phone(self.phone)


class CodeIn(BaseModel):
    code: str = Field(..., min_length=4, max_length=10, pattern=r"^\d+$")


class RegisterVerifyIn(CodeIn):
    session_id: str = Field(..., min_length=1, max_length=64)


class RegisterCompleteIn(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=64)
    full_name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(
        ..., description="The new account's password", min_length=8, max_length=128
    )


class PasswordVerifyIn(ContactIn, CodeIn):
    pass


class PasswordResetIn(ContactIn):
    reset_token: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)


class EmailIn(BaseModel):
    email: EmailStr = Field(..., max_length=255)

    def to_contact(self) -> Contact:
        return Contact.email(self.email)


class EmailVerifyIn(EmailIn, CodeIn):
    pass
