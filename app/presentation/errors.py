import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.domain.errors import (
    AccountAlreadyExists,
    AccountNotFound,
    CodeExpired,
    CodeNotFound,
    DeliveryFailed,
    DomainError,
    InvalidAccessToken,
    InvalidCode,
    InvalidCredentials,
    InvalidResetToken,
    ResetTokenUsed,
    SessionNotFound,
    StoreUnavailable,
    TooManyAttempts,
    VerificationRequired,
)

logger = logging.getLogger(__name__)

# (status, stable code, client-facing message)
ERROR_MAP: dict[type[DomainError], tuple[int, str, str]] = {
    CodeNotFound: (
        status.HTTP_404_NOT_FOUND,
        "code_not_found",
        "No active verification code; request a new one",
    ),
    InvalidCode: (status.HTTP_400_BAD_REQUEST, "invalid_code", "Invalid verification code"),
    CodeExpired: (
        status.HTTP_400_BAD_REQUEST,
        "code_expired",
        "Verification code has expired; request a new one",
    ),
    TooManyAttempts: (
        status.HTTP_429_TOO_MANY_REQUESTS,
        "too_many_attempts",
        "Too many attempts; request a new code",
    ),
    InvalidResetToken: (
        status.HTTP_400_BAD_REQUEST,
        "invalid_reset_token",
        "Invalid or expired reset token",
    ),
    ResetTokenUsed: (
        status.HTTP_400_BAD_REQUEST,
        "reset_token_used",
        "Reset token has already been used",
    ),
    SessionNotFound: (
        status.HTTP_404_NOT_FOUND,
        "session_not_found",
        "Registration session not found or expired",
    ),
    VerificationRequired: (
        status.HTTP_400_BAD_REQUEST,
        "verification_required",
        "Contact must be verified before completing registration",
    ),
    AccountAlreadyExists: (
        status.HTTP_409_CONFLICT,
        "account_exists",
        "An account already exists for this contact",
    ),
    AccountNotFound: (status.HTTP_404_NOT_FOUND, "account_not_found", "Account not found"),
    InvalidCredentials: (
        status.HTTP_401_UNAUTHORIZED,
        "invalid_credentials",
        "invalid credentials",
    ),
    InvalidAccessToken: (
        status.HTTP_401_UNAUTHORIZED,
        "invalid_token",
        "invalid or expired token",
    ),
    DeliveryFailed: (
        status.HTTP_502_BAD_GATEWAY,
        "delivery_failed",
        "Could not deliver the verification code",
    ),
    StoreUnavailable: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "store_unavailable",
        "Service temporarily unavailable",
    ),
}

_FALLBACK = (status.HTTP_400_BAD_REQUEST, "domain_error", "Request could not be processed")


def describe(exc: DomainError) -> tuple[int, str, str]:
    for cls in type(exc).__mro__:
        if cls in ERROR_MAP:
            return ERROR_MAP[cls]
    return _FALLBACK


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code, code, detail = describe(exc)
    extra = {"path": request.url.path, "error_code": code, "status": status_code}
    if status_code >= 500:
        logger.error("request failed", extra={**extra, "error": str(exc)})
    else:
        logger.info("request rejected", extra=extra)

    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "code": code},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
