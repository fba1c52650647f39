class DomainError(Exception):
    """Base class for all domain-level errors."""

    pass


class DeliveryFailed(DomainError):
    """The notification channel could not deliver a code."""

    pass


class CodeNotFound(DomainError):
    """No unverified code exists for the contact and purpose."""

    pass


class TooManyAttempts(DomainError):
    """The code reached its attempt cap; a new one must be requested."""

    pass


class InvalidCode(DomainError):
    """Submitted value does not match the stored code."""

    pass


class CodeExpired(DomainError):
    """Submitted value matched, but the code is past its expiry."""

    pass


class InvalidResetToken(DomainError):
    """No verified, unused, unexpired record carries this reset token."""

    pass


class ResetTokenUsed(DomainError):
    """The reset token was already consumed."""

    pass


class SessionNotFound(DomainError):
    """Registration session is missing or expired."""

    pass


class VerificationRequired(DomainError):
    """Registration cannot complete before the contact is verified."""

    pass


class StoreUnavailable(DomainError):
    """Underlying persistence (database or cache) failed."""

    pass


class AccountAlreadyExists(DomainError):
    """An account already owns the contact."""

    pass


class AccountNotFound(DomainError):
    """No account matches the contact."""

    pass


class InvalidCredentials(DomainError):
    """Contact/password pair does not authenticate."""

    pass


class InvalidAccessToken(DomainError):
    """Access token is malformed, expired or revoked."""

    pass
