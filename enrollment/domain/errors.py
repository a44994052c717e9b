class DomainError(Exception):
    """Base class for all domain-level errors."""

    default_message = "request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Missing or malformed input; the caller can fix it and retry."""

    default_message = "invalid input"


class ConflictError(DomainError):
    """An identity already exists for the email."""

    default_message = "an account already exists for this email"


class NotFoundError(DomainError):
    """No identity, or no pending/token entry, matches the lookup."""

    default_message = "no account exists for this email"


class ExpiredError(DomainError):
    """The entry existed but its validity window has passed."""

    default_message = "verification window has expired, request a new code"


class ExpiredOrUnknownError(ExpiredError):
    """No live code for the identity: it expired, was used, or never existed."""

    default_message = "code is expired or unknown, request a new code"


class InvalidCodeError(DomainError):
    """Code present but wrong. Retryable until the code expires."""

    default_message = "invalid verification code"


class TooManyAttemptsError(DomainError):
    """Too many wrong codes; the code was revoked and a new one is required."""

    default_message = "too many invalid attempts, request a new code"


class InvalidCredentialsError(DomainError):
    """Email/password pair does not match an identity."""

    default_message = "invalid credentials"


class DeliveryError(DomainError):
    """The code could not be handed to the delivery channel."""

    default_message = "could not deliver verification code"


class PersistenceError(DomainError):
    """A store backend failed to persist or read state."""

    default_message = "storage unavailable"
