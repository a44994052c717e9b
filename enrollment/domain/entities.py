from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from enrollment.domain.errors import ValidationError

V = TypeVar("V")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class Purpose(str, Enum):
    REGISTER = "register"
    RESET = "reset"


class ConsumeOutcome(str, Enum):
    MATCHED = "matched"
    MISMATCHED = "mismatched"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class Expiring(Generic[V]):
    """A stored value together with its absolute expiry (epoch seconds)."""

    value: V
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class VerificationToken:
    code: str
    issued_at: float
    attempts: int = 0


@dataclass(frozen=True)
class EnrollmentProfile:
    """Candidate account held until its code is verified. ``password`` is raw."""

    email: str
    first_name: str
    last_name: str
    password: str

    def normalized(self) -> "EnrollmentProfile":
        return EnrollmentProfile(
            email=normalize_email(self.email),
            first_name=self.first_name.strip(),
            last_name=self.last_name.strip(),
            password=self.password,
        )

    def validate(self) -> None:
        missing = [
            name
            for name in ("email", "first_name", "last_name", "password")
            if not (getattr(self, name) or "").strip()
        ]
        if missing:
            raise ValidationError(f"missing required fields: {', '.join(missing)}")
        validate_email(self.email)


def validate_email(email: str) -> None:
    local, sep, domain = normalize_email(email).partition("@")
    if not sep or not local or not domain or "@" in domain:
        raise ValidationError("malformed email address")


@dataclass
class Identity:
    email: str
    first_name: str
    last_name: str
    password_hash: str = field(repr=False)
    id: str | None = None
    is_admin: bool = False
    created_at: datetime | None = None

    def __post_init__(self):
        if self.email:
            self.email = normalize_email(self.email)
            if not self.email:
                raise ValueError("email cannot be empty")
        else:
            raise ValueError("email is required")

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class EnrollmentResult:
    identity: Identity
    token: str
