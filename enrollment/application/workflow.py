from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from enrollment.application import register, reset
from enrollment.domain.entities import (
    EnrollmentProfile,
    EnrollmentResult,
    Purpose,
    normalize_email,
)
from enrollment.domain.errors import ValidationError
from enrollment.domain.locks import KeyedLocks
from enrollment.domain.pending_cache import PendingEnrollmentCache
from enrollment.domain.ports.delivery import DeliveryPort
from enrollment.domain.ports.identity_directory import IdentityDirectoryPort
from enrollment.domain.ports.sessions import SessionsPort
from enrollment.domain.token_store import VerificationTokenStore


@dataclass(frozen=True)
class CodePolicy:
    code_length: int = 6
    code_ttl_seconds: int = 600
    pending_ttl_seconds: int = 600


@dataclass
class EnrollmentWorkflow:
    """
    Purpose-agnostic entry point for both OTP flows.

    Every step for one email runs under that email's lock, so a request
    and a verify for the same identity never interleave.
    """

    tokens: VerificationTokenStore
    pending: PendingEnrollmentCache
    directory: IdentityDirectoryPort
    delivery: DeliveryPort
    sessions: SessionsPort
    hash_password: Callable[..., str]
    policy: CodePolicy = field(default_factory=CodePolicy)
    locks: KeyedLocks = field(default_factory=KeyedLocks, repr=False)

    async def request_code(
        self,
        email: str,
        purpose: Purpose | str,
        payload: EnrollmentProfile | Mapping[str, Any] | None = None,
    ) -> str:
        purpose = _purpose(purpose)
        async with self.locks.hold(normalize_email(email)):
            if purpose is Purpose.REGISTER:
                return await register.request_registration_code(
                    tokens=self.tokens,
                    pending=self.pending,
                    directory=self.directory,
                    delivery=self.delivery,
                    profile=_profile(email, payload),
                    code_length=self.policy.code_length,
                    code_ttl_seconds=self.policy.code_ttl_seconds,
                    pending_ttl_seconds=self.policy.pending_ttl_seconds,
                )
            return await reset.request_reset(
                tokens=self.tokens,
                directory=self.directory,
                delivery=self.delivery,
                email=email,
                code_length=self.policy.code_length,
                code_ttl_seconds=self.policy.code_ttl_seconds,
            )

    async def verify_code(
        self,
        email: str,
        purpose: Purpose | str,
        code: str,
        extra: Optional[str] = None,
    ) -> EnrollmentResult | None:
        """
        Registration returns the new identity and its session token; reset
        takes the new secret in ``extra`` and returns None.
        """
        purpose = _purpose(purpose)
        async with self.locks.hold(normalize_email(email)):
            if purpose is Purpose.REGISTER:
                return await register.verify_registration(
                    tokens=self.tokens,
                    pending=self.pending,
                    directory=self.directory,
                    sessions=self.sessions,
                    hash_password=self.hash_password,
                    email=email,
                    code=code,
                    code_length=self.policy.code_length,
                )
            await reset.verify_reset(
                tokens=self.tokens,
                directory=self.directory,
                hash_password=self.hash_password,
                email=email,
                code=code,
                new_password=extra or "",
                code_length=self.policy.code_length,
            )
            return None


def _purpose(value: Purpose | str) -> Purpose:
    try:
        return Purpose(value)
    except ValueError:
        raise ValidationError(f"unknown purpose: {value!r}") from None


def _profile(
    email: str, payload: EnrollmentProfile | Mapping[str, Any] | None
) -> EnrollmentProfile:
    if payload is None:
        raise ValidationError("registration requires a profile")
    if isinstance(payload, EnrollmentProfile):
        return dataclasses.replace(payload, email=email)
    return EnrollmentProfile(
        email=email,
        first_name=str(payload.get("first_name") or ""),
        last_name=str(payload.get("last_name") or ""),
        password=str(payload.get("password") or ""),
    )
