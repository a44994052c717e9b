import logging
from typing import Callable

import enrollment.domain.services as domain_services
from enrollment.domain.entities import (
    ConsumeOutcome,
    EnrollmentProfile,
    EnrollmentResult,
    Identity,
    Purpose,
    normalize_email,
    validate_email,
)
from enrollment.domain.errors import (
    ConflictError,
    ExpiredError,
    ExpiredOrUnknownError,
    InvalidCodeError,
    TooManyAttemptsError,
    ValidationError,
)
from enrollment.domain.pending_cache import PendingEnrollmentCache
from enrollment.domain.ports.delivery import DeliveryPort
from enrollment.domain.ports.identity_directory import IdentityDirectoryPort
from enrollment.domain.ports.sessions import SessionsPort
from enrollment.domain.token_store import VerificationTokenStore

logger = logging.getLogger(__name__)


async def request_registration_code(
    tokens: VerificationTokenStore,
    pending: PendingEnrollmentCache,
    directory: IdentityDirectoryPort,
    delivery: DeliveryPort,
    profile: EnrollmentProfile,
    code_length: int = 6,
    code_ttl_seconds: int = 600,
    pending_ttl_seconds: int = 600,
) -> str:
    """
    Phase one of registration: park the candidate profile next to a fresh
    code and send the code. Nothing is written to the directory yet.
    Returns the normalized email.
    """
    profile.validate()
    profile = profile.normalized()
    email = profile.email

    if await directory.exists_by_email(email):
        raise ConflictError()

    code = domain_services.generate_numeric_code(code_length)
    key = domain_services.token_key(email, Purpose.REGISTER)

    parked = False
    delivered = False
    try:
        await tokens.issue(key, code, code_ttl_seconds)
        parked = True
        await pending.put(email, profile, pending_ttl_seconds)
        await delivery.send(email, code, Purpose.REGISTER)
        delivered = True
    finally:
        if not delivered:
            # a code that never reached the user must not stay redeemable
            await tokens.discard(key)
            if parked:
                await pending.discard(email)
            logger.warning("registration code rolled back", extra={"email": email})

    logger.info("registration code sent", extra={"email": email})
    return email


async def verify_registration(
    tokens: VerificationTokenStore,
    pending: PendingEnrollmentCache,
    directory: IdentityDirectoryPort,
    sessions: SessionsPort,
    hash_password: Callable[..., str],
    email: str,
    code: str,
    code_length: int = 6,
) -> EnrollmentResult:
    """
    Phase two: redeem the code and commit the parked profile as a new
    identity. Returns the identity and a fresh session token.
    """
    validate_email(email)
    email = normalize_email(email)
    if not domain_services.is_well_formed_code(code, code_length):
        raise ValidationError(f"code must be {code_length} digits")

    outcome = await tokens.consume(
        domain_services.token_key(email, Purpose.REGISTER), code
    )
    if outcome is ConsumeOutcome.MISMATCHED:
        raise InvalidCodeError()
    if outcome is ConsumeOutcome.EXHAUSTED:
        await pending.remove(email)
        raise TooManyAttemptsError()
    if outcome in (ConsumeOutcome.EXPIRED, ConsumeOutcome.NOT_FOUND):
        # a dead code must not leave a committable payload behind
        await pending.remove(email)
        raise ExpiredOrUnknownError()

    entry = await pending.get(email)
    if entry is None or pending.is_expired(entry):
        if entry is not None:
            await pending.remove(email)
        raise ExpiredError("registration details expired, start again")

    # another path may have registered the email since the code was sent
    if await directory.exists_by_email(email):
        await pending.remove(email)
        raise ConflictError()

    profile = entry.value
    try:
        identity = await directory.create(
            Identity(
                email=email,
                first_name=profile.first_name,
                last_name=profile.last_name,
                password_hash=hash_password(profile.password),
            )
        )
    except ConflictError:
        await pending.remove(email)
        raise

    await pending.remove(email)
    token = await sessions.create(str(identity.id))
    logger.info(
        "registration committed", extra={"email": email, "identity_id": identity.id}
    )
    return EnrollmentResult(identity=identity, token=token)
