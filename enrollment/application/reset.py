import logging
from typing import Callable

import enrollment.domain.services as domain_services
from enrollment.domain.entities import (
    ConsumeOutcome,
    Purpose,
    normalize_email,
    validate_email,
)
from enrollment.domain.errors import (
    ExpiredOrUnknownError,
    InvalidCodeError,
    NotFoundError,
    TooManyAttemptsError,
    ValidationError,
)
from enrollment.domain.ports.delivery import DeliveryPort
from enrollment.domain.ports.identity_directory import IdentityDirectoryPort
from enrollment.domain.token_store import VerificationTokenStore

logger = logging.getLogger(__name__)


async def request_reset(
    tokens: VerificationTokenStore,
    directory: IdentityDirectoryPort,
    delivery: DeliveryPort,
    email: str,
    code_length: int = 6,
    code_ttl_seconds: int = 600,
) -> str:
    validate_email(email)
    email = normalize_email(email)

    if not await directory.exists_by_email(email):
        raise NotFoundError()

    code = domain_services.generate_numeric_code(code_length)
    key = domain_services.token_key(email, Purpose.RESET)

    delivered = False
    try:
        await tokens.issue(key, code, code_ttl_seconds)
        await delivery.send(email, code, Purpose.RESET)
        delivered = True
    finally:
        if not delivered:
            await tokens.discard(key)
            logger.warning("reset code rolled back", extra={"email": email})

    logger.info("reset code sent", extra={"email": email})
    return email


async def verify_reset(
    tokens: VerificationTokenStore,
    directory: IdentityDirectoryPort,
    hash_password: Callable[..., str],
    email: str,
    code: str,
    new_password: str,
    code_length: int = 6,
) -> None:
    validate_email(email)
    email = normalize_email(email)
    if not domain_services.is_well_formed_code(code, code_length):
        raise ValidationError(f"code must be {code_length} digits")
    if not (new_password or "").strip():
        raise ValidationError("missing required fields: new_password")

    outcome = await tokens.consume(domain_services.token_key(email, Purpose.RESET), code)
    if outcome is ConsumeOutcome.MISMATCHED:
        raise InvalidCodeError()
    if outcome is ConsumeOutcome.EXHAUSTED:
        raise TooManyAttemptsError()
    if outcome is not ConsumeOutcome.MATCHED:
        raise ExpiredOrUnknownError()

    await directory.update_secret(email, hash_password(new_password))
    logger.info("credential reset", extra={"email": email})
