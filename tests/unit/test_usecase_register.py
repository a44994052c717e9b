import asyncio
import dataclasses

import pytest

from enrollment.application.register import (
    request_registration_code,
    verify_registration,
)
from enrollment.domain import services as domain_services
from enrollment.domain.entities import Purpose
from enrollment.domain.errors import (
    ConflictError,
    DeliveryError,
    ExpiredError,
    ExpiredOrUnknownError,
    InvalidCodeError,
    PersistenceError,
    TooManyAttemptsError,
    ValidationError,
)
from enrollment.domain.pending_cache import PendingEnrollmentCache
from enrollment.domain.token_store import VerificationTokenStore
from tests.fakes import FakeDelivery, FlakyStore, HangingDelivery


async def _request(tokens, pending, directory, delivery, profile, **kwargs):
    return await request_registration_code(
        tokens=tokens,
        pending=pending,
        directory=directory,
        delivery=delivery,
        profile=profile,
        **kwargs,
    )


async def _verify(tokens, pending, directory, sessions, code, email="ada@example.com"):
    return await verify_registration(
        tokens=tokens,
        pending=pending,
        directory=directory,
        sessions=sessions,
        hash_password=lambda p: "hashed-" + p,
        email=email,
        code=code,
    )


@pytest.mark.asyncio
async def test_register_happy_path(
    tokens, pending, directory, delivery, sessions, profile, token_backend
):
    email = await _request(tokens, pending, directory, delivery, profile)

    assert email == "ada@example.com"
    assert delivery.sent == [("ada@example.com", "123456", Purpose.REGISTER)]
    assert "ada@example.com" in token_backend
    assert (await pending.get("ada@example.com")).value.first_name == "Ada"
    # nothing committed before verification
    assert directory.by_email == {}

    result = await _verify(tokens, pending, directory, sessions, "123456")

    assert result.identity.email == "ada@example.com"
    assert result.identity.name == "Ada Lovelace"
    assert result.identity.password_hash == "hashed-s3cret!"
    assert result.token == "tok-1"
    assert await sessions.get(result.token) == result.identity.id
    assert await pending.get("ada@example.com") is None
    assert "ada@example.com" not in token_backend


@pytest.mark.asyncio
async def test_request_requires_all_fields(tokens, pending, directory, delivery, profile):
    incomplete = dataclasses.replace(profile, last_name="  ")

    with pytest.raises(ValidationError, match="last_name"):
        await _request(tokens, pending, directory, delivery, incomplete)

    assert delivery.sent == []
    assert await pending.get("ada@example.com") is None


@pytest.mark.asyncio
async def test_request_rejects_existing_identity(
    tokens, pending, directory, delivery, profile, token_backend
):
    directory.add("ada@example.com")

    with pytest.raises(ConflictError):
        await _request(tokens, pending, directory, delivery, profile)

    assert delivery.sent == []
    assert len(token_backend) == 0


@pytest.mark.asyncio
async def test_delivery_failure_rolls_back_token_and_payload(
    tokens, pending, directory, profile, token_backend, pending_backend
):
    with pytest.raises(DeliveryError):
        await _request(tokens, pending, directory, FakeDelivery(fail=True), profile)

    assert len(token_backend) == 0
    assert len(pending_backend) == 0


@pytest.mark.asyncio
async def test_payload_write_failure_revokes_the_fresh_code(
    tokens, directory, delivery, profile, token_backend, clock
):
    pending = PendingEnrollmentCache(FlakyStore(clock=clock, fail_put=True))

    with pytest.raises(PersistenceError):
        await _request(tokens, pending, directory, delivery, profile)

    assert "ada@example.com" not in token_backend
    assert delivery.sent == []


@pytest.mark.asyncio
async def test_failed_token_revoke_still_drops_payload_and_keeps_delivery_error(
    pending, directory, profile, pending_backend, clock
):
    tokens = VerificationTokenStore(FlakyStore(clock=clock, fail_delete=True))

    with pytest.raises(DeliveryError):
        await _request(tokens, pending, directory, FakeDelivery(fail=True), profile)

    assert len(pending_backend) == 0


@pytest.mark.asyncio
async def test_cancelled_request_rolls_back(
    tokens, pending, directory, profile, token_backend, pending_backend
):
    delivery = HangingDelivery()
    task = asyncio.create_task(_request(tokens, pending, directory, delivery, profile))
    await delivery.started.wait()

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(token_backend) == 0
    assert len(pending_backend) == 0


@pytest.mark.asyncio
async def test_wrong_code_is_retryable(
    tokens, pending, directory, delivery, sessions, profile
):
    await _request(tokens, pending, directory, delivery, profile)

    with pytest.raises(InvalidCodeError):
        await _verify(tokens, pending, directory, sessions, "000000")
    assert await pending.get("ada@example.com") is not None

    result = await _verify(tokens, pending, directory, sessions, "123456")
    assert result.identity.email == "ada@example.com"


@pytest.mark.asyncio
async def test_malformed_code_is_rejected_without_an_attempt(
    tokens, pending, directory, delivery, sessions, profile, token_backend
):
    await _request(tokens, pending, directory, delivery, profile)

    with pytest.raises(ValidationError):
        await _verify(tokens, pending, directory, sessions, "12ab")

    assert (await token_backend.get("ada@example.com")).value.attempts == 0


@pytest.mark.asyncio
async def test_expired_code_cleans_up_pending_payload(
    tokens, pending, directory, delivery, sessions, profile, clock
):
    await _request(tokens, pending, directory, delivery, profile)
    clock.advance(601)

    with pytest.raises(ExpiredOrUnknownError):
        await _verify(tokens, pending, directory, sessions, "123456")

    assert await pending.get("ada@example.com") is None
    assert directory.by_email == {}


@pytest.mark.asyncio
async def test_unknown_code_is_expired_or_unknown(tokens, pending, directory, sessions):
    with pytest.raises(ExpiredOrUnknownError):
        await _verify(tokens, pending, directory, sessions, "123456")


@pytest.mark.asyncio
async def test_payload_expiring_before_token_is_expired(
    tokens, pending, directory, delivery, sessions, profile, clock
):
    await _request(
        tokens,
        pending,
        directory,
        delivery,
        profile,
        code_ttl_seconds=600,
        pending_ttl_seconds=60,
    )
    clock.advance(120)

    with pytest.raises(ExpiredError) as exc_info:
        await _verify(tokens, pending, directory, sessions, "123456")

    assert not isinstance(exc_info.value, ExpiredOrUnknownError)
    assert await pending.get("ada@example.com") is None
    assert directory.by_email == {}


@pytest.mark.asyncio
async def test_identity_created_in_the_interim_conflicts(
    tokens, pending, directory, delivery, sessions, profile
):
    await _request(tokens, pending, directory, delivery, profile)
    directory.add("ada@example.com", password_hash="someone-else")

    with pytest.raises(ConflictError):
        await _verify(tokens, pending, directory, sessions, "123456")

    assert await pending.get("ada@example.com") is None
    assert directory.by_email["ada@example.com"].password_hash == "someone-else"


@pytest.mark.asyncio
async def test_unique_violation_on_create_cleans_up(
    tokens, pending, directory, delivery, sessions, profile
):
    await _request(tokens, pending, directory, delivery, profile)
    directory.create_error = ConflictError()

    with pytest.raises(ConflictError):
        await _verify(tokens, pending, directory, sessions, "123456")

    assert await pending.get("ada@example.com") is None


@pytest.mark.asyncio
async def test_too_many_attempts_drops_the_registration(
    token_backend, pending, directory, delivery, sessions, profile
):
    tokens = VerificationTokenStore(token_backend, max_attempts=2)
    await _request(tokens, pending, directory, delivery, profile)

    with pytest.raises(InvalidCodeError):
        await _verify(tokens, pending, directory, sessions, "000000")
    with pytest.raises(TooManyAttemptsError):
        await _verify(tokens, pending, directory, sessions, "000001")

    assert await pending.get("ada@example.com") is None
    with pytest.raises(ExpiredOrUnknownError):
        await _verify(tokens, pending, directory, sessions, "123456")


@pytest.mark.asyncio
async def test_second_request_orphans_first_code(
    monkeypatch, tokens, pending, directory, delivery, sessions, profile
):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr(
        domain_services, "generate_numeric_code", lambda length=6: next(codes)
    )
    await _request(tokens, pending, directory, delivery, profile)
    await _request(
        tokens, pending, directory, delivery, dataclasses.replace(profile, first_name="Augusta")
    )

    with pytest.raises(InvalidCodeError):
        await _verify(tokens, pending, directory, sessions, "111111")

    result = await _verify(tokens, pending, directory, sessions, "222222")
    assert result.identity.first_name == "Augusta"
