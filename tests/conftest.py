import pytest

from enrollment.application.workflow import CodePolicy, EnrollmentWorkflow
from enrollment.domain.entities import EnrollmentProfile
from enrollment.domain.pending_cache import PendingEnrollmentCache
from enrollment.domain.token_store import VerificationTokenStore
from enrollment.infrastructure.stores.memory import MemoryExpiringStore
from tests.fakes import FakeClock, FakeDelivery, FakeDirectory, FakeSessions


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def token_backend(clock):
    return MemoryExpiringStore(clock=clock)


@pytest.fixture()
def pending_backend(clock):
    return MemoryExpiringStore(clock=clock)


@pytest.fixture()
def tokens(token_backend):
    return VerificationTokenStore(token_backend, max_attempts=5)


@pytest.fixture()
def pending(pending_backend):
    return PendingEnrollmentCache(pending_backend)


@pytest.fixture()
def directory():
    return FakeDirectory()


@pytest.fixture()
def delivery():
    return FakeDelivery()


@pytest.fixture()
def sessions():
    return FakeSessions()


@pytest.fixture()
def hash_password_stub():
    return lambda p: "hashed-" + p


@pytest.fixture()
def profile():
    return EnrollmentProfile(
        email=" Ada@Example.COM ",
        first_name="Ada",
        last_name="Lovelace",
        password="s3cret!",
    )


@pytest.fixture()
def workflow(tokens, pending, directory, delivery, sessions, hash_password_stub):
    return EnrollmentWorkflow(
        tokens=tokens,
        pending=pending,
        directory=directory,
        delivery=delivery,
        sessions=sessions,
        hash_password=hash_password_stub,
        policy=CodePolicy(code_length=6, code_ttl_seconds=600, pending_ttl_seconds=600),
    )


@pytest.fixture(autouse=True)
def patch_code(monkeypatch):
    """
    Make the generated code deterministic in all tests.
    You can override in a specific test by re-monkeypatching.
    """
    from enrollment.domain import services as domain_services

    monkeypatch.setattr(
        domain_services, "generate_numeric_code", lambda length=6: "123456"
    )
    yield
