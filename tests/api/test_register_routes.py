from fastapi.testclient import TestClient

from tests.api.conftest import REGISTER_BODY
from tests.fakes import FakeDelivery


def test_register_code_then_verify(client: TestClient, delivery, directory):
    r = client.post("/v1/auth/register/code", json=REGISTER_BODY)
    assert r.status_code == 202, r.text
    assert r.json() == {"status": "accepted"}
    assert delivery.sent[0][0] == "ada@example.com"
    assert directory.by_email == {}

    r2 = client.post(
        "/v1/auth/register/verify",
        json={"email": "ada@example.com", "code": "123456"},
    )
    assert r2.status_code == 201, r2.text
    body = r2.json()
    assert body["token"] == "tok-1"
    assert body["identity"]["email"] == "ada@example.com"
    assert body["identity"]["name"] == "Ada Lovelace"
    assert "password" not in body["identity"]
    assert directory.by_email["ada@example.com"].password_hash == "hashed-s3cret!"


def test_register_code_for_existing_email_conflicts(client: TestClient, directory):
    directory.add("ada@example.com")

    r = client.post("/v1/auth/register/code", json=REGISTER_BODY)

    assert r.status_code == 409
    assert r.json()["detail"] == "an account already exists for this email"


def test_register_code_body_validation(client: TestClient):
    r = client.post(
        "/v1/auth/register/code", json={**REGISTER_BODY, "email": "not-an-email"}
    )
    assert r.status_code == 422

    r = client.post("/v1/auth/register/code", json={"email": "a@example.com"})
    assert r.status_code == 422


def test_register_delivery_failure_is_bad_gateway(client: TestClient, workflow):
    workflow.delivery = FakeDelivery(fail=True)

    r = client.post("/v1/auth/register/code", json=REGISTER_BODY)

    assert r.status_code == 502
    r2 = client.post(
        "/v1/auth/register/verify",
        json={"email": "ada@example.com", "code": "123456"},
    )
    assert r2.status_code == 410


def test_register_verify_wrong_code_then_right(client: TestClient):
    client.post("/v1/auth/register/code", json=REGISTER_BODY)

    r = client.post(
        "/v1/auth/register/verify",
        json={"email": "ada@example.com", "code": "000000"},
    )
    assert r.status_code == 400

    r2 = client.post(
        "/v1/auth/register/verify",
        json={"email": "ada@example.com", "code": "123456"},
    )
    assert r2.status_code == 201


def test_register_verify_malformed_code(client: TestClient):
    r = client.post(
        "/v1/auth/register/verify",
        json={"email": "ada@example.com", "code": "12ab"},
    )
    assert r.status_code == 422


def test_register_verify_unknown_email_is_gone(client: TestClient):
    r = client.post(
        "/v1/auth/register/verify",
        json={"email": "nobody@example.com", "code": "123456"},
    )
    assert r.status_code == 410


def test_register_verify_expired_code_is_gone(client: TestClient, clock):
    client.post("/v1/auth/register/code", json=REGISTER_BODY)
    clock.advance(601)

    r = client.post(
        "/v1/auth/register/verify",
        json={"email": "ada@example.com", "code": "123456"},
    )
    assert r.status_code == 410


def test_too_many_wrong_codes(client: TestClient):
    client.post("/v1/auth/register/code", json=REGISTER_BODY)

    statuses = [
        client.post(
            "/v1/auth/register/verify",
            json={"email": "ada@example.com", "code": "000000"},
        ).status_code
        for _ in range(5)
    ]

    assert statuses == [400, 400, 400, 400, 429]
    r = client.post(
        "/v1/auth/register/verify",
        json={"email": "ada@example.com", "code": "123456"},
    )
    assert r.status_code == 410


def test_register_verify_without_result_is_server_error(
    client: TestClient, workflow, monkeypatch
):
    async def no_result(*args, **kwargs):
        return None

    monkeypatch.setattr(workflow, "verify_code", no_result)

    r = client.post(
        "/v1/auth/register/verify",
        json={"email": "ada@example.com", "code": "123456"},
    )

    assert r.status_code == 500
    assert r.json()["detail"] == "registration did not complete"
