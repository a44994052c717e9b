import pytest
from fastapi.testclient import TestClient

from enrollment.main import create_app
from enrollment.presentation.dependencies import (
    get_directory,
    get_sessions,
    get_verify_password,
    get_workflow,
)


@pytest.fixture()
def app(workflow, directory, sessions):
    app = create_app()
    app.dependency_overrides[get_workflow] = lambda: workflow
    app.dependency_overrides[get_directory] = lambda: directory
    app.dependency_overrides[get_sessions] = lambda: sessions
    app.dependency_overrides[get_verify_password] = lambda: (
        lambda plain, hashed: hashed == "hashed-" + plain
    )
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    return TestClient(app, raise_server_exceptions=False)


REGISTER_BODY = {
    "email": "Ada@Example.com",
    "first_name": "Ada",
    "last_name": "Lovelace",
    "password": "s3cret!",
}
