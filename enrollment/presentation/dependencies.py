from typing import Callable

from fastapi import Request

from enrollment.application.workflow import EnrollmentWorkflow
from enrollment.domain.ports.identity_directory import IdentityDirectoryPort
from enrollment.domain.ports.sessions import SessionsPort
from enrollment.infrastructure.security.password import verify_password

# The objects below are built once in enrollment.main lifespan() and kept on
# app.state: the stores hold the only copy of in-flight codes.


def get_workflow(request: Request) -> EnrollmentWorkflow:
    return request.app.state.workflow


def get_directory(request: Request) -> IdentityDirectoryPort:
    return request.app.state.directory


def get_sessions(request: Request) -> SessionsPort:
    return request.app.state.sessions


def get_verify_password() -> Callable[[str, str | None], bool]:
    return verify_password
