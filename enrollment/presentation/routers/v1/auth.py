from typing import Annotated, Callable

from fastapi import APIRouter, Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from enrollment.application.login import login, resolve_session
from enrollment.application.workflow import EnrollmentWorkflow
from enrollment.domain.entities import Purpose
from enrollment.domain.ports.identity_directory import IdentityDirectoryPort
from enrollment.domain.ports.sessions import SessionsPort
from enrollment.presentation.dependencies import (
    get_directory,
    get_sessions,
    get_verify_password,
    get_workflow,
)
from enrollment.schemas.requests import (
    LoginIn,
    RegisterCodeIn,
    ResetCodeIn,
    ResetVerifyIn,
    VerifyCodeIn,
)
from enrollment.schemas.responses import (
    AcceptedOut,
    EnrollmentOut,
    IdentityOut,
    OkOut,
    TokenOut,
)

router = APIRouter(prefix="/auth", tags=["Auth"])
bearer_scheme = HTTPBearer()

Workflow = Annotated[EnrollmentWorkflow, Depends(get_workflow)]


@router.post(
    "/register/code",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=AcceptedOut,
)
async def post_register_code(body: RegisterCodeIn, workflow: Workflow):
    await workflow.request_code(
        body.email,
        Purpose.REGISTER,
        body.model_dump(include={"first_name", "last_name", "password"}),
    )
    return AcceptedOut()


@router.post(
    "/register/verify",
    status_code=status.HTTP_201_CREATED,
    response_model=EnrollmentOut,
)
async def post_register_verify(body: VerifyCodeIn, workflow: Workflow):
    result = await workflow.verify_code(body.email, Purpose.REGISTER, body.code)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="registration did not complete",
        )
    return EnrollmentOut(
        identity=IdentityOut.from_identity(result.identity), token=result.token
    )


@router.post(
    "/password-reset/code",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=AcceptedOut,
)
async def post_reset_code(body: ResetCodeIn, workflow: Workflow):
    await workflow.request_code(body.email, Purpose.RESET)
    return AcceptedOut()


@router.post("/password-reset/verify", response_model=OkOut)
async def post_reset_verify(body: ResetVerifyIn, workflow: Workflow):
    await workflow.verify_code(
        body.email, Purpose.RESET, body.code, extra=body.new_password
    )
    return OkOut()


@router.post("/login", response_model=TokenOut)
async def post_login(
    body: LoginIn,
    directory: Annotated[IdentityDirectoryPort, Depends(get_directory)],
    sessions: Annotated[SessionsPort, Depends(get_sessions)],
    verify_password: Annotated[
        Callable[[str, str | None], bool], Depends(get_verify_password)
    ],
):
    token = await login(
        directory=directory,
        sessions=sessions,
        verify_password=verify_password,
        email=body.email,
        password=body.password,
    )
    return TokenOut(token=token)


@router.get("/me", response_model=IdentityOut)
async def get_me(
    auth: Annotated[HTTPAuthorizationCredentials, Security(bearer_scheme)],
    directory: Annotated[IdentityDirectoryPort, Depends(get_directory)],
    sessions: Annotated[SessionsPort, Depends(get_sessions)],
):
    identity = await resolve_session(directory, sessions, auth.credentials)
    return IdentityOut.from_identity(identity)
