from typing import Callable

from enrollment.domain.entities import Identity, normalize_email
from enrollment.domain.errors import InvalidCredentialsError
from enrollment.domain.ports.identity_directory import IdentityDirectoryPort
from enrollment.domain.ports.sessions import SessionsPort


async def login(
    directory: IdentityDirectoryPort,
    sessions: SessionsPort,
    verify_password: Callable[[str, str | None], bool],
    email: str,
    password: str,
) -> str:
    identity = await directory.get_by_email(normalize_email(email))
    stored_hash = identity.password_hash if identity else None
    # verify runs even for an unknown email
    if not verify_password(password, stored_hash) or identity is None:
        raise InvalidCredentialsError()
    return await sessions.create(str(identity.id))


async def resolve_session(
    directory: IdentityDirectoryPort, sessions: SessionsPort, token: str
) -> Identity:
    identity_id = await sessions.get(token)
    if not identity_id:
        raise InvalidCredentialsError("invalid or expired token")
    identity = await directory.get_by_id(identity_id)
    if identity is None:
        raise InvalidCredentialsError("unknown identity")
    return identity
