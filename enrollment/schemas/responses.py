from typing import Literal

from pydantic import BaseModel, Field

from enrollment.domain.entities import Identity


class AcceptedOut(BaseModel):
    status: Literal["accepted"] = "accepted"


class OkOut(BaseModel):
    status: Literal["ok"] = "ok"


class IdentityOut(BaseModel):
    id: str = Field(..., description="The id of the identity")
    email: str
    first_name: str
    last_name: str
    name: str
    is_admin: bool = False

    @classmethod
    def from_identity(cls, identity: Identity) -> "IdentityOut":
        return cls(
            id=str(identity.id),
            email=identity.email,
            first_name=identity.first_name,
            last_name=identity.last_name,
            name=identity.name,
            is_admin=identity.is_admin,
        )


class TokenOut(BaseModel):
    token: str


class EnrollmentOut(TokenOut):
    identity: IdentityOut
