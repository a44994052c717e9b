from pydantic import BaseModel, EmailStr, Field


class RegisterCodeIn(BaseModel):
    email: EmailStr = Field(..., description="The email to enroll", max_length=255)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., description="The password to set", min_length=6)


class VerifyCodeIn(BaseModel):
    email: EmailStr = Field(..., max_length=255)
    code: str = Field(..., description="The code received by email", max_length=12)


class ResetCodeIn(BaseModel):
    email: EmailStr = Field(..., max_length=255)


class ResetVerifyIn(VerifyCodeIn):
    new_password: str = Field(..., min_length=6)


class LoginIn(BaseModel):
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=1)
