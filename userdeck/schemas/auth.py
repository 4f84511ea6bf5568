"""Schemas for the auth and OAuth2 routes."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator

from userdeck.schemas.user import MeOut
from userdeck.schemas.validators import NAME_PATTERN, check_password_strength


class SignUpIn(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=3, max_length=100, pattern=NAME_PATTERN)
    password1: str = Field(..., min_length=8, max_length=35)
    password2: str = Field(..., min_length=1)

    @field_validator("password1")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return check_password_strength(value)


class SignInIn(BaseModel):
    # Email or username
    email_or_username: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class RefreshIn(BaseModel):
    refresh_token: str


class ConfirmEmailIn(BaseModel):
    confirmation_token: str


class ForgotPasswordIn(BaseModel):
    email: EmailStr


class ResetPasswordIn(BaseModel):
    reset_token: str
    password1: str = Field(..., min_length=8, max_length=35)
    password2: str = Field(..., min_length=1)

    @field_validator("password1")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return check_password_strength(value)


class UpdatePasswordIn(BaseModel):
    password: str = Field(..., min_length=1)
    password1: str = Field(..., min_length=8, max_length=35)
    password2: str = Field(..., min_length=1)

    @field_validator("password1")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return check_password_strength(value)


class TokenOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: MeOut

    @classmethod
    def from_result(cls, result) -> "TokenOut":
        return cls(
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            expires_in=result.expires_in,
            user=MeOut.model_validate(result.user),
        )
