"""Schemas for User resources."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from userdeck.models.enums import AuthProvider, OnlineStatus
from userdeck.schemas.common import PaginatedOut
from userdeck.schemas.validators import NAME_PATTERN, USERNAME_PATTERN


class UserOut(BaseModel):
    """Public profile: what other users may see."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    username: str
    picture: str | None
    online_status: OnlineStatus
    created_at: datetime
    updated_at: datetime


class MeOut(UserOut):
    """The authenticated user's own profile."""

    email: str
    confirmed: bool
    default_status: OnlineStatus
    auth_providers: list[AuthProvider]


UserPage = PaginatedOut[UserOut]


class NameUpdate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100, pattern=NAME_PATTERN)


class UsernameUpdate(BaseModel):
    username: str = Field(..., min_length=3, max_length=106, pattern=USERNAME_PATTERN)


class EmailUpdate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class OnlineStatusUpdate(BaseModel):
    online_status: OnlineStatus


class PasswordIn(BaseModel):
    password: str = Field(..., min_length=1)
