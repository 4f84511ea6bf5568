"""Users router: search, lookups and self-service profile updates."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from userdeck.api.dependencies import get_current_user, get_uploader, get_users_service
from userdeck.core.logging import get_logger
from userdeck.models.user import User
from userdeck.schemas.user import (
    EmailUpdate,
    MeOut,
    NameUpdate,
    OnlineStatusUpdate,
    PasswordIn,
    UsernameUpdate,
    UserOut,
    UserPage,
)
from userdeck.services.uploader import Uploader
from userdeck.services.users import UsersService

router = APIRouter(prefix="/users", tags=["users"])
logger = get_logger(__name__)

UsersDep = Annotated[UsersService, Depends(get_users_service)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]


@router.get("", response_model=UserPage)
async def query_users(
    users: UsersDep,
    search: str | None = Query(
        None, min_length=1, max_length=100, pattern=r"^[\w\s'.\-]+$"
    ),
    first: int = Query(10, ge=1, le=50),
    after: str | None = Query(None, min_length=1),
) -> UserPage:
    page = await users.query(search=search, first=first, after=after)
    return UserPage.model_validate(page, from_attributes=True)


# NOTE: /by-username and /me routes must stay ahead of /{user_id}
@router.get("/by-username/{username}", response_model=UserOut)
async def get_user_by_username(username: str, users: UsersDep) -> User:
    return await users.find_one_by_username(username)


@router.patch("/me/name", response_model=MeOut)
async def update_name(payload: NameUpdate, users: UsersDep, current_user: CurrentUserDep) -> User:
    return await users.update_name(current_user.id, payload.name)


@router.patch("/me/username", response_model=MeOut)
async def update_username(
    payload: UsernameUpdate, users: UsersDep, current_user: CurrentUserDep
) -> User:
    return await users.update_username(current_user.id, payload.username)


@router.patch("/me/email", response_model=MeOut)
async def update_email(payload: EmailUpdate, users: UsersDep, current_user: CurrentUserDep) -> User:
    return await users.update_email(current_user.id, payload.email, payload.password)


@router.patch("/me/online-status", response_model=MeOut)
async def update_online_status(
    payload: OnlineStatusUpdate, users: UsersDep, current_user: CurrentUserDep
) -> User:
    return await users.update_online_status(current_user.id, payload.online_status)


@router.put("/me/picture", response_model=MeOut)
async def update_picture(
    users: UsersDep,
    current_user: CurrentUserDep,
    uploader: Annotated[Uploader, Depends(get_uploader)],
    picture: UploadFile = File(...),
) -> User:
    # One byte past the limit is enough for the size check to refuse it
    data = await picture.read(uploader.max_file_size + 1)
    return await users.update_picture(current_user.id, data)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(payload: PasswordIn, users: UsersDep, current_user: CurrentUserDep) -> None:
    await users.delete(current_user.id, payload.password)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: int, users: UsersDep) -> User:
    return await users.find_one_by_id(user_id)
