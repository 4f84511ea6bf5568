"""Auth router: sign-up/in, tokens, confirmation and password flows."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from userdeck.api.dependencies import get_auth_service, get_current_user
from userdeck.core.limiter import limiter
from userdeck.models.user import User
from userdeck.schemas.auth import (
    ConfirmEmailIn,
    ForgotPasswordIn,
    RefreshIn,
    ResetPasswordIn,
    SignInIn,
    SignUpIn,
    TokenOut,
    UpdatePasswordIn,
)
from userdeck.schemas.common import MessageOut
from userdeck.schemas.user import MeOut
from userdeck.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])

AuthDep = Annotated[AuthService, Depends(get_auth_service)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]


@router.post("/sign-up", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
async def sign_up(payload: SignUpIn, auth: AuthDep) -> MessageOut:
    await auth.sign_up(payload.email, payload.name, payload.password1, payload.password2)
    return MessageOut(message="Registration successful, check your email to confirm your account")


@router.post("/sign-in", response_model=TokenOut)
@limiter.limit("10/minute")
async def sign_in(request: Request, payload: SignInIn, auth: AuthDep) -> TokenOut:
    """Authenticate with email or username + password."""
    return TokenOut.from_result(await auth.sign_in(payload.email_or_username, payload.password))


@router.post("/refresh", response_model=TokenOut)
async def refresh(payload: RefreshIn, auth: AuthDep) -> TokenOut:
    return TokenOut.from_result(await auth.refresh(payload.refresh_token))


@router.post("/logout", response_model=MessageOut)
async def logout(payload: RefreshIn, auth: AuthDep, current_user: CurrentUserDep) -> MessageOut:
    await auth.logout(payload.refresh_token)
    return MessageOut(message="Logout successful")


@router.post("/confirm-email", response_model=TokenOut)
async def confirm_email(payload: ConfirmEmailIn, auth: AuthDep) -> TokenOut:
    return TokenOut.from_result(await auth.confirm_email(payload.confirmation_token))


@router.post("/forgot-password", response_model=MessageOut)
@limiter.limit("5/minute")
async def forgot_password(request: Request, payload: ForgotPasswordIn, auth: AuthDep) -> MessageOut:
    return MessageOut(message=await auth.forgot_password(payload.email))


@router.post("/reset-password", response_model=MessageOut)
async def reset_password(payload: ResetPasswordIn, auth: AuthDep) -> MessageOut:
    await auth.reset_password(payload.reset_token, payload.password1, payload.password2)
    return MessageOut(message="Password reset successfully")


@router.patch("/update-password", response_model=TokenOut)
async def update_password(
    payload: UpdatePasswordIn, auth: AuthDep, current_user: CurrentUserDep
) -> TokenOut:
    result = await auth.update_password(
        current_user.id, payload.password, payload.password1, payload.password2
    )
    return TokenOut.from_result(result)


@router.get("/me", response_model=MeOut)
async def get_me(current_user: CurrentUserDep) -> User:
    """Return the authenticated user's profile."""
    return current_user
