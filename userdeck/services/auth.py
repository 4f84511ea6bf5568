"""Auth service: sign-up/in, token rotation, logout, confirmation and resets."""

from __future__ import annotations

import time
from dataclasses import dataclass

from userdeck.core.auth import TokenType, create_token, decode_token, token_lifetime, verify_password
from userdeck.core.exceptions import BadRequestError, UnauthorizedError
from userdeck.core.logging import get_logger
from userdeck.core.mailer import Mailer
from userdeck.core.tasks import TaskQueue
from userdeck.models.enums import AuthProvider, OnlineStatus
from userdeck.models.user import User
from userdeck.services.sessions import SessionsStore
from userdeck.services.users import UsersService

logger = get_logger(__name__)

RESET_EMAIL_MESSAGE = "If an account with that email exists, a reset link has been sent"


@dataclass
class AuthResult:
    user: User
    access_token: str
    refresh_token: str
    expires_in: int


def _check_passwords_match(password1: str, password2: str) -> None:
    if password1 != password2:
        raise BadRequestError("Passwords do not match")


class AuthService:
    def __init__(
        self,
        users: UsersService,
        sessions: SessionsStore,
        mailer: Mailer,
        tasks: TaskQueue,
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._mailer = mailer
        self._tasks = tasks

    def _queue_confirmation(self, user: User) -> None:
        token = create_token(TokenType.CONFIRMATION, user.id, user.credentials.version)
        self._tasks.enqueue(
            "confirmation-email",
            self._mailer.send_confirmation_email,
            user.email,
            user.name,
            token,
        )

    async def generate_auth(self, user: User) -> AuthResult:
        """Issue an access/refresh pair and register the session."""
        version = user.credentials.version
        access_token = create_token(TokenType.ACCESS, user.id, version)
        refresh_token = create_token(TokenType.REFRESH, user.id, version)
        claims = decode_token(TokenType.REFRESH, refresh_token)
        await self._sessions.add(user.id, claims["jti"], token_lifetime(TokenType.REFRESH))
        if user.online_status != user.default_status:
            await self._users.set_online_status(user, user.default_status)
        return AuthResult(
            user=user,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=token_lifetime(TokenType.ACCESS),
        )

    async def sign_up(self, email: str, name: str, password1: str, password2: str) -> User:
        _check_passwords_match(password1, password2)
        user = await self._users.create(email, name, AuthProvider.LOCAL, password1)
        self._queue_confirmation(user)
        return user

    async def sign_in(self, email_or_username: str, password: str) -> AuthResult:
        if "@" in email_or_username:
            user = await self._users.find_one_by_email(email_or_username)
        else:
            user = await self._users.find_one_by_username(email_or_username, for_auth=True)

        if not verify_password(password, user.password):
            raise UnauthorizedError("Invalid credentials")
        if not user.confirmed:
            self._queue_confirmation(user)
            raise UnauthorizedError("Please confirm your email, a new email has been sent")

        logger.info("User signed in", user_id=user.id)
        return await self.generate_auth(user)

    async def _verify_refresh(self, refresh_token: str) -> tuple[User, dict]:
        claims = decode_token(TokenType.REFRESH, refresh_token)
        if await self._sessions.is_blacklisted(claims["sub"], claims["jti"]):
            raise UnauthorizedError("Invalid token")
        user = await self._users.find_one_by_credentials(claims["sub"], claims["version"])
        return user, claims

    async def _revoke(self, claims: dict) -> int:
        remaining_ttl = int(claims["exp"] - time.time())
        await self._sessions.blacklist(claims["sub"], claims["jti"], remaining_ttl)
        return await self._sessions.remove(claims["sub"], claims["jti"])

    async def refresh(self, refresh_token: str) -> AuthResult:
        user, claims = await self._verify_refresh(refresh_token)
        await self._revoke(claims)
        return await self.generate_auth(user)

    async def logout(self, refresh_token: str) -> None:
        user, claims = await self._verify_refresh(refresh_token)
        remaining = await self._revoke(claims)
        if remaining == 0:
            await self._users.set_online_status(user, OnlineStatus.OFFLINE)
        logger.info("User signed out", user_id=user.id, sessions=remaining)

    async def confirm_email(self, confirmation_token: str) -> AuthResult:
        claims = decode_token(TokenType.CONFIRMATION, confirmation_token)
        user = await self._users.confirm_email(claims["sub"], claims["version"])
        return await self.generate_auth(user)

    async def forgot_password(self, email: str) -> str:
        user = await self._users.unchecked_user_by_email(email)
        if user is not None:
            token = create_token(TokenType.RESET_PASSWORD, user.id, user.credentials.version)
            self._tasks.enqueue(
                "reset-password-email",
                self._mailer.send_reset_password_email,
                user.email,
                user.name,
                token,
            )
        return RESET_EMAIL_MESSAGE

    async def reset_password(self, reset_token: str, password1: str, password2: str) -> User:
        _check_passwords_match(password1, password2)
        claims = decode_token(TokenType.RESET_PASSWORD, reset_token)
        return await self._users.reset_password(claims["sub"], claims["version"], password1)

    async def update_password(
        self, user_id: int, password: str, password1: str, password2: str
    ) -> AuthResult:
        _check_passwords_match(password1, password2)
        user = await self._users.update_password(user_id, password, password1)
        return await self.generate_auth(user)
