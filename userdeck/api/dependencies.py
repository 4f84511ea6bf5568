"""FastAPI dependency providers."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from userdeck.core.auth import TokenType, decode_token
from userdeck.core.cache import Cache, get_cache
from userdeck.core.database import get_session_factory
from userdeck.core.mailer import Mailer
from userdeck.core.tasks import TaskQueue, get_task_queue
from userdeck.models.user import User
from userdeck.services.auth import AuthService
from userdeck.services.oauth2 import OAuth2Service
from userdeck.services.sessions import SessionsStore
from userdeck.services.uploader import Uploader
from userdeck.services.users import UsersService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/sign-in")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for the duration of a request."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_cache_backend() -> Cache:
    return get_cache()


def get_tasks() -> TaskQueue:
    return get_task_queue()


def get_uploader() -> Uploader:
    return Uploader()


def get_mailer() -> Mailer:
    return Mailer()


def get_sessions(cache: Annotated[Cache, Depends(get_cache_backend)]) -> SessionsStore:
    return SessionsStore(cache)


def get_users_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    sessions: Annotated[SessionsStore, Depends(get_sessions)],
    uploader: Annotated[Uploader, Depends(get_uploader)],
    tasks: Annotated[TaskQueue, Depends(get_tasks)],
) -> UsersService:
    return UsersService(db, sessions, uploader=uploader, tasks=tasks)


def get_auth_service(
    users: Annotated[UsersService, Depends(get_users_service)],
    sessions: Annotated[SessionsStore, Depends(get_sessions)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
    tasks: Annotated[TaskQueue, Depends(get_tasks)],
) -> AuthService:
    return AuthService(users, sessions, mailer, tasks)


def get_oauth2_service(
    cache: Annotated[Cache, Depends(get_cache_backend)],
    users: Annotated[UsersService, Depends(get_users_service)],
) -> OAuth2Service:
    return OAuth2Service(cache, users)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    users: Annotated[UsersService, Depends(get_users_service)],
) -> User:
    """Decode the access token and return the matching User row.

    A token issued before the last credentials bump is rejected.
    """
    payload = decode_token(TokenType.ACCESS, token)
    return await users.find_one_by_credentials(payload["sub"], payload["version"])
