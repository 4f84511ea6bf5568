"""Account service: user CRUD, uniqueness and credentials versioning.

Email and username uniqueness rest on the database's unique indexes: every
write goes through ``_save``, which commits and turns an IntegrityError on
either index into a ConflictError.  No check-then-insert queries.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from userdeck.core.auth import UNSET_PASSWORD, hash_password, verify_password
from userdeck.core.exceptions import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from userdeck.core.formatting import format_search, format_title, point_slug
from userdeck.core.logging import get_logger
from userdeck.core.pagination import CursorType, Page, QueryOrder, paginate
from userdeck.core.tasks import TaskQueue
from userdeck.models.enums import AuthProvider, OnlineStatus
from userdeck.models.oauth_provider import OAuthProvider
from userdeck.models.user import Credentials, User
from userdeck.services.sessions import SessionsStore
from userdeck.services.uploader import Ratio, Uploader

logger = get_logger(__name__)

FALLBACK_USERNAME = "user"


def _conflict_from(exc: IntegrityError) -> ConflictError | None:
    message = str(exc.orig).lower()
    if "email" in message:
        return ConflictError("Email already in use")
    if "username" in message:
        return ConflictError("Username already in use")
    return None


class UsersService:
    def __init__(
        self,
        db: AsyncSession,
        sessions: SessionsStore,
        uploader: Uploader | None = None,
        tasks: TaskQueue | None = None,
    ) -> None:
        self._db = db
        self._sessions = sessions
        self._uploader = uploader
        self._tasks = tasks

    # ── Persistence ───────────────────────────────────────────────────────────

    async def _save(self, user: User, is_new: bool = False) -> None:
        if is_new:
            self._db.add(user)
        try:
            await self._db.commit()
        except IntegrityError as exc:
            await self._db.rollback()
            conflict = _conflict_from(exc)
            if conflict is None:
                raise
            raise conflict from exc
        await self._db.refresh(user)

    async def _first(self, *criteria) -> User | None:
        result = await self._db.execute(select(User).where(*criteria))
        return result.scalar_one_or_none()

    async def _generate_username(self, name: str) -> str:
        """Point slug of *name*, suffixed with the count of usernames already
        starting with it ("john-doe", "john-doe1", "john-doe2", …).

        Names without any ASCII letter or digit slug to nothing and use
        ``FALLBACK_USERNAME`` as the base instead.
        """
        slug = point_slug(name) or FALLBACK_USERNAME
        count = (
            await self._db.execute(
                select(func.count()).select_from(User).where(User.username.like(f"{slug}%"))
            )
        ).scalar_one()
        return f"{slug}{count}" if count > 0 else slug

    @staticmethod
    def _check_password(user: User, password: str) -> None:
        if not verify_password(password, user.password):
            raise BadRequestError("Wrong password")

    # ── Create ────────────────────────────────────────────────────────────────

    async def create(
        self,
        email: str,
        name: str,
        provider: AuthProvider,
        password: str | None = None,
    ) -> User:
        formatted_name = format_title(name)
        user = User(
            email=email.lower(),
            name=formatted_name,
            username=await self._generate_username(formatted_name),
            password=UNSET_PASSWORD if password is None else hash_password(password),
            confirmed=provider is not AuthProvider.LOCAL,
            online_status=OnlineStatus.OFFLINE,
            default_status=OnlineStatus.ONLINE,
            credentials=Credentials(),
            oauth_providers=[OAuthProvider(provider=provider)],
        )
        await self._save(user, is_new=True)
        logger.info("User created", user_id=user.id, username=user.username, provider=provider.value)
        return user

    async def find_or_create(self, provider: AuthProvider, email: str, name: str) -> User:
        """Resolve an OAuth2 identity to an account, linking *provider* if needed."""
        user = await self.unchecked_user_by_email(email)
        if user is None:
            return await self.create(email, name, provider)
        if provider not in user.auth_providers:
            await self.add_auth_provider(user, provider)
        return user

    # ── Read ──────────────────────────────────────────────────────────────────

    async def find_one_by_id(self, user_id: int) -> User:
        user = await self._first(User.id == user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def find_one_by_username(self, username: str, for_auth: bool = False) -> User:
        user = await self._first(User.username == username.lower())
        if user is None:
            if for_auth:
                raise UnauthorizedError("Invalid credentials")
            raise NotFoundError("User not found")
        return user

    async def find_one_by_email(self, email: str) -> User:
        user = await self.unchecked_user_by_email(email)
        if user is None:
            raise UnauthorizedError("Invalid credentials")
        return user

    async def unchecked_user_by_email(self, email: str) -> User | None:
        return await self._first(User.email == email.lower())

    async def find_one_by_credentials(self, user_id: int, version: int) -> User:
        user = await self._first(User.id == user_id)
        if user is None or user.credentials.version != version:
            raise UnauthorizedError("Invalid credentials")
        return user

    async def query(
        self, search: str | None = None, first: int = 10, after: str | None = None
    ) -> Page:
        stmt = select(User).where(User.confirmed.is_(True))
        if search is not None:
            stmt = stmt.where(User.name.ilike(format_search(search)))
        return await paginate(
            self._db,
            stmt,
            User.username,
            first,
            after=after,
            order=QueryOrder.ASC,
            cursor_type=CursorType.STRING,
        )

    # ── Credentials ──────────────────────────────────────────────────────────

    async def confirm_email(self, user_id: int, version: int) -> User:
        user = await self.find_one_by_credentials(user_id, version)
        if user.confirmed:
            raise BadRequestError("Email already confirmed")
        user.confirmed = True
        user.credentials = user.credentials.next_version()
        await self._save(user)
        return user

    async def update_password(self, user_id: int, password: str, new_password: str) -> User:
        user = await self.find_one_by_id(user_id)
        self._check_password(user, password)
        if verify_password(new_password, user.password):
            raise BadRequestError("New password must be different")
        user.credentials = user.credentials.with_password(user.password)
        user.password = hash_password(new_password)
        await self._save(user)
        return user

    async def reset_password(self, user_id: int, version: int, password: str) -> User:
        user = await self.find_one_by_credentials(user_id, version)
        user.credentials = user.credentials.with_password(user.password)
        user.password = hash_password(password)
        await self._save(user)
        return user

    async def update_email(self, user_id: int, email: str, password: str) -> User:
        user = await self.find_one_by_id(user_id)
        self._check_password(user, password)
        formatted_email = email.lower()
        if user.email == formatted_email:
            raise BadRequestError("Email should be different")
        user.email = formatted_email
        await self._save(user)
        return user

    # ── Profile ───────────────────────────────────────────────────────────────

    async def update_picture(self, user_id: int, data: bytes) -> User:
        if self._uploader is None:
            raise RuntimeError("UsersService was built without an uploader")
        user = await self.find_one_by_id(user_id)
        old_picture = user.picture
        user.picture = await self._uploader.upload_image(user_id, data, Ratio.SQUARE)
        await self._save(user)

        if old_picture:
            if self._tasks is not None:
                self._tasks.enqueue("delete-picture", self._uploader.delete_file, old_picture)
            else:
                logger.warning("No task queue, old picture kept", picture=old_picture)
        return user

    async def update_name(self, user_id: int, name: str) -> User:
        formatted_name = format_title(name)
        user = await self.find_one_by_id(user_id)
        user.name = formatted_name
        user.username = await self._generate_username(formatted_name)
        await self._save(user)
        return user

    async def update_username(self, user_id: int, username: str) -> User:
        formatted_username = username.lower()
        user = await self.find_one_by_id(user_id)
        # The caller's own row counts as taking the name
        if user.username == formatted_username:
            raise ConflictError("Username already in use")
        user.username = formatted_username
        await self._save(user)
        return user

    async def update_online_status(self, user_id: int, online_status: OnlineStatus) -> User:
        user = await self.find_one_by_id(user_id)
        user.default_status = online_status
        # Without a live session the displayed status stays as is
        if await self._sessions.is_active(user_id):
            user.online_status = online_status
        await self._save(user)
        return user

    # ── Internal single-field updates ────────────────────────────────────────

    async def set_online_status(self, user: User, online_status: OnlineStatus) -> None:
        user.online_status = online_status
        await self._save(user)

    async def add_auth_provider(self, user: User, provider: AuthProvider) -> None:
        user.oauth_providers.append(OAuthProvider(provider=provider))
        await self._save(user)
        logger.info("Auth provider linked", user_id=user.id, provider=provider.value)

    # ── Delete ────────────────────────────────────────────────────────────────

    async def delete(self, user_id: int, password: str) -> User:
        user = await self.find_one_by_id(user_id)
        self._check_password(user, password)
        await self._db.delete(user)
        await self._db.commit()
        logger.info("User deleted", user_id=user_id)
        return user
