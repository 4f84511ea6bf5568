"""Tests for the account service: uniqueness, credentials and profile updates."""

import io

import pytest
from PIL import Image

from userdeck.core.auth import UNSET_PASSWORD, hash_password, verify_password
from userdeck.core.exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
)
from userdeck.models.enums import AuthProvider, OnlineStatus
from userdeck.models.user import User

PASSWORD = "Sup3rSecret!"


def _png(width: int = 200, height: int = 100) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


async def _create(service, email="john@mail.com", name="John Doe", password=PASSWORD):
    return await service.create(email, name, AuthProvider.LOCAL, password)


# ── create ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_user(users_service):
    user = await _create(users_service, email="John@Mail.COM", name="  john   doe ")
    assert isinstance(user, User)
    assert user.id == 1
    assert user.email == "john@mail.com"
    assert user.name == "John Doe"
    assert user.username == "john-doe"
    assert user.confirmed is False
    assert user.credentials.version == 0
    assert user.auth_providers == [AuthProvider.LOCAL]
    assert user.online_status is OnlineStatus.OFFLINE
    assert user.default_status is OnlineStatus.ONLINE
    assert verify_password(PASSWORD, user.password)


@pytest.mark.asyncio
async def test_create_duplicate_email_conflicts(users_service):
    await _create(users_service)
    with pytest.raises(ConflictError, match="Email already in use"):
        await _create(users_service, email="JOHN@mail.com", name="Someone Else")


@pytest.mark.asyncio
async def test_same_name_gets_numbered_usernames(users_service):
    first = await _create(users_service, email="a@mail.com")
    second = await _create(users_service, email="b@mail.com")
    third = await _create(users_service, email="c@mail.com")
    assert first.username == "john-doe"
    assert second.username == "john-doe1"
    assert third.username == "john-doe2"


@pytest.mark.asyncio
async def test_names_without_ascii_slug_fall_back_to_user(users_service):
    first = await _create(users_service, email="a@mail.com", name="___")
    second = await _create(users_service, email="b@mail.com", name="李小龙")
    assert first.username == "user"
    assert second.username == "user1"
    assert (await users_service.find_one_by_username("user1")).id == second.id


@pytest.mark.asyncio
async def test_create_without_password_is_oauth_only(users_service):
    user = await users_service.create("g@mail.com", "Grace Hopper", AuthProvider.GOOGLE)
    assert user.password == UNSET_PASSWORD
    assert user.confirmed is True
    assert user.auth_providers == [AuthProvider.GOOGLE]
    assert not verify_password("anything", user.password)


def test_passwords_past_bcrypt_limit_never_verify():
    hashed = hash_password(PASSWORD)
    assert verify_password(PASSWORD, hashed)
    assert not verify_password(PASSWORD + "x" * 72, hashed)
    with pytest.raises(ValueError, match="72 bytes"):
        hash_password("Aa1" + "😀" * 32)


# ── read ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_find_one_by_id(users_service):
    await _create(users_service)
    assert (await users_service.find_one_by_id(1)).username == "john-doe"
    with pytest.raises(NotFoundError, match="User not found"):
        await users_service.find_one_by_id(3)


@pytest.mark.asyncio
async def test_find_one_by_username(users_service):
    await _create(users_service)
    assert (await users_service.find_one_by_username("JOHN-DOE")).id == 1
    with pytest.raises(NotFoundError, match="User not found"):
        await users_service.find_one_by_username("not-found")
    with pytest.raises(UnauthorizedError, match="Invalid credentials"):
        await users_service.find_one_by_username("not-found", for_auth=True)


@pytest.mark.asyncio
async def test_find_one_by_email(users_service):
    await _create(users_service)
    assert (await users_service.find_one_by_email("JOHN@mail.com")).id == 1
    with pytest.raises(UnauthorizedError, match="Invalid credentials"):
        await users_service.find_one_by_email("nobody@mail.com")
    assert await users_service.unchecked_user_by_email("nobody@mail.com") is None


@pytest.mark.asyncio
async def test_find_one_by_credentials(users_service):
    await _create(users_service)
    assert (await users_service.find_one_by_credentials(1, 0)).id == 1
    with pytest.raises(UnauthorizedError, match="Invalid credentials"):
        await users_service.find_one_by_credentials(1, 1)
    with pytest.raises(UnauthorizedError, match="Invalid credentials"):
        await users_service.find_one_by_credentials(99, 0)


# ── credentials ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_confirm_email_bumps_version_once(users_service):
    await _create(users_service)
    user = await users_service.confirm_email(1, 0)
    assert user.confirmed is True
    assert user.credentials.version == 1

    with pytest.raises(BadRequestError, match="Email already confirmed"):
        await users_service.confirm_email(1, 1)
    with pytest.raises(UnauthorizedError, match="Invalid credentials"):
        await users_service.confirm_email(1, 0)


@pytest.mark.asyncio
async def test_update_password(users_service):
    created = await _create(users_service)
    old_hash = created.password

    user = await users_service.update_password(1, PASSWORD, "N3wPassword!")
    assert verify_password("N3wPassword!", user.password)
    assert user.credentials.version == 1
    assert user.credentials.last_password == old_hash
    assert user.credentials.password_updated_at is not None


@pytest.mark.asyncio
async def test_update_password_rejects_same_password(users_service):
    await _create(users_service)
    with pytest.raises(BadRequestError, match="New password must be different"):
        await users_service.update_password(1, PASSWORD, PASSWORD)
    assert (await users_service.find_one_by_id(1)).credentials.version == 0


@pytest.mark.asyncio
async def test_update_password_rejects_wrong_password(users_service):
    await _create(users_service)
    with pytest.raises(BadRequestError, match="Wrong password"):
        await users_service.update_password(1, "wrong-password", "N3wPassword!")


@pytest.mark.asyncio
async def test_reset_password(users_service):
    await _create(users_service)
    await users_service.update_password(1, PASSWORD, "N3wPassword!")

    user = await users_service.reset_password(1, 1, PASSWORD)
    assert verify_password(PASSWORD, user.password)
    assert user.credentials.version == 2

    with pytest.raises(UnauthorizedError, match="Invalid credentials"):
        await users_service.reset_password(1, 0, "An0therOne!")


@pytest.mark.asyncio
async def test_update_email(users_service):
    await _create(users_service)
    await _create(users_service, email="taken@mail.com", name="Jane Roe")

    with pytest.raises(BadRequestError, match="Wrong password"):
        await users_service.update_email(1, "new@mail.com", PASSWORD + "1")
    with pytest.raises(BadRequestError, match="Wrong password"):
        await users_service.update_email(1, "new@mail.com", "x" * 100)
    with pytest.raises(BadRequestError, match="Email should be different"):
        await users_service.update_email(1, "JOHN@mail.com", PASSWORD)

    user = await users_service.update_email(1, "New@Mail.com", PASSWORD)
    assert user.email == "new@mail.com"

    with pytest.raises(ConflictError, match="Email already in use"):
        await users_service.update_email(1, "taken@mail.com", PASSWORD)
    assert (await users_service.find_one_by_id(1)).email == "new@mail.com"


# ── profile ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_update_name_regenerates_username(users_service):
    await _create(users_service)
    user = await users_service.update_name(1, "jane   smith")
    assert user.name == "Jane Smith"
    assert user.username == "jane-smith"


@pytest.mark.asyncio
async def test_update_username(users_service):
    await _create(users_service)
    await _create(users_service, email="jane@mail.com", name="Jane Roe")

    user = await users_service.update_username(1, "Johnny")
    assert user.username == "johnny"

    with pytest.raises(ConflictError, match="Username already in use"):
        await users_service.update_username(1, "JOHNNY")
    with pytest.raises(ConflictError, match="Username already in use"):
        await users_service.update_username(1, "jane-roe")
    assert (await users_service.find_one_by_id(1)).username == "johnny"


@pytest.mark.asyncio
async def test_update_online_status_requires_session(users_service, sessions):
    await _create(users_service)

    user = await users_service.update_online_status(1, OnlineStatus.BUSY)
    assert user.default_status is OnlineStatus.BUSY
    assert user.online_status is OnlineStatus.OFFLINE

    await sessions.add(1, "token-id", ttl=60)
    user = await users_service.update_online_status(1, OnlineStatus.IDLE)
    assert user.default_status is OnlineStatus.IDLE
    assert user.online_status is OnlineStatus.IDLE


@pytest.mark.asyncio
async def test_update_picture_queues_old_picture_deletion(
    users_service, media_settings, tasks, run_tasks
):
    await _create(users_service)

    user = await users_service.update_picture(1, _png())
    first_url = user.picture
    assert first_url.startswith("http://test/media/users/1/")
    first_path = media_settings.media_root / first_url.removeprefix("http://test/media/")
    with Image.open(first_path) as stored:
        assert stored.size == (64, 64)
    assert tasks.pending == 0

    user = await users_service.update_picture(1, _png(50, 300))
    assert user.picture != first_url
    assert tasks.pending == 1

    await run_tasks()
    assert not first_path.exists()


@pytest.mark.asyncio
async def test_update_picture_rejects_non_images(users_service):
    await _create(users_service)
    with pytest.raises(BadRequestError, match="Invalid image"):
        await users_service.update_picture(1, b"definitely not a picture")


# ── OAuth2 helpers ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_find_or_create_links_provider(users_service):
    await _create(users_service)
    user = await users_service.find_or_create(AuthProvider.GITHUB, "JOHN@mail.com", "John Doe")
    assert user.id == 1
    assert set(user.auth_providers) == {AuthProvider.LOCAL, AuthProvider.GITHUB}

    again = await users_service.find_or_create(AuthProvider.GITHUB, "john@mail.com", "John Doe")
    assert len(again.auth_providers) == 2

    new = await users_service.find_or_create(AuthProvider.GOOGLE, "ada@mail.com", "Ada Lovelace")
    assert new.id == 2
    assert new.confirmed is True


# ── delete ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_delete_requires_password(users_service):
    await _create(users_service)
    with pytest.raises(BadRequestError, match="Wrong password"):
        await users_service.delete(1, PASSWORD + "1")
    with pytest.raises(BadRequestError, match="Wrong password"):
        await users_service.delete(1, "😀" * 20)

    await users_service.delete(1, PASSWORD)
    with pytest.raises(NotFoundError, match="User not found"):
        await users_service.find_one_by_id(1)
