"""Authentication helpers: password hashing and JWT management.

Every token carries the user's credentials version. Bumping the version
(password change, password reset, email confirmation) invalidates all
tokens issued before the bump:

    1. sign-in            → access + refresh token (refresh has a ``jti``)
    2. protected request  → access token → (sub, version) must match the row
    3. confirm / reset    → one-shot tokens signed with their own secrets
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum

import bcrypt
import jwt

from userdeck.core.config import get_settings
from userdeck.core.exceptions import BadRequestError, UnauthorizedError

# Stored instead of a hash for accounts created through an OAuth2 provider
UNSET_PASSWORD = "UNSET"

# bcrypt refuses passwords longer than this
MAX_PASSWORD_BYTES = 72


# ── Password helpers ─────────────────────────────────────────────────────────

def password_too_long(plain: str) -> bool:
    return len(plain.encode()) > MAX_PASSWORD_BYTES


def hash_password(plain: str) -> str:
    if password_too_long(plain):
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(plain: str, hashed: str) -> bool:
    # A password bcrypt cannot hash never matches a stored hash
    if hashed == UNSET_PASSWORD or password_too_long(plain):
        return False
    return bcrypt.checkpw(plain.encode(), hashed.encode())


# ── JWT helpers ───────────────────────────────────────────────────────────────

class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    CONFIRMATION = "confirmation"
    RESET_PASSWORD = "reset_password"


def _secret_and_lifetime(token_type: TokenType) -> tuple[str, int]:
    s = get_settings()
    return {
        TokenType.ACCESS: (s.jwt_access_secret, s.jwt_access_time),
        TokenType.REFRESH: (s.jwt_refresh_secret, s.jwt_refresh_time),
        TokenType.CONFIRMATION: (s.jwt_confirmation_secret, s.jwt_confirmation_time),
        TokenType.RESET_PASSWORD: (s.jwt_reset_password_secret, s.jwt_reset_password_time),
    }[token_type]


def token_lifetime(token_type: TokenType) -> int:
    return _secret_and_lifetime(token_type)[1]


def create_token(token_type: TokenType, user_id: int, version: int) -> str:
    settings = get_settings()
    secret, lifetime = _secret_and_lifetime(token_type)
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "version": version,
        "type": token_type.value,
        "iat": now,
        "exp": now + timedelta(seconds=lifetime),
        "iss": settings.jwt_issuer,
    }
    if token_type is TokenType.REFRESH:
        payload["jti"] = str(uuid.uuid4())
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def decode_token(token_type: TokenType, token: str) -> dict:
    """Verify *token* and return its claims.

    Session tokens (access / refresh) fail with 401; one-shot tokens sent by
    email (confirmation / reset) fail with 400.
    """
    settings = get_settings()
    secret, _ = _secret_and_lifetime(token_type)
    error_cls = (
        UnauthorizedError
        if token_type in (TokenType.ACCESS, TokenType.REFRESH)
        else BadRequestError
    )
    required = ["sub", "version", "type", "exp", "iss"]
    if token_type is TokenType.REFRESH:
        required.append("jti")
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": required},
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        raise error_cls("Token expired")
    except jwt.InvalidTokenError:
        raise error_cls("Invalid token")

    if payload.get("type") != token_type.value:
        raise error_cls("Invalid token")
    try:
        payload["sub"] = int(payload["sub"])
        payload["version"] = int(payload["version"])
    except (TypeError, ValueError):
        raise error_cls("Invalid token")
    return payload
