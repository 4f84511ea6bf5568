"""SQLAlchemy ORM models."""

from userdeck.models.base import Base
from userdeck.models.enums import AuthProvider, OnlineStatus
from userdeck.models.oauth_provider import OAuthProvider
from userdeck.models.user import Credentials, User

__all__ = ["Base", "AuthProvider", "Credentials", "OAuthProvider", "OnlineStatus", "User"]
