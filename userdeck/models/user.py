"""User model: local accounts and OAuth2-federated identities."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from userdeck.models.base import Base, IntPrimaryKeyMixin, TimestampMixin
from userdeck.models.enums import AuthProvider, OnlineStatus
from userdeck.models.oauth_provider import OAuthProvider


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


@dataclasses.dataclass
class Credentials:
    """Embedded credentials state; replaced as a whole, never mutated."""

    version: int = 0
    last_password: str = ""
    password_updated_at: datetime | None = None

    def next_version(self) -> Credentials:
        return dataclasses.replace(self, version=self.version + 1)

    def with_password(self, old_hash: str) -> Credentials:
        return dataclasses.replace(
            self,
            version=self.version + 1,
            last_password=old_hash,
            password_updated_at=datetime.now(timezone.utc),
        )


class User(IntPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(110), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    picture: Mapped[str | None] = mapped_column(String(250), nullable=True)

    # bcrypt hash, or UNSET_PASSWORD for OAuth2-only accounts
    password: Mapped[str] = mapped_column(Text, nullable=False)

    confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    online_status: Mapped[OnlineStatus] = mapped_column(
        Enum(OnlineStatus, native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        default=OnlineStatus.OFFLINE,
    )
    default_status: Mapped[OnlineStatus] = mapped_column(
        Enum(OnlineStatus, native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        default=OnlineStatus.ONLINE,
    )

    credentials: Mapped[Credentials] = composite(
        mapped_column("credentials_version", Integer, nullable=False, default=0),
        mapped_column("credentials_last_password", Text, nullable=False, default=""),
        mapped_column("credentials_password_updated_at", DateTime(timezone=True), nullable=True),
    )

    oauth_providers: Mapped[list[OAuthProvider]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def auth_providers(self) -> list[AuthProvider]:
        return [link.provider for link in self.oauth_providers]

    def __repr__(self) -> str:
        return f"<User {self.username!r} confirmed={self.confirmed}>"
