"""OAuthProvider: links a user to an identity provider it may sign in with."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from userdeck.models.base import Base, TimestampMixin
from userdeck.models.enums import AuthProvider

if TYPE_CHECKING:
    from userdeck.models.user import User


class OAuthProvider(TimestampMixin, Base):
    __tablename__ = "oauth_providers"

    provider: Mapped[AuthProvider] = mapped_column(
        Enum(
            AuthProvider,
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    user: Mapped["User"] = relationship(back_populates="oauth_providers")

    def __repr__(self) -> str:
        return f"<OAuthProvider {self.provider.value!r} user_id={self.user_id}>"
