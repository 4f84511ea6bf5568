"""Create users table.

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(110), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("picture", sa.String(250), nullable=True),
        sa.Column("password", sa.Text(), nullable=False),
        sa.Column("confirmed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("online_status", sa.String(20), nullable=False, server_default="offline"),
        sa.Column("default_status", sa.String(20), nullable=False, server_default="online"),
        sa.Column("credentials_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("credentials_last_password", sa.Text(), nullable=False, server_default=""),
        sa.Column("credentials_password_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    # Unique indexes back the service's conflict detection
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)


def downgrade() -> None:
    op.drop_table("users")
