"""Create oauth_providers table.

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 00:00:01.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "oauth_providers",
        sa.Column("provider", sa.String(20), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
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
        sa.PrimaryKeyConstraint("provider", "user_id", name="pk_oauth_providers"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_oauth_providers_user_id_users",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_oauth_providers_user_id", "oauth_providers", ["user_id"])


def downgrade() -> None:
    op.drop_table("oauth_providers")
