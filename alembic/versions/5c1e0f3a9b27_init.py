"""init

Revision ID: 5c1e0f3a9b27
Revises:
Create Date: 2026-10-17 14:30:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "5c1e0f3a9b27"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(512), primary_key=True),
        sa.Column("email", sa.String(512), nullable=False),
        sa.Column("username", sa.String(512), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_users_email", "users", ["email"], unique=True)

    op.create_table(
        "passports",
        sa.Column("guid", sa.String(512), primary_key=True),
        sa.Column("protocol", sa.String(64), nullable=False),
        sa.Column("password", sa.String(512), nullable=True),
        sa.Column("access_token", sa.String(512), nullable=True),
        sa.Column("provider", sa.String(64), nullable=False, server_default="local"),
        sa.Column("identifier", sa.String(512), nullable=True),
        sa.Column("tokens", postgresql.JSONB, nullable=True),
        sa.Column(
            "user_id",
            sa.String(512),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("protocol <> ''", name="ck_passports_protocol_not_empty"),
    )
    op.create_index("idx_passports_user_id", "passports", ["user_id"])
    # Postgres treats NULL identifiers as distinct, so local passports never collide.
    op.create_index(
        "idx_passports_provider_identifier",
        "passports",
        ["provider", "identifier"],
        unique=True,
    )
    op.create_index(
        "idx_passports_access_token", "passports", ["access_token"], unique=True
    )


def downgrade() -> None:
    op.drop_table("passports")
    op.drop_table("users")
