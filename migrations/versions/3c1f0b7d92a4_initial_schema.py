"""initial_schema

Create the schema for compte:
- Profiles (one document per provider account id)
- Partition markers (one constant row per account and partition)

Revision ID: 3c1f0b7d92a4
Revises:
Create Date: 2026-10-19 10:12:44.218311

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3c1f0b7d92a4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # ========================================================================
    # PROFILES table
    # ========================================================================
    op.create_table(
        "profiles",
        sa.Column("account_id", sa.String(128), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column(
            "usage_mode",
            sa.String(16),
            server_default=sa.text("'unset'"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("account_id"),
        sa.CheckConstraint(
            "usage_mode IN ('personal', 'business', 'both', 'unset')",
            name="ck_profiles_usage_mode",
        ),
    )

    # ========================================================================
    # PARTITION MARKERS table
    # ========================================================================
    op.create_table(
        "partition_markers",
        sa.Column("account_id", sa.String(128), nullable=False),
        sa.Column("partition", sa.String(16), nullable=False),
        sa.Column(
            "initialized",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("account_id", "partition", name="pk_partition_markers"),
        sa.CheckConstraint(
            "partition IN ('personal', 'business')",
            name="ck_partition_markers_partition",
        ),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("partition_markers")
    op.drop_table("profiles")
