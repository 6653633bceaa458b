"""SQLAlchemy table definitions for compte.

Profiles and partition markers are stored as one row per document.
They match the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    Boolean,
    Column,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# PROFILES TABLE (one document per provider account id)
# ============================================================================
profiles_table = Table(
    "profiles",
    metadata,
    Column("account_id", String(128), primary_key=True),  # Provider-issued uid
    Column("email", String(255), nullable=True),
    Column("display_name", String(255), nullable=True),
    Column("avatar_url", Text, nullable=True),
    Column("usage_mode", String(16), nullable=False, server_default="unset"),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")
    ),
)

# ============================================================================
# PARTITION MARKERS TABLE (constant marker per account and partition)
# ============================================================================
partition_markers_table = Table(
    "partition_markers",
    metadata,
    Column("account_id", String(128), nullable=False),
    Column("partition", String(16), nullable=False),  # 'personal', 'business'
    Column("initialized", Boolean, nullable=False, server_default=text("true")),
    PrimaryKeyConstraint("account_id", "partition", name="pk_partition_markers"),
)
