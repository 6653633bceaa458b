"""Mappers for converting between database rows and domain models.

Since we're using Pydantic domain models (immutable), we use manual mapping
instead of SQLAlchemy's classical imperative mapping.
"""

from enum import Enum
from typing import Any, Dict

from compte.domain.model import PartitionMarker, Profile
from compte.domain.value import AccountId, PartitionName, UsageMode


def row_to_profile(row: Dict[str, Any]) -> Profile:
    """Convert database row to Profile domain model.

    Args:
        row: Database row as dict

    Returns:
        Profile domain model
    """
    return Profile(
        account_id=AccountId(row["account_id"]),
        email=row.get("email"),
        display_name=row.get("display_name"),
        avatar_url=row.get("avatar_url"),
        usage_mode=UsageMode(row.get("usage_mode") or UsageMode.UNSET.value),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def profile_fields_to_row(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a profile merge payload to column values.

    Args:
        fields: Profile field names to domain values

    Returns:
        Dict suitable for insert/update, enums flattened to their values
    """
    return {
        name: value.value if isinstance(value, Enum) else value
        for name, value in fields.items()
    }


def row_to_partition_marker(row: Dict[str, Any]) -> PartitionMarker:
    """Convert database row to PartitionMarker domain model.

    Args:
        row: Database row as dict

    Returns:
        PartitionMarker domain model
    """
    return PartitionMarker(
        account_id=AccountId(row["account_id"]),
        partition=PartitionName(row["partition"]),
        initialized=row["initialized"],
    )


def partition_marker_to_dict(marker: PartitionMarker) -> Dict[str, Any]:
    """Convert PartitionMarker domain model to database dict.

    Args:
        marker: PartitionMarker domain model

    Returns:
        Dict suitable for database insertion
    """
    return marker.model_dump(mode="json")
