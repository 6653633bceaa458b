"""Domain services."""

from .base import Service
from .identity_provider import IdentityProvider
from .link_guard import LinkGuard
from .partition_initializer import PartitionInitializer, PartitionOutcome
from .profile_reconciler import ProfileReconciler, ReconcileResult

__all__ = [
    "IdentityProvider",
    "LinkGuard",
    "PartitionInitializer",
    "PartitionOutcome",
    "ProfileReconciler",
    "ReconcileResult",
    "Service",
]
