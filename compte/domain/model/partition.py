"""Partition marker.

A lightweight constant record per (account, partition). Writing it twice
is indistinguishable from writing it once.
"""

from compte.domain.model.common import DomainModel
from compte.domain.value import AccountId, PartitionName


class PartitionMarker(DomainModel):
    """Marks a usage-mode partition as provisioned for an account."""

    account_id: AccountId
    partition: PartitionName
    initialized: bool = True
