"""Strongly typed identifiers for compte domain entities.

Account identifiers are issued by the identity provider and are opaque
strings (not UUIDs), so they are wrapped with NewType over str.
"""

from typing import NewType

# Provider-issued stable account identifier (immutable for the account's lifetime)
AccountId = NewType("AccountId", str)
