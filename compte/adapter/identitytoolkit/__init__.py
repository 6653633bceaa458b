"""Identity Toolkit adapter."""

from .client import (
    IdentityToolkitClient,
    MockIdentityToolkitClient,
    RealIdentityToolkitClient,
)

__all__ = [
    "IdentityToolkitClient",
    "RealIdentityToolkitClient",
    "MockIdentityToolkitClient",
]
