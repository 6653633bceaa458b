"""Infrastructure providers."""

# Import bases
from .identity_provider import IdentityProviderProvider
from .persistence import PersistenceProvider

# Import implementations (needed for __subclasses__())
from .identity_provider import ProdIdentityProviderProvider  # noqa: F401
from .persistence import ProdPersistenceProvider  # noqa: F401

__all__ = [
    "IdentityProviderProvider",
    "PersistenceProvider",
    "ProdIdentityProviderProvider",
    "ProdPersistenceProvider",
]
