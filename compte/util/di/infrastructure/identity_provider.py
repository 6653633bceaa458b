"""Identity provider infrastructure providers."""

from dishka import Scope, provide

from compte.adapter.identitytoolkit import RealIdentityToolkitClient
from compte.config import Settings
from compte.domain.service import IdentityProvider
from compte.util.di.base import ProviderBase


class IdentityProviderProvider(ProviderBase):
    """Identity provider component base."""

    __mock_component__ = "identity_provider"


class ProdIdentityProviderProvider(IdentityProviderProvider):
    """Production identity provider (Identity Toolkit REST API)."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_identity_provider(self, settings: Settings) -> IdentityProvider:
        """Provide Identity Toolkit client.

        Raises:
            ValueError: If the API key is not configured
        """
        config = settings.identity_provider
        api_key = config.api_key.get_secret_value()
        if not api_key:
            raise ValueError("Identity provider API key must be configured")

        return RealIdentityToolkitClient(
            api_key=api_key,
            base_url=config.base_url,
            request_uri=config.request_uri,
            timeout=config.timeout_seconds,
        )
