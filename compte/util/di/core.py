"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from compte.config import Settings
from compte.domain.value import RetryPolicy
from compte.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file automatically.
    """

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings from environment."""
        return Settings()

    @provide(scope=Scope.APP)
    def provide_retry_policy(self, settings: Settings) -> RetryPolicy:
        """Provide reconciliation retry policy."""
        return RetryPolicy(
            max_attempts=settings.reconciliation.max_attempts,
            backoff_unit=settings.reconciliation.backoff_unit_seconds,
            initial_delay=settings.reconciliation.initial_delay_seconds,
        )
