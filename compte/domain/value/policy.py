"""Retry policy value object."""

from pydantic import Field

from compte.domain.value.common import ValueObject


class RetryPolicy(ValueObject):
    """Bounded linear backoff for store operations.

    ``max_attempts`` counts the first attempt. After failed attempt ``n``
    (1-based) the caller waits ``n * backoff_unit`` seconds, except after
    the last attempt.
    """

    max_attempts: int = Field(default=5, ge=1)
    backoff_unit: float = Field(default=1.0, ge=0)
    initial_delay: float = Field(default=0.0, ge=0)

    def delay_after(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt."""
        return attempt * self.backoff_unit

    @classmethod
    def immediate(cls, max_attempts: int = 5) -> "RetryPolicy":
        """Policy with no waiting at all (tests, local tooling)."""
        return cls(max_attempts=max_attempts, backoff_unit=0.0, initial_delay=0.0)
