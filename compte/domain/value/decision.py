"""Outcome of a credential change check."""

from compte.domain.value.common import ValueObject
from compte.domain.value.types import DenialReason


class LinkDecision(ValueObject):
    """Allowed or denied, with a reason when denied.

    Denial is an expected outcome and is returned, never raised.
    ``no_op`` marks an allowed change that has nothing left to do
    (credential already linked, or already absent).
    """

    allowed: bool
    reason: DenialReason | None = None
    no_op: bool = False

    @classmethod
    def allow(cls) -> "LinkDecision":
        return cls(allowed=True)

    @classmethod
    def nothing_to_do(cls) -> "LinkDecision":
        return cls(allowed=True, no_op=True)

    @classmethod
    def deny(cls, reason: DenialReason) -> "LinkDecision":
        return cls(allowed=False, reason=reason)

    @property
    def remediation(self) -> str | None:
        """User-facing hint for a denial."""
        return self.reason.remediation if self.reason else None
