"""Response models shared by identity use cases."""

from datetime import datetime

from pydantic import BaseModel

from compte.domain.model.profile import Profile
from compte.domain.service import PartitionOutcome
from compte.domain.value import (
    DenialReason,
    ErrorKind,
    LinkDecision,
    PartitionName,
    UsageMode,
)


class ProfileInfo(BaseModel):
    """Profile information for response."""

    account_id: str
    email: str | None
    display_name: str | None
    avatar_url: str | None
    usage_mode: UsageMode
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileInfo":
        return cls(
            account_id=profile.account_id,
            email=profile.email,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
            usage_mode=profile.usage_mode,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )


class PartitionInfo(BaseModel):
    """Result of one partition marker write."""

    partition: PartitionName
    initialized: bool
    error_kind: ErrorKind | None = None

    @classmethod
    def from_outcome(cls, outcome: PartitionOutcome) -> "PartitionInfo":
        return cls(
            partition=outcome.partition,
            initialized=outcome.ok,
            error_kind=outcome.error_kind,
        )


class DecisionInfo(BaseModel):
    """Guard decision for a credential change."""

    allowed: bool
    no_op: bool = False
    reason: DenialReason | None = None
    remediation: str | None = None

    @classmethod
    def from_decision(cls, decision: LinkDecision) -> "DecisionInfo":
        return cls(
            allowed=decision.allowed,
            no_op=decision.no_op,
            reason=decision.reason,
            remediation=decision.remediation,
        )
