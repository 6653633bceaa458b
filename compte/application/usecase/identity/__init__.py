"""Identity use cases."""

from .get_profile import GetProfileUseCase
from .link_credential import LinkCredentialUseCase
from .list_credentials import ListCredentialsUseCase
from .reconcile_profile import ReconcileProfileUseCase
from .unlink_credential import UnlinkCredentialUseCase
from .update_usage_mode import UpdateUsageModeUseCase

__all__ = [
    "GetProfileUseCase",
    "LinkCredentialUseCase",
    "ListCredentialsUseCase",
    "ReconcileProfileUseCase",
    "UnlinkCredentialUseCase",
    "UpdateUsageModeUseCase",
]
