"""Domain layer errors."""

from compte.domain.value import ErrorKind


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class IdentityCoreError(DomainError):
    """Store or provider failure, tagged with a closed error kind.

    ``detail`` keeps the original provider/store text for logs and for
    remediation prompts; callers showing a generic message should rely on
    ``kind`` only.
    """

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, detail: str | None = None):
        self.detail = detail
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class TransientError(IdentityCoreError):
    """Store or provider temporarily unreachable."""

    kind = ErrorKind.TRANSIENT


class PermissionDeniedError(IdentityCoreError):
    """Write rejected by an authorization policy. Never retried."""

    kind = ErrorKind.PERMISSION


class ReauthRequiredError(IdentityCoreError):
    """Provider requires a recent sign-in before this change."""

    kind = ErrorKind.REAUTH_REQUIRED


class AlreadyInUseError(IdentityCoreError):
    """Credential is already bound to another account."""

    kind = ErrorKind.ALREADY_IN_USE


class PopupCancelledError(IdentityCoreError):
    """User dismissed the provider's sign-in popup."""

    kind = ErrorKind.POPUP_CANCELLED


class UnsupportedError(IdentityCoreError):
    """Provider or operation not enabled for this project."""

    kind = ErrorKind.UNSUPPORTED


class InvalidCredentialError(IdentityCoreError):
    """Credential material rejected (weak password, malformed email)."""

    kind = ErrorKind.INVALID_CREDENTIAL


class UnexpectedProviderError(IdentityCoreError):
    """Failure outside the known taxonomy."""

    kind = ErrorKind.UNEXPECTED


ERRORS_BY_KIND: dict[ErrorKind, type[IdentityCoreError]] = {
    cls.kind: cls
    for cls in (
        TransientError,
        PermissionDeniedError,
        ReauthRequiredError,
        AlreadyInUseError,
        PopupCancelledError,
        UnsupportedError,
        InvalidCredentialError,
        UnexpectedProviderError,
    )
}
