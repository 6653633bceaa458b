"""Provider error code translation.

The identity provider reports failures as string codes: the REST API
uses ``UPPER_SNAKE`` messages (optionally followed by `` : details``) and
the web SDK uses ``auth/kebab-case`` codes, which clients may forward.
Both are mapped here, once, onto the closed ErrorKind set so nothing
past this module inspects provider strings.
"""

import logfire

from compte.domain.error import ERRORS_BY_KIND, IdentityCoreError
from compte.domain.value import ErrorKind

CODE_KINDS: dict[str, ErrorKind] = {
    # Session too old or no longer valid
    "REQUIRES_RECENT_LOGIN": ErrorKind.REAUTH_REQUIRED,
    "CREDENTIAL_TOO_OLD_LOGIN_AGAIN": ErrorKind.REAUTH_REQUIRED,
    "TOKEN_EXPIRED": ErrorKind.REAUTH_REQUIRED,
    "USER_TOKEN_EXPIRED": ErrorKind.REAUTH_REQUIRED,
    "INVALID_ID_TOKEN": ErrorKind.REAUTH_REQUIRED,
    "INVALID_USER_TOKEN": ErrorKind.REAUTH_REQUIRED,
    "USER_NOT_FOUND": ErrorKind.REAUTH_REQUIRED,
    "USER_DISABLED": ErrorKind.REAUTH_REQUIRED,
    # Credential bound elsewhere
    "EMAIL_EXISTS": ErrorKind.ALREADY_IN_USE,
    "EMAIL_ALREADY_IN_USE": ErrorKind.ALREADY_IN_USE,
    "CREDENTIAL_ALREADY_IN_USE": ErrorKind.ALREADY_IN_USE,
    "FEDERATED_USER_ID_ALREADY_LINKED": ErrorKind.ALREADY_IN_USE,
    "PROVIDER_ALREADY_LINKED": ErrorKind.ALREADY_IN_USE,
    "ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL": ErrorKind.ALREADY_IN_USE,
    # Client-side popup flow
    "POPUP_CLOSED_BY_USER": ErrorKind.POPUP_CANCELLED,
    "CANCELLED_POPUP_REQUEST": ErrorKind.POPUP_CANCELLED,
    "POPUP_BLOCKED": ErrorKind.POPUP_CANCELLED,
    "USER_CANCELLED": ErrorKind.POPUP_CANCELLED,
    # Not enabled for this project
    "OPERATION_NOT_ALLOWED": ErrorKind.UNSUPPORTED,
    "UNAUTHORIZED_DOMAIN": ErrorKind.UNSUPPORTED,
    "INVALID_PROVIDER_ID": ErrorKind.UNSUPPORTED,
    "NO_SUCH_PROVIDER": ErrorKind.UNSUPPORTED,
    "PASSWORD_LOGIN_DISABLED": ErrorKind.UNSUPPORTED,
    # Bad material
    "WEAK_PASSWORD": ErrorKind.INVALID_CREDENTIAL,
    "INVALID_EMAIL": ErrorKind.INVALID_CREDENTIAL,
    "INVALID_IDP_RESPONSE": ErrorKind.INVALID_CREDENTIAL,
    "INVALID_CREDENTIAL": ErrorKind.INVALID_CREDENTIAL,
    "MISSING_PASSWORD": ErrorKind.INVALID_CREDENTIAL,
    # Try again later
    "NETWORK_REQUEST_FAILED": ErrorKind.TRANSIENT,
    "INTERNAL_ERROR": ErrorKind.TRANSIENT,
    "UNAVAILABLE": ErrorKind.TRANSIENT,
    "TOO_MANY_ATTEMPTS_TRY_LATER": ErrorKind.TRANSIENT,
    "QUOTA_EXCEEDED": ErrorKind.TRANSIENT,
    # Policy
    "PERMISSION_DENIED": ErrorKind.PERMISSION,
    "INSUFFICIENT_PERMISSION": ErrorKind.PERMISSION,
    "ADMIN_ONLY_OPERATION": ErrorKind.PERMISSION,
}


def normalize_code(code: str) -> str:
    """Reduce REST and SDK code spellings to one form.

    >>> normalize_code("auth/requires-recent-login")
    'REQUIRES_RECENT_LOGIN'
    >>> normalize_code("WEAK_PASSWORD : Password should be at least 6 characters")
    'WEAK_PASSWORD'
    """
    code = code.split(" : ", 1)[0].strip()
    if code.startswith("auth/"):
        code = code[len("auth/") :]
    return code.replace("-", "_").upper()


def kind_for_code(code: str) -> ErrorKind:
    """Error kind for a provider code (UNEXPECTED when unknown)."""
    return CODE_KINDS.get(normalize_code(code), ErrorKind.UNEXPECTED)


def provider_error(code: str, message: str | None = None) -> IdentityCoreError:
    """Build the domain error for a provider code.

    Args:
        code: Provider code in REST or SDK form
        message: Optional message, defaults to one naming the code

    Returns:
        IdentityCoreError subclass matching the code's kind
    """
    normalized = normalize_code(code)
    kind = kind_for_code(code)
    if kind is ErrorKind.UNEXPECTED:
        logfire.warn("Unmapped identity provider code", code=code)
    error_cls = ERRORS_BY_KIND[kind]
    return error_cls(message or f"Identity provider error: {normalized}", detail=code)
