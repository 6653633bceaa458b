"""Exception handlers mapping domain errors to HTTP responses."""

import logfire
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from compte.domain.error import IdentityCoreError, NotFoundError
from compte.domain.value import ErrorKind

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.TRANSIENT: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.PERMISSION: status.HTTP_403_FORBIDDEN,
    ErrorKind.REAUTH_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.ALREADY_IN_USE: status.HTTP_409_CONFLICT,
    ErrorKind.POPUP_CANCELLED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNSUPPORTED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_CREDENTIAL: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.UNEXPECTED: status.HTTP_502_BAD_GATEWAY,
}


async def identity_core_error_handler(
    request: Request, exc: IdentityCoreError
) -> JSONResponse:
    """Return the error kind so clients can branch on it."""
    status_code = STATUS_BY_KIND[exc.kind]
    # Unknown provider text is logged, not shown
    detail = (
        "Something went wrong, please try again"
        if exc.kind is ErrorKind.UNEXPECTED
        else str(exc)
    )
    logfire.warn(
        "Request failed",
        path=request.url.path,
        error_kind=exc.kind.value,
        status_code=status_code,
        error=str(exc),
        provider_detail=exc.detail,
    )
    headers = {"Retry-After": "1"} if exc.kind is ErrorKind.TRANSIENT else None
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "error_kind": exc.kind.value},
        headers=headers,
    )


async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register domain error handlers on the app."""
    app.add_exception_handler(IdentityCoreError, identity_core_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
