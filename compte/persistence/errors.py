"""Translation of SQLAlchemy failures into domain error kinds."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import logfire
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from compte.domain.error import PermissionDeniedError, TransientError

# SQLSTATE 42501 insufficient_privilege (row level security, revoked grants)
INSUFFICIENT_PRIVILEGE = "42501"

# Serialization failure, deadlock, shutdown, too many connections
TRANSIENT_SQLSTATES = {"40001", "40P01", "57P01", "57P02", "57P03", "53300"}


def _sqlstate(error: DBAPIError) -> str | None:
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _is_transient(error: DBAPIError, sqlstate: str | None) -> bool:
    if error.connection_invalidated:
        return True
    if isinstance(error, (OperationalError, InterfaceError)):
        return True
    if sqlstate is None:
        return False
    # Class 08: connection exceptions
    return sqlstate.startswith("08") or sqlstate in TRANSIENT_SQLSTATES


@asynccontextmanager
async def translate_store_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise store failures as TransientError or PermissionDeniedError.

    Anything else (integrity errors, programming errors) propagates as-is.

    Args:
        operation: Short operation name for logs (e.g. "profiles.merge")
    """
    try:
        yield
    except DBAPIError as e:
        sqlstate = _sqlstate(e)
        if sqlstate == INSUFFICIENT_PRIVILEGE:
            logfire.error("Store permission denied", operation=operation)
            raise PermissionDeniedError(
                f"Store rejected {operation}", detail=str(e.orig)
            ) from e
        if _is_transient(e, sqlstate):
            logfire.warn(
                "Store temporarily unavailable", operation=operation, sqlstate=sqlstate
            )
            raise TransientError(
                f"Store unavailable during {operation}", detail=str(e.orig)
            ) from e
        raise
    except (PoolTimeoutError, OSError) as e:
        logfire.warn("Store connection failed", operation=operation, error=str(e))
        raise TransientError(
            f"Store unavailable during {operation}", detail=str(e)
        ) from e
