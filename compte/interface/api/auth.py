"""Bearer ID token to identity context."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import SecretStr

from compte.domain.value import AccountId, IdentityContext
from compte.util.jwt import TokenError, read_account_id

bearer_scheme = HTTPBearer(auto_error=False)


async def get_identity_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> IdentityContext:
    """Build the caller's IdentityContext from the Authorization header.

    Raises:
        HTTPException: 401 if the header is missing or the token unreadable
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        account_id = read_account_id(credentials.credentials)
    except TokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return IdentityContext(
        account_id=AccountId(account_id),
        id_token=SecretStr(credentials.credentials),
    )
