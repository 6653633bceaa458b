"""Identity Toolkit client implementation.

Talks to the Identity Toolkit REST API (the backend of Firebase/Google
Cloud Identity Platform auth) on behalf of the signed-in user, using the
user's own ID token. The project web API key goes in the ``key`` query
parameter.
"""

from urllib.parse import urlencode

import httpx
import logfire

from compte.domain.error import ReauthRequiredError, TransientError
from compte.domain.model.credential import Credential, CredentialSet, CurrentIdentity
from compte.domain.service.identity_provider import IdentityProvider
from compte.domain.value import (
    AccountId,
    CredentialMaterial,
    ErrorKind,
    IdentityContext,
    ProviderKind,
)

from .errors import kind_for_code, provider_error


def _subject_from(info: dict) -> str | None:
    """Provider subject from a providerUserInfo entry or signInWithIdp reply.

    ``rawId`` is the IdP's own subject; ``federatedId`` may be a URL ending
    in it (``https://accounts.google.com/1234``).
    """
    raw_id = info.get("rawId")
    if raw_id:
        return raw_id
    federated_id = info.get("federatedId")
    if federated_id:
        return federated_id.rstrip("/").rsplit("/", 1)[-1]
    return info.get("email") or info.get("phoneNumber")


def _require_token(context: IdentityContext) -> str:
    if context.id_token is None:
        raise ReauthRequiredError(
            "No session token for this account", detail="missing id_token"
        )
    return context.id_token.get_secret_value()


class IdentityToolkitClient(IdentityProvider):
    """Base class for Identity Toolkit clients.

    Provides type distinction for dependency injection.
    """

    pass


class RealIdentityToolkitClient(IdentityToolkitClient):
    """Identity Toolkit REST client."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        request_uri: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Identity Toolkit client.

        Args:
            api_key: Web API key of the identity project
            base_url: API root, e.g. https://identitytoolkit.googleapis.com/v1
            request_uri: Continue URI sent with IdP credentials
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.request_uri = request_uri
        self.timeout = timeout
        self.transport = transport

    async def _call(self, method: str, body: dict) -> dict:
        """POST to ``accounts:<method>`` and return the decoded reply.

        Raises:
            TransientError: Network failure or 5xx reply
            IdentityCoreError: Provider error code, translated
        """
        url = f"{self.base_url}/accounts:{method}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(
                    url, params={"key": self.api_key}, json=body
                )
        except httpx.TransportError as e:
            logfire.warn("Identity provider unreachable", method=method, error=str(e))
            raise TransientError(
                "Identity provider unreachable", detail=str(e)
            ) from e

        if response.status_code == 200:
            return response.json()

        code = self._error_code(response)
        logfire.warn(
            "Identity provider request failed",
            method=method,
            status_code=response.status_code,
            code=code,
        )
        if response.status_code >= 500 and kind_for_code(code) is ErrorKind.UNEXPECTED:
            raise TransientError(
                f"Identity provider error: HTTP {response.status_code}",
                detail=response.text,
            )
        raise provider_error(code or f"HTTP_{response.status_code}")

    @staticmethod
    def _error_code(response: httpx.Response) -> str:
        """Error message from ``{"error": {"message": ...}}``, or empty."""
        try:
            payload = response.json()
        except ValueError:
            return ""
        error = payload.get("error") if isinstance(payload, dict) else None
        if not isinstance(error, dict):
            return ""
        return str(error.get("message") or "")

    async def get_current_identity(self, context: IdentityContext) -> CurrentIdentity:
        """Look up the signed-in account via ``accounts:lookup``.

        Args:
            context: Caller identity with a valid ID token

        Returns:
            Account claims and its bound credentials

        Raises:
            ReauthRequiredError: Token missing, expired, or for another account
        """
        token = _require_token(context)
        with logfire.span(
            "identity_toolkit.get_current_identity", account_id=context.account_id
        ):
            data = await self._call("lookup", {"idToken": token})
            users = data.get("users") or []
            if not users:
                raise ReauthRequiredError("Session no longer resolves to an account")

            user = users[0]
            account_id = AccountId(user["localId"])
            if account_id != context.account_id:
                logfire.warn(
                    "Session token belongs to another account",
                    account_id=context.account_id,
                    token_account_id=account_id,
                )
                raise ReauthRequiredError("Session token does not match the account")

            credentials = set()
            for info in user.get("providerUserInfo", []):
                provider_id = info.get("providerId")
                subject = _subject_from(info)
                try:
                    provider = ProviderKind(provider_id)
                except ValueError:
                    # Counted as absent, so unlink checks err towards denying
                    logfire.warn(
                        "Skipping unknown provider credential",
                        account_id=account_id,
                        provider=provider_id,
                    )
                    continue
                if subject:
                    credentials.add(Credential(provider=provider, subject_id=subject))

            return CurrentIdentity(
                account_id=account_id,
                email=user.get("email"),
                display_name=user.get("displayName"),
                avatar_url=user.get("photoUrl"),
                credentials=CredentialSet(
                    account_id=account_id, credentials=frozenset(credentials)
                ),
            )

    async def link_credential(
        self, context: IdentityContext, material: CredentialMaterial
    ) -> Credential:
        """Bind a credential to the signed-in account.

        Password credentials go through ``accounts:update``; IdP credentials
        through ``accounts:signInWithIdp`` with the session's ID token, which
        links instead of signing in.
        """
        token = _require_token(context)
        with logfire.span(
            "identity_toolkit.link_credential",
            account_id=context.account_id,
            provider=material.provider.value,
        ):
            if material.provider is ProviderKind.PASSWORD:
                await self._call(
                    "update",
                    {
                        "idToken": token,
                        "email": material.email,
                        "password": material.password.get_secret_value(),
                        "returnSecureToken": True,
                    },
                )
                credential = Credential(
                    provider=ProviderKind.PASSWORD, subject_id=material.email
                )
            else:
                data = await self._call(
                    "signInWithIdp",
                    {
                        "idToken": token,
                        "postBody": self._post_body(material),
                        "requestUri": self.request_uri,
                        "returnIdpCredential": True,
                        "returnSecureToken": True,
                    },
                )
                if data.get("needConfirmation"):
                    # Another account already signs in with this email
                    raise provider_error(
                        "ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL",
                        "Credential is already used by another account",
                    )
                if data.get("localId") and data["localId"] != context.account_id:
                    raise provider_error(
                        "CREDENTIAL_ALREADY_IN_USE",
                        "Credential is already used by another account",
                    )
                subject = material.subject_id or _subject_from(data)
                if not subject:
                    raise provider_error(
                        "INVALID_IDP_RESPONSE", "Provider did not return a subject"
                    )
                credential = Credential(provider=material.provider, subject_id=subject)

            logfire.info(
                "Credential linked",
                account_id=context.account_id,
                provider=credential.provider.value,
            )
            return credential

    @staticmethod
    def _post_body(material: CredentialMaterial) -> str:
        """Form-encoded IdP credential for signInWithIdp."""
        params = {"providerId": material.provider.value}
        if material.id_token is not None:
            params["id_token"] = material.id_token.get_secret_value()
        if material.access_token is not None:
            params["access_token"] = material.access_token.get_secret_value()
        return urlencode(params)

    async def unlink_credential(
        self, context: IdentityContext, provider: ProviderKind
    ) -> None:
        """Remove a provider from the account via ``accounts:update``."""
        token = _require_token(context)
        with logfire.span(
            "identity_toolkit.unlink_credential",
            account_id=context.account_id,
            provider=provider.value,
        ):
            await self._call(
                "update", {"idToken": token, "deleteProvider": [provider.value]}
            )
            logfire.info(
                "Credential unlinked",
                account_id=context.account_id,
                provider=provider.value,
            )


class MockIdentityToolkitClient(IdentityToolkitClient):
    """Mock Identity Toolkit client for testing.

    Keeps accounts in memory and returns deterministic data without making
    real API calls. ``fail_next`` queues a provider code for an operation
    (``lookup``, ``link`` or ``unlink``) so tests can exercise error paths.
    """

    DEFAULT_ACCOUNT_ID = AccountId("mock-account-123")

    def __init__(self):
        """Initialize mock client with one default account."""
        self.accounts: dict[AccountId, CurrentIdentity] = {}
        self.calls: list[tuple[str, AccountId]] = []
        self._failures: dict[str, list[str]] = {}

        self.seed(
            CurrentIdentity(
                account_id=self.DEFAULT_ACCOUNT_ID,
                email="mock@example.com",
                display_name="Mock User",
                avatar_url="https://example.com/avatar.jpg",
                credentials=CredentialSet(
                    account_id=self.DEFAULT_ACCOUNT_ID,
                    credentials=frozenset(
                        {
                            Credential(
                                provider=ProviderKind.PASSWORD,
                                subject_id="mock@example.com",
                            ),
                            Credential(
                                provider=ProviderKind.GOOGLE, subject_id="google-123"
                            ),
                        }
                    ),
                ),
            )
        )

    def seed(self, identity: CurrentIdentity) -> None:
        """Add or replace an account."""
        self.accounts[identity.account_id] = identity

    def fail_next(self, operation: str, code: str) -> None:
        """Make the next call of ``operation`` fail with a provider code."""
        self._failures.setdefault(operation, []).append(code)

    def _maybe_fail(self, operation: str) -> None:
        queued = self._failures.get(operation)
        if queued:
            raise provider_error(queued.pop(0))

    def _account(self, context: IdentityContext) -> CurrentIdentity:
        identity = self.accounts.get(context.account_id)
        if identity is None:
            raise ReauthRequiredError("Session no longer resolves to an account")
        return identity

    def _owner_of(self, provider: ProviderKind, subject_id: str) -> AccountId | None:
        for identity in self.accounts.values():
            if identity.credentials.contains(provider, subject_id):
                return identity.account_id
        return None

    async def get_current_identity(self, context: IdentityContext) -> CurrentIdentity:
        self.calls.append(("lookup", context.account_id))
        self._maybe_fail("lookup")
        return self._account(context)

    async def link_credential(
        self, context: IdentityContext, material: CredentialMaterial
    ) -> Credential:
        self.calls.append(("link", context.account_id))
        self._maybe_fail("link")
        identity = self._account(context)

        subject = (
            material.subject_id
            or material.email
            or f"{material.provider.value}-{context.account_id}"
        )
        owner = self._owner_of(material.provider, subject)
        if owner is not None and owner != context.account_id:
            raise provider_error("CREDENTIAL_ALREADY_IN_USE")

        credential = Credential(provider=material.provider, subject_id=subject)
        self.seed(
            identity.model_copy(
                update={"credentials": identity.credentials.with_credential(credential)}
            )
        )
        return credential

    async def unlink_credential(
        self, context: IdentityContext, provider: ProviderKind
    ) -> None:
        self.calls.append(("unlink", context.account_id))
        self._maybe_fail("unlink")
        identity = self._account(context)
        self.seed(
            identity.model_copy(
                update={"credentials": identity.credentials.without(provider)}
            )
        )
