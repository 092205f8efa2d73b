"""Authentication strategies: one per provider.

SSC uses a static pre-issued CI token. FoD exchanges an API key/secret pair for
a short-lived bearer token via the OAuth2 client-credentials grant.

Token state is owned by a single strategy instance and is not guarded against
overlapping refreshes; a provider instance drives one fetch at a time.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from fortify_report.config import settings
from fortify_report.errors.exceptions import AuthError, ProtocolError
from fortify_report.integrations.http_client import HttpRequester
from fortify_report.models.enums import ProviderKind

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_BUFFER = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthenticationStrategy(ABC):
    """Owns credential material and produces outbound auth headers."""

    provider: ProviderKind

    @abstractmethod
    async def authenticate(self) -> None:
        """Establish or refresh credential state.

        Raises:
            AuthError: credential material is absent or was rejected.
        """
        ...

    @abstractmethod
    def get_auth_headers(self) -> dict[str, str]:
        """Headers to attach to every API call.

        Raises:
            AuthError: called before a successful ``authenticate()``.
        """
        ...

    @abstractmethod
    def is_valid(self) -> bool:
        """Non-blocking liveness check."""
        ...

    @property
    @abstractmethod
    def authenticated(self) -> bool:
        ...

    async def refresh(self) -> None:
        """Re-run the exchange. Same as ``authenticate()`` unless overridden."""
        await self.authenticate()

    async def ensure_authenticated(self) -> None:
        """Authenticate (or refresh) only when the current state is not usable."""
        if not self.authenticated:
            await self.authenticate()
        elif not self.is_valid():
            logger.info("%s token invalid or expiring, refreshing", self.provider.value)
            await self.refresh()

    @staticmethod
    def _base_headers() -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": settings.user_agent,
        }


class TokenAuthStrategy(AuthenticationStrategy):
    """Static token auth for SSC: ``Authorization: FortifyToken <token>``."""

    provider = ProviderKind.SSC

    def __init__(self, token: str | None, scheme: str = "FortifyToken") -> None:
        self._token = token or ""
        self.scheme = scheme
        self._authenticated = False

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    async def authenticate(self) -> None:
        # No exchange: the token is used as issued
        if not self._token:
            raise AuthError("CI Token is required for SSC authentication", provider=self.provider)
        self._authenticated = True

    def get_auth_headers(self) -> dict[str, str]:
        if not self._authenticated:
            raise AuthError("Not authenticated. Call authenticate() first.", provider=self.provider)
        headers = self._base_headers()
        headers["Authorization"] = f"{self.scheme} {self._token}"
        return headers

    def is_valid(self) -> bool:
        return bool(self._token)


class KeyExchangeAuthStrategy(AuthenticationStrategy):
    """OAuth2 client-credentials exchange for FoD.

    The token counts as valid only until ``TOKEN_EXPIRY_BUFFER`` before its
    reported expiry, so a request never starts with a token about to lapse.
    """

    provider = ProviderKind.FOD
    scope = "api-tenant"

    def __init__(
        self,
        api_key: str | None,
        api_secret: str | None,
        base_url: str,
        requester: HttpRequester | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._api_key = api_key or ""
        self._api_secret = api_secret or ""
        self.base_url = base_url.rstrip("/")
        self.requester = requester or HttpRequester("Fortify on Demand", provider=self.provider)
        self._clock = clock
        self._access_token: str | None = None
        self._expires_at: datetime | None = None

    @property
    def authenticated(self) -> bool:
        return self._access_token is not None

    @property
    def token_url(self) -> str:
        return f"{self.base_url}/oauth/token"

    @property
    def expires_at(self) -> datetime | None:
        return self._expires_at

    async def authenticate(self) -> None:
        if not self._api_key or not self._api_secret:
            raise AuthError(
                "API Key and Secret are required for FoD authentication",
                provider=self.provider,
            )

        logger.info(
            "Requesting FoD access token from %s with API key %s...",
            self.token_url,
            self._api_key[:8],
        )
        form = {
            "scope": self.scope,
            "grant_type": "client_credentials",
            "client_id": self._api_key,
            "client_secret": self._api_secret,
        }
        headers = self._base_headers()
        try:
            payload = await self.requester.post_form(self.token_url, form, headers)
        except AuthError as exc:
            raise AuthError(
                f"FoD authentication failed: {exc.message}",
                provider=self.provider,
                status_code=exc.status_code,
            ) from exc

        if (
            not isinstance(payload, dict)
            or not payload.get("access_token")
            or not payload.get("expires_in")
        ):
            keys = ", ".join(payload) if isinstance(payload, dict) else type(payload).__name__
            logger.error("FoD token response missing fields; got: %s", keys)
            raise ProtocolError(
                "Invalid token response: missing access_token or expires_in",
                provider=self.provider,
            )

        try:
            expires_in = float(payload["expires_in"])
            if not math.isfinite(expires_in) or expires_in <= 0:
                raise ValueError("not a positive finite number")
            expires_at = self._clock() + timedelta(seconds=expires_in)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ProtocolError(
                f"Invalid token response: expires_in is not a valid lifetime "
                f"({payload['expires_in']!r})",
                provider=self.provider,
            ) from exc

        self._access_token = str(payload["access_token"])
        self._expires_at = expires_at
        logger.info("FoD authentication successful; token expires in %ss", payload["expires_in"])

    def get_auth_headers(self) -> dict[str, str]:
        if not self._access_token:
            raise AuthError("Not authenticated. Call authenticate() first.", provider=self.provider)
        headers = self._base_headers()
        headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def is_valid(self) -> bool:
        if not self._access_token or self._expires_at is None:
            return False
        return self._clock() < self._expires_at - TOKEN_EXPIRY_BUFFER
