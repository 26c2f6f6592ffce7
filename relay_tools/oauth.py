"""OAuth token refresh.

Refreshes are serialized per (identity, provider): concurrent invocations that
find the same expired token share one refresh instead of racing with a
refresh token the provider will only honour once.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

import httpx

from relay_obs.logging import get_logger
from relay_obs.metrics import oauth_refresh_total
from relay_stores import CredentialStore, Identity, StoreError, TokenBundle
from relay_tools.base import OAuthProvider
from relay_tools.exceptions import (
    AuthRefreshFailedError,
    StaleRefreshTokenError,
    StoreUnavailableError,
    TokenRefreshError,
)

logger = get_logger(__name__)

TOKEN_ENDPOINTS = {
    OAuthProvider.GOOGLE: "https://oauth2.googleapis.com/token",
    OAuthProvider.GITHUB: "https://github.com/login/oauth/access_token",
    OAuthProvider.FACEBOOK: "https://graph.facebook.com/v19.0/oauth/access_token",
    OAuthProvider.TWITTER: "https://api.twitter.com/2/oauth2/token",
    OAuthProvider.LINKEDIN: "https://www.linkedin.com/oauth/v2/accessToken",
}


class TokenRefresher(Protocol):
    """Exchanges a refresh token for a new token bundle."""

    async def refresh(self, provider: OAuthProvider, token: TokenBundle) -> TokenBundle:
        ...


class OAuthTokenClient:
    """Refresh-token grant against provider token endpoints."""

    def __init__(
        self,
        client_credentials: dict[OAuthProvider, tuple[str, str]],
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
        token_endpoints: dict[OAuthProvider, str] | None = None,
    ):
        """Initialize token client.

        Args:
            client_credentials: (client_id, client_secret) per provider
            http_client: Shared HTTP client (a private one is created if None)
            timeout_seconds: Token endpoint timeout
            token_endpoints: Override the built-in token endpoints
        """
        self.client_credentials = client_credentials
        self.http_client = http_client or httpx.AsyncClient()
        self.timeout_seconds = timeout_seconds
        self.token_endpoints = token_endpoints or TOKEN_ENDPOINTS

    async def refresh(self, provider: OAuthProvider, token: TokenBundle) -> TokenBundle:
        """Refresh an access token.

        Raises:
            StaleRefreshTokenError: Provider reports invalid_grant
            TokenRefreshError: Any other refresh failure
        """
        if not token.refresh_token:
            raise TokenRefreshError(f"No refresh token stored for {provider.value}")

        endpoint = self.token_endpoints.get(provider)
        if not endpoint:
            raise TokenRefreshError(f"No token endpoint configured for {provider.value}")

        client_id, client_secret = self.client_credentials.get(provider, ("", ""))
        form = {
            "grant_type": "refresh_token",
            "refresh_token": token.refresh_token,
            "client_id": client_id,
            "client_secret": client_secret,
        }

        try:
            response = await self.http_client.post(
                endpoint,
                data=form,
                headers={"Accept": "application/json"},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as e:
            raise TokenRefreshError(f"Token endpoint unreachable: {e}") from e

        try:
            payload: dict[str, Any] = response.json()
        except ValueError:
            payload = {}

        if response.status_code >= 400 or "error" in payload:
            error = payload.get("error", f"http_{response.status_code}")
            if error == "invalid_grant":
                raise StaleRefreshTokenError(f"Refresh token rejected by {provider.value}")
            raise TokenRefreshError(f"Token refresh failed for {provider.value}: {error}")

        if not payload.get("access_token"):
            raise TokenRefreshError(f"Token response from {provider.value} has no access_token")

        expires_at = None
        if payload.get("expires_in"):
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(payload["expires_in"]))

        scope = payload.get("scope")
        return TokenBundle(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token") or token.refresh_token,
            expires_at=expires_at,
            scopes=scope.replace(",", " ").split() if scope else list(token.scopes),
        )


class TokenRefreshCoordinator:
    """Single-flight refresh of expired OAuth tokens."""

    def __init__(
        self,
        credential_store: CredentialStore,
        refresher: TokenRefresher,
        expiry_skew_seconds: int = 60,
    ):
        self.credential_store = credential_store
        self.refresher = refresher
        self.expiry_skew_seconds = expiry_skew_seconds
        self._inflight: dict[tuple[str, str], asyncio.Task] = {}

    async def ensure_fresh(
        self, identity: Identity, provider: OAuthProvider, token: TokenBundle
    ) -> TokenBundle:
        """Return a usable token, refreshing it at most once per key at a time.

        Raises:
            AuthRefreshFailedError: Token could not be refreshed
        """
        if not token.is_expired(self.expiry_skew_seconds):
            return token

        key = (identity.key, provider.value)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(identity, provider, token))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._finish(key, done))
        else:
            logger.debug("oauth_refresh_joined", identity=identity.key, oauth_provider=provider.value)

        # a cancelled caller must not cancel the refresh other callers await
        return await asyncio.shield(task)

    def _finish(self, key: tuple[str, str], task: asyncio.Task) -> None:
        self._inflight.pop(key, None)
        # waiters may all have been cancelled; mark the outcome as retrieved
        if not task.cancelled():
            task.exception()

    async def _refresh(
        self, identity: Identity, provider: OAuthProvider, token: TokenBundle
    ) -> TokenBundle:
        log = logger.bind(identity=identity.key, oauth_provider=provider.value)

        current = await self._load(identity, provider) or token
        if not current.is_expired(self.expiry_skew_seconds):
            log.debug("oauth_token_already_refreshed")
            return current

        try:
            refreshed = await self.refresher.refresh(provider, current)
        except StaleRefreshTokenError:
            oauth_refresh_total.labels(provider=provider.value, status="stale").inc()
            log.warning("oauth_refresh_token_stale")
            return await self._retry_after_stale(identity, provider, current)
        except TokenRefreshError as e:
            oauth_refresh_total.labels(provider=provider.value, status="failure").inc()
            log.warning("oauth_refresh_failed", error=str(e))
            raise AuthRefreshFailedError(
                f"OAuth token refresh failed for {provider.value}: {e}",
                details={"oauth_provider": provider.value},
            ) from e

        await self._save(identity, provider, refreshed)
        oauth_refresh_total.labels(provider=provider.value, status="success").inc()
        log.info("oauth_token_refreshed")
        return refreshed

    async def _retry_after_stale(
        self, identity: Identity, provider: OAuthProvider, used: TokenBundle
    ) -> TokenBundle:
        """Recover once from a refresh token another refresher already spent."""
        latest = await self._load(identity, provider)
        if latest is not None and not latest.is_expired(self.expiry_skew_seconds):
            return latest

        if latest is not None and latest.refresh_token and latest.refresh_token != used.refresh_token:
            try:
                refreshed = await self.refresher.refresh(provider, latest)
            except TokenRefreshError as e:
                raise AuthRefreshFailedError(
                    f"OAuth token refresh failed for {provider.value}: {e}",
                    details={"oauth_provider": provider.value, "stale": True},
                ) from e
            await self._save(identity, provider, refreshed)
            oauth_refresh_total.labels(provider=provider.value, status="success").inc()
            return refreshed

        raise AuthRefreshFailedError(
            f"OAuth refresh token for {provider.value} is no longer valid",
            details={"oauth_provider": provider.value, "stale": True},
        )

    async def _load(self, identity: Identity, provider: OAuthProvider) -> TokenBundle | None:
        try:
            return await self.credential_store.get(identity, provider.value)
        except StoreError as e:
            raise StoreUnavailableError(
                f"Credential store lookup failed for '{provider.value}'"
            ) from e

    async def _save(self, identity: Identity, provider: OAuthProvider, token: TokenBundle) -> None:
        try:
            await self.credential_store.upsert(identity, provider.value, token)
        except StoreError as e:
            raise StoreUnavailableError(
                f"Credential store write failed for '{provider.value}'"
            ) from e
