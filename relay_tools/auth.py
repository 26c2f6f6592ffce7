"""Auth Injector.

Applies authentication to a PreparedRequest as the last step before
execution, so auth headers always replace static ones. One handler per
(AuthMethod, ApiKeyAuthScheme) variant.
"""

import base64
from typing import Awaitable, Callable

from relay_stores import Identity
from relay_tools.base import ApiKeyAuthScheme, AuthMethod
from relay_tools.credentials import ResolvedCredentials
from relay_tools.exceptions import ConfigurationError
from relay_tools.mapping import PreparedRequest
from relay_tools.oauth import TokenRefreshCoordinator
from relay_tools.schemas import ToolConfig


def _basic(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _bearer(request: PreparedRequest, key: str, config: ToolConfig) -> None:
    request.set_header("Authorization", f"Bearer {key}")


def _basic_user(request: PreparedRequest, key: str, config: ToolConfig) -> None:
    request.set_header("Authorization", _basic(key, ""))


def _basic_pass(request: PreparedRequest, key: str, config: ToolConfig) -> None:
    request.set_header("Authorization", _basic("", key))


def _custom_header(request: PreparedRequest, key: str, config: ToolConfig) -> None:
    request.set_header(config.api_key_details.header_name, key)


API_KEY_HANDLERS: dict[ApiKeyAuthScheme, Callable[[PreparedRequest, str, ToolConfig], None]] = {
    ApiKeyAuthScheme.BEARER: _bearer,
    ApiKeyAuthScheme.BASIC_USER: _basic_user,
    ApiKeyAuthScheme.BASIC_PASS: _basic_pass,
    ApiKeyAuthScheme.HEADER: _custom_header,
}


class AuthInjector:
    """Attaches credentials to outgoing requests."""

    def __init__(self, refresh_coordinator: TokenRefreshCoordinator):
        self.refresh_coordinator = refresh_coordinator
        self._handlers: dict[
            AuthMethod,
            Callable[[PreparedRequest, Identity, ResolvedCredentials, ToolConfig], Awaitable[None]],
        ] = {
            AuthMethod.NONE: self._inject_none,
            AuthMethod.API_KEY: self._inject_api_key,
            AuthMethod.OAUTH: self._inject_oauth,
        }

    async def inject_auth(
        self,
        request: PreparedRequest,
        identity: Identity,
        credentials: ResolvedCredentials,
        config: ToolConfig,
    ) -> PreparedRequest:
        """Authenticate the request in place and return it.

        Raises:
            ConfigurationError: Credentials don't match the declared auth method
            AuthRefreshFailedError: Expired OAuth token could not be refreshed
        """
        await self._handlers[config.auth_method](request, identity, credentials, config)
        return request

    async def _inject_none(self, request, identity, credentials, config) -> None:
        return None

    async def _inject_api_key(self, request, identity, credentials, config) -> None:
        if not credentials.api_key or config.api_key_details is None:
            raise ConfigurationError(f"API key missing for tool '{config.id}'")
        API_KEY_HANDLERS[config.api_key_details.scheme](request, credentials.api_key, config)

    async def _inject_oauth(self, request, identity, credentials, config) -> None:
        token = credentials.oauth_token
        if token is None or credentials.oauth_provider is None:
            raise ConfigurationError(f"OAuth token missing for tool '{config.id}'")
        if credentials.oauth_expired:
            token = await self.refresh_coordinator.ensure_fresh(
                identity, credentials.oauth_provider, token
            )
        request.set_header("Authorization", f"Bearer {token.access_token}")
