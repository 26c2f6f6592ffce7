"""Pytest fixtures.

Provider traffic goes through httpx.MockTransport; ProviderStub records every
request so tests can assert exactly what reached the network.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from relay_config.settings import Settings
from relay_stores import Identity, InMemoryCredentialStore, InMemorySecretStore, TokenBundle
from relay_tools import ToolEngine, ToolRegistry
from relay_tools.base import OAuthProvider


class ProviderStub:
    """Stubbed third-party API; answers with `handler` and records requests."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(200, json={"ok": True})

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self.handler(request)


class FakeRefresher:
    """Token refresher double that counts refresh calls."""

    def __init__(self, new_token: str = "new-token", delay: float = 0.05):
        self.calls = 0
        self.new_token = new_token
        self.delay = delay
        self.side_effect = None

    async def refresh(self, provider: OAuthProvider, token: TokenBundle) -> TokenBundle:
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.side_effect is not None:
            result = self.side_effect(provider, token)
            if asyncio.iscoroutine(result):
                result = await result
            if result is not None:
                return result
        return TokenBundle(
            access_token=self.new_token,
            refresh_token="refresh-2",
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
            scopes=list(token.scopes),
        )


def item_tool(**overrides) -> dict:
    """ToolConfig document for GET https://api.example.com/items/{id}."""
    document = {
        "id": "svc_get_item",
        "provider": "stripe",
        "description": "Fetch one item",
        "authMethod": "API_KEY",
        "requiredSecrets": ["svc_key"],
        "apiKeyDetails": {"secretName": "svc_key", "scheme": "Bearer"},
        "apiDetails": {
            "method": "GET",
            "baseUrl": "https://api.example.com",
            "pathTemplate": "/items/{id}",
            "paramMappings": {"path": {"itemId": "id"}},
        },
        "inputSchema": {
            "type": "object",
            "properties": {"itemId": {"type": "string"}},
            "required": ["itemId"],
        },
    }
    document.update(overrides)
    return document


def gmail_tool(**overrides) -> dict:
    """OAuth ToolConfig document for a Gmail listing call."""
    document = {
        "id": "gmail_list",
        "provider": "gmail",
        "authMethod": "OAUTH",
        "requiredScopes": ["gmail.readonly"],
        "apiDetails": {
            "method": "GET",
            "baseUrl": "https://gmail.googleapis.com/gmail/v1",
            "pathTemplate": "/users/me/messages",
            "paramMappings": {"query": {"query": "q"}},
        },
    }
    document.update(overrides)
    return document


def expired_token(**overrides) -> TokenBundle:
    values = {
        "access_token": "old-token",
        "refresh_token": "refresh-1",
        "expires_at": datetime.now(timezone.utc) - timedelta(hours=1),
        "scopes": ["gmail.readonly"],
    }
    values.update(overrides)
    return TokenBundle(**values)


def fresh_token(**overrides) -> TokenBundle:
    values = {
        "access_token": "live-token",
        "refresh_token": "refresh-1",
        "expires_at": datetime.now(timezone.utc) + timedelta(hours=1),
        "scopes": ["gmail.readonly"],
    }
    values.update(overrides)
    return TokenBundle(**values)


@pytest.fixture
def settings():
    """Test settings (no env file dependence for the values we rely on)."""
    return Settings(
        TOOL_EXECUTION_TIMEOUT_SECONDS=5,
        OAUTH_EXPIRY_SKEW_SECONDS=0,
        TOOL_AUTH_SERVICE_URL="https://auth.example.com",
        TOOL_CATALOG_ENABLED=False,
        LOG_FORMAT="text",
    )


@pytest.fixture
def identity():
    return Identity(user_id="user_1")


@pytest.fixture
def secret_store():
    return InMemorySecretStore()


@pytest.fixture
def credential_store():
    return InMemoryCredentialStore()


@pytest.fixture
def provider():
    return ProviderStub()


@pytest.fixture
def http_client(provider):
    return httpx.AsyncClient(transport=httpx.MockTransport(provider))


@pytest.fixture
def refresher():
    return FakeRefresher()


@pytest.fixture
def registry():
    return ToolRegistry()


@pytest.fixture
def engine(registry, secret_store, credential_store, http_client, settings, refresher):
    return ToolEngine.build(
        registry,
        secret_store,
        credential_store,
        http_client,
        settings=settings,
        token_refresher=refresher,
    )


@pytest.fixture
def client(engine, settings):
    """FastAPI test client over an app wired to the test engine."""
    from fastapi.testclient import TestClient

    from apps.tool_api.main import create_app

    return TestClient(create_app(settings, engine=engine))
