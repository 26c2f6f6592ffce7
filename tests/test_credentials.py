"""Credential resolver tests."""

from unittest.mock import AsyncMock

import pytest

from relay_stores import Identity, StoreError
from relay_tools.base import OAuthProvider, UtilityProvider
from relay_tools.credentials import CredentialResolver, ResolvedCredentials
from relay_tools.exceptions import StoreUnavailableError
from relay_tools.results import SetupNeeded
from relay_tools.schemas import ToolConfig

from conftest import expired_token, fresh_token, gmail_tool, item_tool


@pytest.fixture
def resolver(secret_store, credential_store):
    return CredentialResolver(
        secret_store,
        credential_store,
        consent_base_url="https://auth.example.com/",
        expiry_skew_seconds=0,
    )


def crisp_config() -> ToolConfig:
    return ToolConfig.model_validate(
        {
            "id": "crisp_setup_chat",
            "provider": "crisp",
            "requiredSecrets": ["website_id", "webhook_url_inputed"],
        }
    )


@pytest.mark.asyncio
async def test_api_key_resolved(resolver, secret_store, identity):
    """Test API key resolved."""
    await secret_store.set(identity, "svc_key", "sk_test_1")

    resolved = await resolver.resolve(identity, ToolConfig.model_validate(item_tool()))

    assert isinstance(resolved, ResolvedCredentials)
    assert resolved.api_key == "sk_test_1"
    assert resolved.secrets == {"svc_key": "sk_test_1"}


@pytest.mark.asyncio
async def test_missing_secret_needs_setup(resolver, identity):
    """Test missing secret needs setup."""
    result = await resolver.resolve(identity, ToolConfig.model_validate(item_tool()))

    assert isinstance(result, SetupNeeded)
    assert result.provider == UtilityProvider.STRIPE
    assert result.title == "Configure Stripe"
    assert result.button_text == "Save"
    assert result.required_secret_inputs == ["svc_key"]
    assert result.required_action_confirmations == []


@pytest.mark.asyncio
async def test_empty_secret_counts_as_missing(resolver, secret_store, identity):
    """Test empty secret counts as missing."""
    await secret_store.set(identity, "svc_key", "")

    result = await resolver.resolve(identity, ToolConfig.model_validate(item_tool()))

    assert isinstance(result, SetupNeeded)
    assert result.required_secret_inputs == ["svc_key"]


@pytest.mark.asyncio
async def test_confirmation_must_be_true(resolver, secret_store, identity):
    """Test confirmation must be true."""
    await secret_store.set(identity, "website_id", "site-1")
    await secret_store.set(identity, "webhook_url_inputed", "false")

    result = await resolver.resolve(identity, crisp_config())

    assert isinstance(result, SetupNeeded)
    assert result.required_secret_inputs == []
    assert result.required_action_confirmations == ["webhook_url_inputed"]
    assert result.button_text == "Confirm"


@pytest.mark.asyncio
async def test_confirmation_satisfied(resolver, secret_store, identity):
    """Test confirmation satisfied."""
    await secret_store.set(identity, "website_id", "site-1")
    await secret_store.set(identity, "webhook_url_inputed", "true")

    resolved = await resolver.resolve(identity, crisp_config())

    assert isinstance(resolved, ResolvedCredentials)
    assert resolved.secrets == {"website_id": "site-1"}


@pytest.mark.asyncio
async def test_secrets_scoped_by_identity(resolver, secret_store):
    """Test secrets scoped by identity."""
    await secret_store.set(Identity(user_id="user_1", organization_id="org_a"), "svc_key", "sk")

    result = await resolver.resolve(
        Identity(user_id="user_1", organization_id="org_b"),
        ToolConfig.model_validate(item_tool()),
    )

    assert isinstance(result, SetupNeeded)


@pytest.mark.asyncio
async def test_org_secret_not_visible_to_lookalike_user(resolver, secret_store, credential_store):
    """Test org secret not visible to lookalike user."""
    tenant = Identity(user_id="u1", organization_id="acme")
    await secret_store.set(tenant, "svc_key", "sk_tenant")
    await credential_store.upsert(tenant, "google", fresh_token())
    lookalike = Identity(user_id="acme:u1")

    api_key_result = await resolver.resolve(lookalike, ToolConfig.model_validate(item_tool()))
    oauth_result = await resolver.resolve(lookalike, ToolConfig.model_validate(gmail_tool()))

    assert isinstance(api_key_result, SetupNeeded)
    assert api_key_result.required_secret_inputs == ["svc_key"]
    assert isinstance(oauth_result, SetupNeeded)


@pytest.mark.asyncio
async def test_oauth_without_token_needs_consent(resolver, identity):
    """Test OAuth without token needs consent."""
    result = await resolver.resolve(identity, ToolConfig.model_validate(gmail_tool()))

    assert isinstance(result, SetupNeeded)
    assert result.oauth_provider == OAuthProvider.GOOGLE
    assert result.title == "Connect Gmail"
    assert result.button_text == "Connect Google"
    assert result.required_scopes == ["gmail.readonly"]
    assert result.setup_url == (
        "https://auth.example.com/oauth/google/authorize?user_id=user_1&scopes=gmail.readonly"
    )


@pytest.mark.asyncio
async def test_oauth_scopes_must_be_superset(resolver, credential_store, identity):
    """Test OAuth scopes must be superset."""
    await credential_store.upsert(identity, "google", fresh_token(scopes=["gmail.send"]))

    result = await resolver.resolve(identity, ToolConfig.model_validate(gmail_tool()))

    assert isinstance(result, SetupNeeded)
    assert result.required_scopes == ["gmail.readonly"]


@pytest.mark.asyncio
async def test_oauth_extra_scopes_accepted(resolver, credential_store, identity):
    """Test OAuth extra scopes accepted."""
    await credential_store.upsert(
        identity, "google", fresh_token(scopes=["gmail.send", "gmail.readonly"])
    )

    resolved = await resolver.resolve(identity, ToolConfig.model_validate(gmail_tool()))

    assert isinstance(resolved, ResolvedCredentials)
    assert resolved.oauth_provider == OAuthProvider.GOOGLE
    assert resolved.oauth_token.access_token == "live-token"
    assert resolved.oauth_expired is False


@pytest.mark.asyncio
async def test_expired_token_flagged_not_refreshed(resolver, credential_store, identity):
    """Test expired token flagged not refreshed."""
    await credential_store.upsert(identity, "google", expired_token())

    resolved = await resolver.resolve(identity, ToolConfig.model_validate(gmail_tool()))

    assert isinstance(resolved, ResolvedCredentials)
    assert resolved.oauth_expired is True
    assert resolved.oauth_token.access_token == "old-token"


@pytest.mark.asyncio
async def test_missing_secret_and_consent_combined(resolver, identity):
    """Test missing secret and consent combined."""
    config = ToolConfig.model_validate(gmail_tool(requiredSecrets=["api_identifier"]))

    result = await resolver.resolve(identity, config)

    assert isinstance(result, SetupNeeded)
    assert result.title == "Connect Gmail"
    assert result.required_secret_inputs == ["api_identifier"]
    assert result.required_scopes == ["gmail.readonly"]


@pytest.mark.asyncio
async def test_consent_url_includes_organization(resolver):
    """Test consent URL includes organization."""
    url = resolver.consent_url(
        Identity(user_id="u1", organization_id="org 1"), OAuthProvider.GITHUB, ["repo", "read:org"]
    )

    assert url == (
        "https://auth.example.com/oauth/github/authorize"
        "?user_id=u1&scopes=repo+read%3Aorg&organization_id=org+1"
    )


@pytest.mark.asyncio
async def test_no_consent_service_means_no_url(secret_store, credential_store, identity):
    """Test no consent service means no URL."""
    resolver = CredentialResolver(secret_store, credential_store)

    result = await resolver.resolve(identity, ToolConfig.model_validate(gmail_tool()))

    assert result.setup_url is None


@pytest.mark.asyncio
async def test_store_failure_raises(credential_store, identity):
    """Test store failure raises."""
    secret_store = AsyncMock()
    secret_store.get.side_effect = StoreError("connection refused")
    resolver = CredentialResolver(secret_store, credential_store)

    with pytest.raises(StoreUnavailableError, match="svc_key"):
        await resolver.resolve(identity, ToolConfig.model_validate(item_tool()))
