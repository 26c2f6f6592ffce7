"""Credential Resolver.

Checks that every required secret, action confirmation and OAuth grant is in
place before anything touches the network. Missing credentials produce a
SetupNeeded value; store failures raise.
"""

from dataclasses import dataclass, field
from urllib.parse import urlencode

from relay_obs.logging import get_logger
from relay_stores import CredentialStore, Identity, SecretStore, StoreError, TokenBundle
from relay_tools.base import AuthMethod, OAuthProvider, is_action_confirmation
from relay_tools.exceptions import StoreUnavailableError
from relay_tools.results import SetupNeeded
from relay_tools.schemas import ToolConfig

logger = get_logger(__name__)

CONFIRMED_VALUE = "true"


@dataclass
class ResolvedCredentials:
    """Everything the AuthInjector needs for one invocation."""

    secrets: dict[str, str] = field(default_factory=dict)
    api_key: str | None = None
    oauth_provider: OAuthProvider | None = None
    oauth_token: TokenBundle | None = None
    oauth_expired: bool = False


class CredentialResolver:
    """Resolves an identity's credentials for a tool."""

    def __init__(
        self,
        secret_store: SecretStore,
        credential_store: CredentialStore,
        consent_base_url: str = "",
        expiry_skew_seconds: int = 60,
    ):
        """Initialize resolver.

        Args:
            secret_store: Secret slot store
            credential_store: OAuth token store
            consent_base_url: Base URL of the OAuth consent service
            expiry_skew_seconds: Treat tokens expiring this soon as expired
        """
        self.secret_store = secret_store
        self.credential_store = credential_store
        self.consent_base_url = consent_base_url.rstrip("/")
        self.expiry_skew_seconds = expiry_skew_seconds

    async def resolve(
        self, identity: Identity, config: ToolConfig
    ) -> ResolvedCredentials | SetupNeeded:
        """Resolve credentials or report what setup is missing.

        Raises:
            StoreUnavailableError: Secret or credential store failed
        """
        log = logger.bind(tool_id=config.id, identity=identity.key)
        resolved = ResolvedCredentials()
        missing_inputs: list[str] = []
        missing_confirmations: list[str] = []

        for slot in config.required_secrets:
            value = await self._get_secret(identity, slot)
            if is_action_confirmation(slot):
                if value != CONFIRMED_VALUE:
                    missing_confirmations.append(slot)
            elif not value:
                missing_inputs.append(slot)
            else:
                resolved.secrets[slot] = value

        if config.auth_method == AuthMethod.API_KEY and config.api_key_details:
            resolved.api_key = resolved.secrets.get(config.api_key_details.secret_name)

        oauth_missing = False
        if config.auth_method == AuthMethod.OAUTH:
            provider = config.resolved_oauth_provider
            resolved.oauth_provider = provider
            token = await self._get_token(identity, provider)
            if token is None or not token.covers(config.required_scopes):
                oauth_missing = True
                log.info(
                    "oauth_consent_missing",
                    oauth_provider=provider.value,
                    has_token=token is not None,
                )
            else:
                resolved.oauth_token = token
                resolved.oauth_expired = token.is_expired(self.expiry_skew_seconds)

        if missing_inputs or missing_confirmations or oauth_missing:
            log.info(
                "prerequisites_missing",
                missing_secrets=missing_inputs,
                missing_confirmations=missing_confirmations,
                oauth_missing=oauth_missing,
            )
            return self._setup_needed(
                identity, config, missing_inputs, missing_confirmations, oauth_missing
            )

        log.debug("prerequisites_met")
        return resolved

    async def _get_secret(self, identity: Identity, slot: str) -> str | None:
        try:
            return await self.secret_store.get(identity, slot)
        except StoreError as e:
            raise StoreUnavailableError(
                f"Secret store lookup failed for '{slot}'", details={"slot": slot}
            ) from e

    async def _get_token(self, identity: Identity, provider: OAuthProvider) -> TokenBundle | None:
        try:
            return await self.credential_store.get(identity, provider.value)
        except StoreError as e:
            raise StoreUnavailableError(
                f"Credential store lookup failed for '{provider.value}'",
                details={"oauth_provider": provider.value},
            ) from e

    def _setup_needed(
        self,
        identity: Identity,
        config: ToolConfig,
        missing_inputs: list[str],
        missing_confirmations: list[str],
        oauth_missing: bool,
    ) -> SetupNeeded:
        name = config.provider.value.capitalize()
        if oauth_missing:
            provider = config.resolved_oauth_provider
            return SetupNeeded(
                provider=config.provider,
                oauth_provider=provider,
                title=f"Connect {name}",
                message=f"Authentication required for {name}.",
                description=config.description or None,
                button_text=f"Connect {provider.value.capitalize()}",
                required_secret_inputs=missing_inputs,
                required_action_confirmations=missing_confirmations,
                required_scopes=list(config.required_scopes),
                setup_url=self.consent_url(identity, provider, config.required_scopes),
            )

        return SetupNeeded(
            provider=config.provider,
            title=f"Configure {name}",
            message=(
                f"Configuration required for {name}. "
                "Please provide the following details or confirm actions."
            ),
            description=config.description or None,
            button_text="Save" if missing_inputs else "Confirm",
            required_secret_inputs=missing_inputs,
            required_action_confirmations=missing_confirmations,
        )

    def consent_url(
        self, identity: Identity, provider: OAuthProvider, scopes: list[str]
    ) -> str | None:
        """Build the URL that starts the consent flow, if a consent service is set."""
        if not self.consent_base_url:
            return None
        query = {"user_id": identity.user_id, "scopes": " ".join(scopes)}
        if identity.organization_id:
            query["organization_id"] = identity.organization_id
        return f"{self.consent_base_url}/oauth/{provider.value}/authorize?{urlencode(query)}"
