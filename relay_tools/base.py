"""Tool enums and provider mapping.

Closed vocabularies shared by ToolConfig, the resolver and the auth injector.
"""

from enum import Enum


class UtilityProvider(str, Enum):
    """Third-party service a tool talks to."""

    CRISP = "crisp"
    STRIPE = "stripe"
    GMAIL = "gmail"
    CHARGEBEE = "chargebee"
    SLACK = "slack"


class OAuthProvider(str, Enum):
    """Identity provider that grants OAuth tokens."""

    GOOGLE = "google"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    GITHUB = "github"


class AuthMethod(str, Enum):
    OAUTH = "OAUTH"
    API_KEY = "API_KEY"
    NONE = "NONE"


class ApiKeyAuthScheme(str, Enum):
    """How an API key is carried on the request."""

    BEARER = "Bearer"  # Authorization: Bearer <key>
    BASIC_USER = "BasicUser"  # Basic auth, username=<key>, password empty
    BASIC_PASS = "BasicPass"  # Basic auth, username empty, password=<key>
    HEADER = "Header"  # <headerName>: <key>


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"


class UtilitySecret(str, Enum):
    """Secret slots filled in by the user."""

    WEBSITE_ID = "website_id"
    API_SECRET_KEY = "api_secret_key"
    API_PUBLISHABLE_KEY = "api_publishable_key"
    API_IDENTIFIER = "api_identifier"


class UtilityActionConfirmation(str, Enum):
    """Slots recording that the user completed an action (value "true")."""

    WEBHOOK_URL_INPUTED = "webhook_url_inputed"


ACTION_CONFIRMATION_SLOTS = frozenset(c.value for c in UtilityActionConfirmation)

BODYLESS_METHODS = frozenset({HttpMethod.GET, HttpMethod.HEAD})

_OAUTH_PROVIDER_BY_UTILITY = {
    UtilityProvider.GMAIL: OAuthProvider.GOOGLE,
}


def is_action_confirmation(slot: str) -> bool:
    """True if the slot records an action confirmation rather than a secret."""
    return str(getattr(slot, "value", slot)) in ACTION_CONFIRMATION_SLOTS


def map_provider_to_oauth_provider(provider: UtilityProvider) -> OAuthProvider | None:
    """Map a utility provider to the OAuth provider that issues its tokens.

    Returns:
        OAuthProvider, or None if the provider has no OAuth mapping
    """
    return _OAUTH_PROVIDER_BY_UTILITY.get(UtilityProvider(provider))
