"""
Application Settings (Pydantic Settings).

Loads configuration from environment variables (.env file or system env).

OAuth client credentials are only needed for providers whose tokens the
engine refreshes; leave them empty for providers you don't use.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings documented in .env.example.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # ========================================================================
    # STORES (secrets + OAuth credentials)
    # ========================================================================
    STORE_BACKEND: str = Field(
        default="memory",
        description="memory (dev/tests) or redis",
        pattern="^(memory|redis)$",
    )
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    REDIS_KEY_PREFIX: str = Field(default="relay")

    # ========================================================================
    # TOOL EXECUTION
    # ========================================================================
    TOOL_EXECUTION_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Upper bound for a single provider HTTP call",
        ge=1.0,
        le=300.0,
    )
    TOOL_CATALOG_ENABLED: bool = Field(
        default=True, description="Register the bundled tool catalog at startup"
    )
    TOOL_CONFIG_DIR: str = Field(
        default="", description="Extra directory of *.json tool configurations"
    )

    # ========================================================================
    # OAUTH
    # ========================================================================
    TOOL_AUTH_SERVICE_URL: str = Field(
        default="http://localhost:3070",
        description="Consent-flow service used to build setup URLs",
    )
    OAUTH_EXPIRY_SKEW_SECONDS: int = Field(
        default=60,
        description="Tokens expiring within this window are treated as expired",
        ge=0,
    )
    OAUTH_REFRESH_TIMEOUT_SECONDS: float = Field(default=10.0, ge=1.0, le=60.0)

    GOOGLE_CLIENT_ID: str = Field(default="")
    GOOGLE_CLIENT_SECRET: str = Field(default="")
    GITHUB_CLIENT_ID: str = Field(default="")
    GITHUB_CLIENT_SECRET: str = Field(default="")
    FACEBOOK_CLIENT_ID: str = Field(default="")
    FACEBOOK_CLIENT_SECRET: str = Field(default="")
    TWITTER_CLIENT_ID: str = Field(default="")
    TWITTER_CLIENT_SECRET: str = Field(default="")
    LINKEDIN_CLIENT_ID: str = Field(default="")
    LINKEDIN_CLIENT_SECRET: str = Field(default="")

    # ========================================================================
    # API SERVER
    # ========================================================================
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)
    API_CORS_ORIGINS: str = Field(default="http://localhost:5173")

    # ========================================================================
    # LOGGING
    # ========================================================================
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_FORMAT: str = Field(default="json", pattern="^(json|text)$")

    # ========================================================================
    # DEPLOYMENT
    # ========================================================================
    ENVIRONMENT: str = Field(
        default="development", pattern="^(development|staging|production)$"
    )

    def oauth_client(self, provider: str) -> tuple[str, str]:
        """Return (client_id, client_secret) for an OAuth provider.

        Args:
            provider: OAuth provider value (e.g. "google")

        Returns:
            Tuple of client id and secret (empty strings if unset)
        """
        prefix = str(getattr(provider, "value", provider)).upper()
        return (
            getattr(self, f"{prefix}_CLIENT_ID", ""),
            getattr(self, f"{prefix}_CLIENT_SECRET", ""),
        )
