"""ToolConfig Pydantic schemas.

The camelCase JSON document accepted here is the wire format for registering
tools without code changes. Structural invariants are enforced at parse time
so a broken definition never reaches the execution path.
"""

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from relay_tools.base import (
    BODYLESS_METHODS,
    ApiKeyAuthScheme,
    AuthMethod,
    HttpMethod,
    OAuthProvider,
    UtilityProvider,
    map_provider_to_oauth_provider,
)

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}/]+)\}")


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


# ============================================================================
# AUTHENTICATION
# ============================================================================


class ApiKeyDetails(WireModel):
    """Which secret holds the API key and how it is carried."""

    secret_name: str = Field(..., min_length=1)
    scheme: ApiKeyAuthScheme
    header_name: str | None = None

    @model_validator(mode="after")
    def _header_scheme_needs_name(self) -> "ApiKeyDetails":
        if self.scheme == ApiKeyAuthScheme.HEADER and not self.header_name:
            raise ValueError("headerName is required when scheme is 'Header'")
        return self


# ============================================================================
# API CALL DETAILS
# ============================================================================


class QueryMapping(WireModel):
    """Query target with an optional value transform."""

    target: str = Field(..., min_length=1)
    transform: Literal["joinComma"] | None = None


class ParamMappings(WireModel):
    """Input parameter name → request position."""

    path: dict[str, str] = Field(default_factory=dict)
    query: dict[str, str | QueryMapping] = Field(default_factory=dict)
    body: dict[str, str] = Field(default_factory=dict)


class ApiDetails(WireModel):
    """How to build the outgoing HTTP call."""

    method: HttpMethod
    base_url: str = Field(..., min_length=1)
    path_template: str = ""
    param_mappings: ParamMappings = Field(default_factory=ParamMappings)
    static_headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("base_url")
    @classmethod
    def _absolute_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("baseUrl must be an absolute http(s) URL")
        return value.rstrip("/")

    @property
    def placeholders(self) -> list[str]:
        """Placeholder names in the path template, in order."""
        return PLACEHOLDER_PATTERN.findall(self.path_template)

    @model_validator(mode="after")
    def _mappings_match_template(self) -> "ApiDetails":
        placeholders = set(self.placeholders)
        unknown = sorted(
            target
            for target in self.param_mappings.path.values()
            if target not in placeholders
        )
        if unknown:
            raise ValueError(
                f"path mappings target placeholders not in pathTemplate: {', '.join(unknown)}"
            )
        if self.method in BODYLESS_METHODS and self.param_mappings.body:
            raise ValueError(f"{self.method.value} tools cannot declare body mappings")
        return self


# ============================================================================
# TOOL CONFIG
# ============================================================================


class ToolConfig(WireModel):
    """Declarative description of one external tool."""

    id: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9_.\-]+$")
    provider: UtilityProvider
    description: str = ""
    auth_method: AuthMethod = AuthMethod.NONE
    required_secrets: list[str] = Field(default_factory=list)
    required_scopes: list[str] = Field(default_factory=list)
    api_key_details: ApiKeyDetails | None = None
    api_details: ApiDetails | None = None
    input_schema: dict[str, Any] = Field(default_factory=dict)
    oauth_provider: OAuthProvider | None = None

    @field_validator("required_secrets", "required_scopes")
    @classmethod
    def _ordered_unique(cls, values: list[str]) -> list[str]:
        # ordered set semantics
        return list(dict.fromkeys(values))

    @model_validator(mode="after")
    def _auth_invariants(self) -> "ToolConfig":
        if self.auth_method == AuthMethod.API_KEY:
            if self.api_key_details is None:
                raise ValueError("apiKeyDetails is required when authMethod is API_KEY")
            if self.api_key_details.secret_name not in self.required_secrets:
                raise ValueError(
                    f"apiKeyDetails.secretName '{self.api_key_details.secret_name}' "
                    "must be listed in requiredSecrets"
                )
        elif self.api_key_details is not None:
            raise ValueError("apiKeyDetails is only allowed when authMethod is API_KEY")

        if self.auth_method == AuthMethod.OAUTH:
            if not self.required_scopes:
                raise ValueError("OAuth tools must define requiredScopes")
            if self.resolved_oauth_provider is None:
                raise ValueError(
                    f"No OAuth provider mapping for provider '{self.provider.value}'; "
                    "set oauthProvider explicitly"
                )
        return self

    @property
    def resolved_oauth_provider(self) -> OAuthProvider | None:
        """Explicit oauthProvider, else the provider's default mapping."""
        return self.oauth_provider or map_provider_to_oauth_provider(self.provider)
