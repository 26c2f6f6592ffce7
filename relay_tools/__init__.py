"""Relay Tool Engine.

Declarative external-tool execution: a tool is described once as data
(endpoint, parameter mappings, auth scheme, required secrets/scopes) and the
engine turns a JSON call request into an authenticated HTTP call.

Usage:
    from relay_tools import ToolEngine, ToolRegistry, load_catalog

    registry = ToolRegistry()
    load_catalog(registry)
    engine = ToolEngine.build(registry, secret_store, credential_store, http_client)
    envelope = await engine.invoke("stripe_get_customer", identity, {"customerId": "cus_123"})
"""

from relay_stores import Identity
from relay_tools.auth import AuthInjector
from relay_tools.base import (
    ApiKeyAuthScheme,
    AuthMethod,
    HttpMethod,
    OAuthProvider,
    UtilityActionConfirmation,
    UtilityProvider,
    UtilitySecret,
)
from relay_tools.credentials import CredentialResolver, ResolvedCredentials
from relay_tools.engine import ToolEngine
from relay_tools.exceptions import (
    AuthRefreshFailedError,
    ConfigurationError,
    ErrorKind,
    NetworkError,
    ProviderError,
    ToolEngineError,
    ToolNotFoundError,
    ToolValidationError,
)
from relay_tools.executor import Executor
from relay_tools.mapping import PreparedRequest, RequestMapper
from relay_tools.normalizer import ResponseNormalizer
from relay_tools.oauth import OAuthTokenClient, TokenRefreshCoordinator
from relay_tools.registry import ToolRegistry, load_catalog
from relay_tools.results import ErrorResult, ExecutionResult, SetupNeeded, SuccessResult
from relay_tools.schemas import ApiDetails, ApiKeyDetails, ParamMappings, ToolConfig

__all__ = [
    # Engine
    "ToolEngine",
    "ToolRegistry",
    "load_catalog",
    "CredentialResolver",
    "ResolvedCredentials",
    "RequestMapper",
    "PreparedRequest",
    "AuthInjector",
    "Executor",
    "ResponseNormalizer",
    "OAuthTokenClient",
    "TokenRefreshCoordinator",
    # Schemas
    "Identity",
    "ToolConfig",
    "ApiDetails",
    "ApiKeyDetails",
    "ParamMappings",
    "ExecutionResult",
    "SuccessResult",
    "SetupNeeded",
    "ErrorResult",
    # Enums
    "ApiKeyAuthScheme",
    "AuthMethod",
    "HttpMethod",
    "OAuthProvider",
    "UtilityActionConfirmation",
    "UtilityProvider",
    "UtilitySecret",
    # Exceptions
    "ErrorKind",
    "ToolEngineError",
    "ToolValidationError",
    "ConfigurationError",
    "AuthRefreshFailedError",
    "NetworkError",
    "ProviderError",
    "ToolNotFoundError",
]
