"""Tool engine exceptions.

Every engine failure is a ToolEngineError carrying the envelope ``kind``;
only the ToolEngine turns them into results.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION_ERROR = "ValidationError"
    CONFIGURATION_ERROR = "ConfigurationError"
    AUTH_REFRESH_FAILED = "AuthRefreshFailed"
    NETWORK_ERROR = "NetworkError"
    PROVIDER_ERROR = "ProviderError"
    TOOL_NOT_FOUND = "ToolNotFound"
    STORE_ERROR = "StoreError"
    SERIALIZATION_ERROR = "SerializationError"
    INTERNAL_ERROR = "InternalError"


class ToolEngineError(Exception):
    """Base exception for the tool engine."""

    kind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ToolValidationError(ToolEngineError):
    """Malformed or missing input parameters."""

    kind = ErrorKind.VALIDATION_ERROR


class ConfigurationError(ToolEngineError):
    """Malformed ToolConfig (a bug in the tool definition)."""

    kind = ErrorKind.CONFIGURATION_ERROR


class AuthRefreshFailedError(ToolEngineError):
    """OAuth credentials existed but could not be refreshed."""

    kind = ErrorKind.AUTH_REFRESH_FAILED


class NetworkError(ToolEngineError):
    """No response from the provider (transport failure or timeout)."""

    kind = ErrorKind.NETWORK_ERROR


class ProviderError(ToolEngineError):
    """Provider answered with a non-2xx status."""

    kind = ErrorKind.PROVIDER_ERROR

    def __init__(self, message: str, status_code: int, body: str, details: Any = None):
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body


class ToolNotFoundError(ToolEngineError):
    """No tool registered under the requested id."""

    kind = ErrorKind.TOOL_NOT_FOUND


class StoreUnavailableError(ToolEngineError):
    """Secret or credential store lookup failed."""

    kind = ErrorKind.STORE_ERROR


class TokenRefreshError(Exception):
    """Provider token endpoint rejected or failed a refresh."""

    pass


class StaleRefreshTokenError(TokenRefreshError):
    """Refresh token already used or revoked (invalid_grant)."""

    pass
