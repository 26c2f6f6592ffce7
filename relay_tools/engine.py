"""Tool Engine.

Single invocation entry point: (tool_id, identity, params) → envelope.

Pipeline per invocation (no shared state besides the stores):
    resolve credentials → validate input → map request → inject auth → execute

Every terminal state goes through the ResponseNormalizer.
"""

import time
from typing import Any

import httpx

from relay_config.settings import Settings
from relay_obs.logging import get_logger
from relay_obs.metrics import tool_invocation_duration, tool_invocations_total
from relay_stores import CredentialStore, Identity, SecretStore
from relay_tools.auth import AuthInjector
from relay_tools.base import OAuthProvider
from relay_tools.credentials import CredentialResolver
from relay_tools.exceptions import ToolEngineError
from relay_tools.executor import Executor
from relay_tools.mapping import RequestMapper
from relay_tools.normalizer import ResponseNormalizer
from relay_tools.oauth import OAuthTokenClient, TokenRefreshCoordinator, TokenRefresher
from relay_tools.registry import ToolRegistry
from relay_tools.results import ErrorResult, ExecutionResult, SetupNeeded, SuccessResult
from relay_tools.validation import validate_input

logger = get_logger(__name__)

NO_API_CALL_MESSAGE = "Prerequisites met. No API call required for this tool."


class ToolEngine:
    """Executes declaratively configured tools."""

    def __init__(
        self,
        registry: ToolRegistry,
        resolver: CredentialResolver,
        mapper: RequestMapper,
        auth_injector: AuthInjector,
        executor: Executor,
        normalizer: ResponseNormalizer | None = None,
    ):
        self.registry = registry
        self.resolver = resolver
        self.mapper = mapper
        self.auth_injector = auth_injector
        self.executor = executor
        self.normalizer = normalizer or ResponseNormalizer()

    @classmethod
    def build(
        cls,
        registry: ToolRegistry,
        secret_store: SecretStore,
        credential_store: CredentialStore,
        http_client: httpx.AsyncClient,
        settings: Settings | None = None,
        token_refresher: TokenRefresher | None = None,
    ) -> "ToolEngine":
        """Wire an engine from settings and collaborators.

        Args:
            registry: Tool registry
            secret_store: Secret slot store
            credential_store: OAuth token store
            http_client: Shared HTTP client for provider and token calls
            settings: Settings (defaults loaded from environment)
            token_refresher: Override the OAuth token client (tests)
        """
        settings = settings or Settings()
        refresher = token_refresher or OAuthTokenClient(
            client_credentials={p: settings.oauth_client(p) for p in OAuthProvider},
            http_client=http_client,
            timeout_seconds=settings.OAUTH_REFRESH_TIMEOUT_SECONDS,
        )
        coordinator = TokenRefreshCoordinator(
            credential_store,
            refresher,
            expiry_skew_seconds=settings.OAUTH_EXPIRY_SKEW_SECONDS,
        )
        return cls(
            registry=registry,
            resolver=CredentialResolver(
                secret_store,
                credential_store,
                consent_base_url=settings.TOOL_AUTH_SERVICE_URL,
                expiry_skew_seconds=settings.OAUTH_EXPIRY_SKEW_SECONDS,
            ),
            mapper=RequestMapper(),
            auth_injector=AuthInjector(coordinator),
            executor=Executor(http_client, timeout_seconds=settings.TOOL_EXECUTION_TIMEOUT_SECONDS),
        )

    async def invoke(
        self, tool_id: str, identity: Identity, params: dict[str, Any]
    ) -> dict[str, Any]:
        """Invoke a tool and return the three-way envelope."""
        return self.normalizer.to_envelope(await self.execute(tool_id, identity, params))

    async def execute(
        self, tool_id: str, identity: Identity, params: dict[str, Any]
    ) -> ExecutionResult:
        """Invoke a tool and return the typed ExecutionResult."""
        log = logger.bind(tool_id=tool_id, identity=identity.key)
        log.info("tool_invocation_started", params=sorted(params) if isinstance(params, dict) else None)
        started = time.perf_counter()

        try:
            result = await self._run(tool_id, identity, params)
        except ToolEngineError as e:
            log.warning("tool_invocation_failed", kind=e.kind.value, error=e.message)
            result = self.normalizer.from_error(e)
        except Exception as e:
            log.exception("tool_invocation_crashed")
            result = self.normalizer.unexpected(e)

        outcome = _outcome(result)
        tool_invocations_total.labels(tool_id=tool_id, outcome=outcome).inc()
        tool_invocation_duration.labels(tool_id=tool_id).observe(time.perf_counter() - started)
        log.info("tool_invocation_finished", outcome=outcome)
        return result

    async def _run(self, tool_id: str, identity: Identity, params: dict[str, Any]) -> ExecutionResult:
        config = self.registry.require(tool_id)

        credentials = await self.resolver.resolve(identity, config)
        if isinstance(credentials, SetupNeeded):
            return credentials

        validated = validate_input(config, params)

        if config.api_details is None:
            return self.normalizer.success({"message": NO_API_CALL_MESSAGE})

        request = self.mapper.build_request(config.api_details, validated)
        await self.auth_injector.inject_auth(request, identity, credentials, config)
        logger.debug(
            "tool_request_prepared",
            tool_id=tool_id,
            method=request.method.value,
            url=request.url,
        )

        data = await self.executor.execute(request)
        return self.normalizer.success(data)


def _outcome(result: ExecutionResult) -> str:
    if isinstance(result, SuccessResult):
        return "success"
    if isinstance(result, SetupNeeded):
        return "setup_needed"
    if isinstance(result, ErrorResult):
        return result.kind.value
    return "unknown"
