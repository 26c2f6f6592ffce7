"""
Relay Tool API Application Entry Point.

This module initializes the FastAPI application with:
- CORS middleware
- Request ID injection
- Lifespan context management (stores, HTTP client, tool registry, engine)
- Router mounting
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from apps.tool_api.middleware import RequestIDMiddleware
from apps.tool_api.routers import health, metrics, tools
from relay_config.settings import Settings
from relay_obs.logging import get_logger, setup_logging
from relay_stores import (
    InMemoryCredentialStore,
    InMemorySecretStore,
    RedisConnection,
    RedisCredentialStore,
    RedisSecretStore,
)
from relay_tools.engine import ToolEngine
from relay_tools.registry import ToolRegistry, load_catalog

logger = get_logger(__name__)


async def build_engine(settings: Settings, http_client: httpx.AsyncClient) -> tuple[ToolEngine, RedisConnection | None]:
    """Build stores, registry and engine from settings.

    Returns:
        The engine and the Redis connection to close on shutdown (if any)
    """
    redis_connection = None
    if settings.STORE_BACKEND == "redis":
        redis_connection = RedisConnection(settings.REDIS_URL, key_prefix=settings.REDIS_KEY_PREFIX)
        await redis_connection.connect()
        secret_store = RedisSecretStore(redis_connection)
        credential_store = RedisCredentialStore(redis_connection)
    else:
        secret_store = InMemorySecretStore()
        credential_store = InMemoryCredentialStore()

    registry = ToolRegistry()
    try:
        if settings.TOOL_CATALOG_ENABLED:
            load_catalog(registry)
        if settings.TOOL_CONFIG_DIR:
            registry.load_directory(Path(settings.TOOL_CONFIG_DIR))
    except Exception:
        if redis_connection is not None:
            await redis_connection.disconnect()
        raise

    engine = ToolEngine.build(
        registry,
        secret_store,
        credential_store,
        http_client,
        settings=settings,
    )
    return engine, redis_connection


def create_app(settings: Settings | None = None, engine: ToolEngine | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Settings (defaults loaded from environment)
        engine: Prebuilt engine; when given the lifespan builds nothing
    """
    settings = settings or Settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if app.state.engine is not None:
            yield
            return

        logger.info("tool_api_starting", environment=settings.ENVIRONMENT, store=settings.STORE_BACKEND)
        http_client = httpx.AsyncClient()
        redis_connection = None
        try:
            app.state.engine, redis_connection = await build_engine(settings, http_client)
            logger.info("tool_api_ready", tools=len(app.state.engine.registry))
            yield
        finally:
            await http_client.aclose()
            if redis_connection is not None:
                await redis_connection.disconnect()
            logger.info("tool_api_stopped")

    app = FastAPI(
        title="Relay Tool API",
        description="Declarative external-tool execution engine",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.API_CORS_ORIGINS.split(",") if settings.API_CORS_ORIGINS else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_exception", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please contact support.",
                "request_id": getattr(request.state, "request_id", None),
            },
        )

    app.include_router(tools.router, prefix="", tags=["tools"])
    app.include_router(health.router, prefix="", tags=["health"])
    app.include_router(metrics.router, prefix="", tags=["metrics"])

    @app.get("/", tags=["root"])
    async def root():
        """API information."""
        return {
            "name": "Relay Tool API",
            "version": "0.1.0",
            "docs": "/docs",
            "health": "/healthz",
            "metrics": "/metrics",
            "endpoints": {
                "list_tools": "GET /tools",
                "describe_tool": "GET /tools/{tool_id}",
                "register_tool": "POST /tools",
                "execute_tool": "POST /tools/{tool_id}/execute",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = Settings()
    uvicorn.run(
        "apps.tool_api.main:app",
        host=_settings.API_HOST,
        port=_settings.API_PORT,
        reload=_settings.ENVIRONMENT == "development",
        log_level="info",
    )
