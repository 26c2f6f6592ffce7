"""
FastAPI Dependency Injection.

The engine and registry are built once in the lifespan handler and stored on
app.state; routes receive them through these dependencies.
"""

from fastapi import HTTPException, Request, status

from relay_tools.engine import ToolEngine
from relay_tools.registry import ToolRegistry


def get_engine(request: Request) -> ToolEngine:
    """Dependency: the application's ToolEngine."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Tool engine not initialized",
        )
    return engine


def get_registry(request: Request) -> ToolRegistry:
    """Dependency: the application's ToolRegistry."""
    return get_engine(request).registry
