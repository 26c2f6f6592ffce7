"""
/tools Router - Tool Registry & Execution Endpoints.

Handles:
- GET /tools: List registered tools
- GET /tools/{tool_id}: Describe a tool (input schema, auth method)
- POST /tools: Register a ToolConfig JSON document
- POST /tools/{tool_id}/execute: Invoke a tool, returns the three-way envelope
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from apps.tool_api.deps import get_engine, get_registry
from relay_obs.logging import get_logger
from relay_stores import Identity
from relay_tools.engine import ToolEngine
from relay_tools.exceptions import ConfigurationError, ToolNotFoundError
from relay_tools.normalizer import ResponseNormalizer
from relay_tools.registry import DuplicateToolError, ToolRegistry

router = APIRouter()
logger = get_logger(__name__)
normalizer = ResponseNormalizer()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================


class ExecuteRequest(BaseModel):
    """Request schema for POST /tools/{tool_id}/execute."""

    user_id: str = Field(..., min_length=1, description="User the call is made for")
    organization_id: str | None = Field(None, description="Optional organization scope")
    params: dict[str, Any] = Field(default_factory=dict, description="Tool input parameters")

    model_config = {
        "json_schema_extra": {
            "example": {
                "user_id": "user_123",
                "params": {"customerId": "cus_123"},
            }
        }
    }


# ============================================================================
# ENDPOINTS
# ============================================================================


@router.get("/tools")
async def list_tools(registry: ToolRegistry = Depends(get_registry)) -> dict[str, Any]:
    """List available tools (id and description)."""
    return {"tools": registry.list_tools()}


@router.get("/tools/{tool_id}")
async def describe_tool(
    tool_id: str, registry: ToolRegistry = Depends(get_registry)
) -> dict[str, Any]:
    """Describe a tool for a calling agent."""
    try:
        return registry.describe(tool_id)
    except ToolNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.post("/tools", status_code=status.HTTP_201_CREATED)
async def register_tool(
    document: dict[str, Any] = Body(..., description="ToolConfig wire document"),
    registry: ToolRegistry = Depends(get_registry),
):
    """Register a new tool from its declarative configuration."""
    try:
        config = registry.register(document)
    except DuplicateToolError as e:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=normalizer.to_envelope(normalizer.from_error(e)),
        )
    except ConfigurationError as e:
        logger.warning("tool_registration_rejected", error=e.message)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=normalizer.to_envelope(normalizer.from_error(e)),
        )
    return {"id": config.id, "description": config.description}


@router.post("/tools/{tool_id}/execute")
async def execute_tool(
    tool_id: str,
    request_body: ExecuteRequest,
    engine: ToolEngine = Depends(get_engine),
) -> dict[str, Any]:
    """
    Invoke a tool.

    Always returns 200 with one of:
    - {ok: true, data}
    - {ok: false, needsSetup: true, ...}
    - {ok: false, needsSetup: false, kind, message, details?}
    """
    identity = Identity(user_id=request_body.user_id, organization_id=request_body.organization_id)
    return await engine.invoke(tool_id, identity, request_body.params)
