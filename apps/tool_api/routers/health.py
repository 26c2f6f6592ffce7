"""
Health Check Endpoints.

- GET /healthz: Liveness probe (API running)
- GET /readyz: Readiness probe (engine built, tools registered)
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """
    Liveness probe - is the API process running?

    Returns 200 OK if server is alive.
    """
    return {"status": "healthy", "service": "relay-tool-api"}


@router.get("/readyz")
async def readyz(request: Request):
    """
    Readiness probe - is the API ready to serve traffic?

    Returns:
        200 OK once the engine is built
        503 Service Unavailable otherwise
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        return JSONResponse(status_code=503, content={"status": "unavailable", "engine": "missing"})

    return {"status": "ready", "checks": {"engine": "ok", "tools": len(engine.registry)}}
