"""Health check endpoint. No dependencies; used for liveness and readiness probes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Scoped client factory not configured", "model": ReadinessErrorResponse}},
)
async def readiness_check(request: Request) -> ReadinessResponse | JSONResponse:
    """Return 200 once the scoped client factory is wired; report the realtime transport mode."""
    if getattr(request.app.state, "client_factory", None) is None:
        return JSONResponse(
            status_code=503,
            content=ReadinessErrorResponse(
                status="not_ready",
                message="Scoped client factory is not configured",
            ).model_dump(),
        )
    return ReadinessResponse(realtime=getattr(request.app.state, "realtime_mode", "disabled"))
