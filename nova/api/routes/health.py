"""Health check endpoints."""

from fastapi import APIRouter, Request

from ... import __version__
from ..schemas import HealthResponse, PingResponse

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the API server is running and healthy.",
)
def health_check(request: Request) -> HealthResponse:
    """Return health status of the API server."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        model=request.app.state.assistant.gateway.model,
    )


@router.get("/ping", response_model=PingResponse, summary="Liveness probe")
def ping() -> PingResponse:
    """Return a trivial OK payload."""
    return PingResponse(ok=True)
