"""Health check endpoint with database connectivity check."""

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool

from gateway.core.database import check_db_connected
from gateway.schemas.health import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def get_health(request: Request) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring.
    """
    connected = await run_in_threadpool(check_db_connected, request.app.state.session_factory)
    return HealthResponse(
        status="ok",
        environment=request.app.state.settings.APP_ENV,
        database="connected" if connected else "disconnected",
    )
