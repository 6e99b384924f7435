"""Health check endpoint."""

import time

from fastapi import APIRouter, Request

from specdrive.models.responses import HealthDependency, HealthResponse

router = APIRouter()

_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """System health check with store status."""
    dependencies = {}

    try:
        start = time.time()
        await request.app.state.store.ping()
        latency = (time.time() - start) * 1000
        dependencies["store"] = HealthDependency(status="healthy", latency_ms=round(latency, 2))
    except Exception as e:
        dependencies["store"] = HealthDependency(status="unhealthy", message=str(e))

    status = "healthy" if all(d.status == "healthy" for d in dependencies.values()) else "degraded"

    return HealthResponse(
        status=status,
        uptime_seconds=round(time.time() - _start_time, 2),
        dependencies=dependencies,
    )
