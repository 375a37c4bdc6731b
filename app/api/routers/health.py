"""Health check API router."""

from fastapi import APIRouter, Depends

from app.api.models import HealthResponse
from app.infra.metrics import get_metrics_response
from app.services.tool_registry import ProviderRegistry, get_registry

router = APIRouter()


@router.get("/health", tags=["Health"], response_model=HealthResponse)
async def health_check():
    """Combined health check endpoint."""
    return HealthResponse(status="ok", service="smart-search-chat", version="1.0.0")


@router.get("/health/live", tags=["Health"])
async def liveness_probe():
    """Liveness probe - indicates if the process is running."""
    return {"status": "alive"}


@router.get("/health/ready", tags=["Health"])
async def readiness_probe(registry: ProviderRegistry = Depends(get_registry)):
    """Readiness probe - reports cached provider connection state.

    Does not open connections; providers connect on the first chat request.
    """
    return {"status": "ready", "providers": registry.state()}


@router.get("/metrics", tags=["Health"])
async def metrics():
    """Prometheus metrics endpoint."""
    return get_metrics_response()
