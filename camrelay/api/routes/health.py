"""Health check endpoint."""

from fastapi import APIRouter, Depends

from camrelay.api.deps import get_registry, get_sampler
from camrelay.streams.registry import StreamRegistry
from camrelay.telemetry.sampler import TelemetrySampler

router = APIRouter()


@router.get("/health")
async def health_check(
    registry: StreamRegistry = Depends(get_registry),
    sampler: TelemetrySampler = Depends(get_sampler),
):
    """Basic health check endpoint.

    Returns simple OK response with stream count and host uptime.
    """
    return {
        "status": "ok",
        "streams": len(registry),
        "uptime": sampler.uptime_seconds(),
    }
