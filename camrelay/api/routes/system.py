"""Host telemetry and server metadata endpoints."""

from fastapi import APIRouter, Depends

from camrelay import __version__
from camrelay.api.deps import get_app_settings, get_registry, get_sampler
from camrelay.config import Settings
from camrelay.streams.registry import StreamRegistry
from camrelay.telemetry.sampler import TelemetrySampler

router = APIRouter()


@router.get("/system-stats")
def get_system_stats(
    registry: StreamRegistry = Depends(get_registry),
    sampler: TelemetrySampler = Depends(get_sampler),
):
    """Get a point-in-time snapshot of host resources.

    Runs in the thread pool since sampling may shell out to df.

    Returns:
        cpu percent, memory and disk usage in GB, uptime, stream count
    """
    return sampler.snapshot(stream_count=len(registry)).to_dict()


@router.get("/server-info")
async def get_server_info(
    registry: StreamRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
):
    """Get static server metadata and the ports clients connect to."""
    return {
        "name": settings.service_name,
        "version": __version__,
        "streams": len(registry),
        "ports": {
            "api": settings.server.port,
            "rtsp": settings.playback.rtsp_port,
            "hls": settings.playback.hls_port,
            "webrtc": settings.playback.webrtc_port,
        },
    }
