"""Stream management endpoints."""

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from camrelay.api.deps import get_app_settings, get_registry
from camrelay.config import Settings
from camrelay.relay.client import RelayError
from camrelay.streams.registry import StreamNotFoundError, StreamRegistry

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND = {"error": "Stream not found"}

# Relay path names: no separators, query or fragment characters, no dot segments
STREAM_ID_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.~-]*")


class StreamCreate(BaseModel):
    """Request body for registering a stream.

    Numeric IDs are accepted and stored as strings.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: Optional[str] = None
    rtspUrl: Optional[str] = None
    name: Optional[str] = None


@router.get("")
async def list_streams(registry: StreamRegistry = Depends(get_registry)):
    """List all registered streams.

    Returns:
        List of {id, rtspUrl, status, startTime}
    """
    return [record.to_list_item() for record in registry.list_streams()]


@router.post("")
async def add_stream(
    body: Optional[StreamCreate] = None,
    registry: StreamRegistry = Depends(get_registry),
):
    """Register a camera source with the relay.

    Args:
        body: Stream ID, RTSP source URL and optional display name

    Returns:
        Created stream, or a notice if the ID is already registered
    """
    if body is None or not body.id or not body.rtspUrl:
        return JSONResponse(status_code=400, content={"error": "Missing id or rtspUrl"})
    if not STREAM_ID_PATTERN.fullmatch(body.id):
        return JSONResponse(status_code=400, content={"error": "Invalid stream id"})

    if body.id in registry:
        return {"message": "Stream already exists", "id": body.id}

    try:
        record = await registry.add(body.id, body.rtspUrl, name=body.name)
    except RelayError as e:
        return JSONResponse(status_code=500, content={"error": str(e)})
    return record.to_summary()


@router.get("/{stream_id}")
async def get_stream(
    stream_id: str,
    registry: StreamRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
):
    """Get a stream with its relay playback URLs.

    Args:
        stream_id: Stream ID

    Returns:
        Stream details including hlsUrl and webrtcUrl
    """
    record = registry.get(stream_id)
    if record is None:
        return JSONResponse(status_code=404, content=NOT_FOUND)
    return record.to_dict(playback=settings.playback)


@router.delete("/{stream_id}")
async def delete_stream(
    stream_id: str,
    registry: StreamRegistry = Depends(get_registry),
):
    """Stop a stream and remove it from the relay.

    Args:
        stream_id: Stream ID

    Returns:
        Success message
    """
    if not await registry.remove(stream_id):
        return JSONResponse(status_code=404, content=NOT_FOUND)
    return {"message": "Stream stopped"}


@router.post("/{stream_id}/restart")
async def restart_stream(
    stream_id: str,
    registry: StreamRegistry = Depends(get_registry),
):
    """Re-register a stream with the relay.

    The response is held until the stream has been torn down, the restart
    delay has elapsed and the relay has accepted it again.

    Args:
        stream_id: Stream ID

    Returns:
        Re-registered stream
    """
    try:
        record = await registry.restart(stream_id)
    except StreamNotFoundError:
        return JSONResponse(status_code=404, content=NOT_FOUND)
    except RelayError as e:
        logger.error(f"[{stream_id}] Restart failed, stream is no longer registered: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    return record.to_summary()
