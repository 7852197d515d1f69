"""Data models for registered camera streams."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from camrelay.config import PlaybackSettings


class StreamStatus(Enum):
    """Stream lifecycle status.

    A record only exists once the relay has accepted it, so there is no
    pending or error state.
    """

    RUNNING = "running"


@dataclass(frozen=True)
class StreamRecord:
    """A camera source registered with the relay."""

    id: str
    source_url: str
    name: str = ""
    status: StreamStatus = StreamStatus.RUNNING
    start_time: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", self.id)

    @property
    def source_url_masked(self) -> str:
        """Return source URL with password masked for logging."""
        url = self.source_url
        if "://" not in url:
            return url
        try:
            prefix, rest = url.split("://", 1)
            if "@" in rest:
                auth, host = rest.rsplit("@", 1)
                if ":" in auth:
                    user, _ = auth.split(":", 1)
                    return f"{prefix}://{user}:****@{host}"
            return url
        except ValueError:
            return url

    def to_summary(self) -> Dict[str, Any]:
        """Shape returned by create and restart."""
        return {
            "id": self.id,
            "rtspUrl": self.source_url,
            "status": self.status.value,
        }

    def to_list_item(self) -> Dict[str, Any]:
        """Shape returned by the stream listing."""
        return {
            "id": self.id,
            "rtspUrl": self.source_url,
            "status": self.status.value,
            "startTime": self.start_time.isoformat(),
        }

    def to_dict(self, playback: Optional[PlaybackSettings] = None) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary.

        Args:
            playback: If provided, include the relay's HLS and WebRTC URLs.
        """
        data = {
            "id": self.id,
            "name": self.name,
            "rtspUrl": self.source_url,
            "status": self.status.value,
            "startTime": self.start_time.isoformat(),
        }
        if playback is not None:
            data["hlsUrl"] = playback.hls_url(self.id)
            data["webrtcUrl"] = playback.webrtc_url(self.id)
        return data
