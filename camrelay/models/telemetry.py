"""Data models for host telemetry snapshots."""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class CpuSample:
    """Aggregate CPU tick counters, averaged per logical core."""

    idle_ticks: float
    total_ticks: float


@dataclass
class MemoryStats:
    """Physical memory usage in GB (base 1024)."""

    used_gb: int = 0
    total_gb: int = 0
    used_percent: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "used": self.used_gb,
            "total": self.total_gb,
            "usedPercent": self.used_percent,
        }


@dataclass
class DiskStats:
    """Root volume usage in GB (base 1024)."""

    used_gb: int = 0
    total_gb: int = 0
    used_percent: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "used": self.used_gb,
            "total": self.total_gb,
            "usedPercent": self.used_percent,
        }


@dataclass
class SystemStats:
    """Point-in-time host snapshot for GET /api/system-stats."""

    cpu: int = 0
    memory: MemoryStats = field(default_factory=MemoryStats)
    disk: DiskStats = field(default_factory=DiskStats)
    uptime: int = 0
    streams: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "cpu": self.cpu,
            "memory": self.memory.to_dict(),
            "disk": self.disk.to_dict(),
            "uptime": self.uptime,
            "streams": self.streams,
        }
