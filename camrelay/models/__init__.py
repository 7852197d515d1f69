"""Data models for the relay service."""

from camrelay.models.stream import StreamRecord, StreamStatus
from camrelay.models.telemetry import CpuSample, DiskStats, MemoryStats, SystemStats

__all__ = [
    "CpuSample",
    "DiskStats",
    "MemoryStats",
    "StreamRecord",
    "StreamStatus",
    "SystemStats",
]
