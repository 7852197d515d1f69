"""Host telemetry sampler.

Best effort throughout: any failure to read a counter degrades that field
to zero instead of failing the request being served.

CPU usage is a rolling measurement between consecutive calls:
    - first call stores a tick baseline and reports 0
    - later calls report 100 - 100 * idle_delta / total_delta
Two calls close together in time give noisier readings because the tick
deltas are small.
"""

import logging
import math
import subprocess
import threading
import time
from typing import Optional

import psutil

from camrelay.models.telemetry import CpuSample, DiskStats, MemoryStats, SystemStats

logger = logging.getLogger(__name__)

GB = 1024 ** 3
KB_PER_GB = 1024 ** 2

# Already counted in user/nice on Linux
_NON_ADDITIVE_CPU_FIELDS = ("guest", "guest_nice")


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


def read_cpu_sample() -> CpuSample:
    """Sum idle and total ticks over all logical cores, averaged per core."""
    per_cpu = psutil.cpu_times(percpu=True)
    if not per_cpu:
        raise RuntimeError("no CPU times reported")

    idle = 0.0
    total = 0.0
    for times in per_cpu:
        for name, value in times._asdict().items():
            if name not in _NON_ADDITIVE_CPU_FIELDS:
                total += value
        idle += times.idle

    count = len(per_cpu)
    return CpuSample(idle_ticks=idle / count, total_ticks=total / count)


def usage_between(previous: CpuSample, current: CpuSample) -> int:
    """Percent of non-idle time between two samples, clamped to [0, 100].

    A zero or negative total delta (no ticks elapsed, or counters reset)
    reports 0.
    """
    idle_delta = current.idle_ticks - previous.idle_ticks
    total_delta = current.total_ticks - previous.total_ticks
    if total_delta <= 0:
        return 0
    usage = 100 - 100 * (idle_delta / total_delta)
    return max(0, min(100, round_half_up(usage)))


def parse_df_line(line: str) -> DiskStats:
    """Parse one data line of ``df -k`` output.

    Expected columns are total blocks, used blocks, available blocks,
    use percent and mount point, in 1K blocks. A leading filesystem
    column is accepted too:

        /dev/sda1  102400000  51200000  51200000  50%  /

    Returns:
        DiskStats in GB, or all zeros if the line cannot be parsed
    """
    parts = (line or "").split()
    for index, token in enumerate(parts):
        if not token.endswith("%") or index < 3:
            continue
        try:
            total_blocks = int(parts[index - 3])
            used_blocks = int(parts[index - 2])
            used_percent = int(token[:-1])
        except ValueError:
            break
        return DiskStats(
            used_gb=round_half_up(used_blocks / KB_PER_GB),
            total_gb=round_half_up(total_blocks / KB_PER_GB),
            used_percent=used_percent,
        )
    logger.debug(f"Unparseable df line: {line!r}")
    return DiskStats()


class TelemetrySampler:
    """Produces CPU, memory, disk and uptime snapshots of the host.

    Usage:
        sampler = TelemetrySampler()
        stats = sampler.snapshot(stream_count=3)
        stats.to_dict()
    """

    def __init__(
        self,
        disk_path: str = "/",
        disk_method: str = "statvfs",
        df_timeout_seconds: float = 5.0,
    ):
        """Initialize sampler.

        Args:
            disk_path: Mount point to report disk usage for
            disk_method: "statvfs" for a native query, "df" to parse df output
            df_timeout_seconds: Timeout for the df subprocess
        """
        self.disk_path = disk_path
        self.disk_method = disk_method
        self.df_timeout_seconds = df_timeout_seconds

        self._cpu_baseline: Optional[CpuSample] = None
        self._cpu_lock = threading.Lock()

    def cpu_usage_percent(self) -> int:
        """CPU usage since the previous call, 0 on the first call."""
        with self._cpu_lock:
            try:
                current = read_cpu_sample()
            except Exception as e:
                logger.warning(f"CPU sample failed: {e}")
                return 0
            previous = self._cpu_baseline
            self._cpu_baseline = current

        if previous is None:
            return 0
        return usage_between(previous, current)

    def memory_stats(self) -> MemoryStats:
        """Physical memory usage; used is total minus available."""
        try:
            vm = psutil.virtual_memory()
            total = vm.total
            used = total - vm.available
        except Exception as e:
            logger.warning(f"Memory sample failed: {e}")
            return MemoryStats()

        if total <= 0:
            return MemoryStats()
        return MemoryStats(
            used_gb=round_half_up(used / GB),
            total_gb=round_half_up(total / GB),
            used_percent=round_half_up(used / total * 100),
        )

    def disk_stats(self) -> DiskStats:
        """Usage of the configured volume, zeros on any failure."""
        if self.disk_method == "df":
            return self._disk_stats_from_df()
        try:
            usage = psutil.disk_usage(self.disk_path)
        except Exception as e:
            logger.warning(f"Disk usage query failed for {self.disk_path}: {e}")
            return DiskStats()
        return DiskStats(
            used_gb=round_half_up(usage.used / GB),
            total_gb=round_half_up(usage.total / GB),
            used_percent=round_half_up(usage.percent),
        )

    def _disk_stats_from_df(self) -> DiskStats:
        try:
            result = subprocess.run(
                ["df", "-k", self.disk_path],
                capture_output=True,
                text=True,
                timeout=self.df_timeout_seconds,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"df failed: {e}")
            return DiskStats()

        if result.returncode != 0:
            logger.warning(f"df exited with {result.returncode}: {result.stderr.strip()}")
            return DiskStats()

        lines = result.stdout.strip().splitlines()
        if not lines:
            return DiskStats()
        return parse_df_line(lines[-1])

    def uptime_seconds(self) -> int:
        """Host uptime in whole seconds."""
        try:
            return max(0, int(time.time() - psutil.boot_time()))
        except Exception as e:
            logger.warning(f"Uptime query failed: {e}")
            return 0

    def snapshot(self, stream_count: int = 0) -> SystemStats:
        """Sample everything at once for GET /api/system-stats."""
        return SystemStats(
            cpu=self.cpu_usage_percent(),
            memory=self.memory_stats(),
            disk=self.disk_stats(),
            uptime=self.uptime_seconds(),
            streams=stream_count,
        )
