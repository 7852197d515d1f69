"""Stream registry mediating between API requests and the relay.

Holds the service's view of which streams are active. A stream is only
recorded after the relay accepts it; removal always clears the local
record, even if the relay could not confirm the deletion.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional

from camrelay.models.stream import StreamRecord, StreamStatus
from camrelay.relay.client import RelayClient

logger = logging.getLogger(__name__)


class StreamNotFoundError(KeyError):
    """Operation on a stream ID that is not registered."""


class StreamRegistry:
    """In-memory registry of relay streams.

    State per stream ID:
        absent  -> running   add()
        running -> absent    remove()
        running -> absent -> running   restart()

    Mutations of one ID are serialized by a per-ID lock, so a restart
    cannot interleave with an add or remove of the same ID. Mutations of
    different IDs run concurrently. Reads never lock and may observe the
    absent window in the middle of a restart.
    """

    # Time the relay gets to tear down a path before one with the same
    # name is created again.
    restart_delay_seconds: float = 1.0

    def __init__(self, relay: RelayClient):
        """Initialize stream registry.

        Args:
            relay: Client for the relay control plane
        """
        self.relay = relay
        self._streams: Dict[str, StreamRecord] = {}
        # Per-ID lock and the number of callers holding or waiting on it.
        # An entry lives only while in use or while the ID is registered.
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._streams)

    def __contains__(self, stream_id: str) -> bool:
        return stream_id in self._streams

    @asynccontextmanager
    async def _exclusive(self, stream_id: str) -> AsyncIterator[None]:
        """Serialize mutations of one stream ID."""
        lock = self._locks.get(stream_id)
        if lock is None:
            lock = self._locks[stream_id] = asyncio.Lock()
        self._waiters[stream_id] = self._waiters.get(stream_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[stream_id] -= 1
            if self._waiters[stream_id] == 0:
                del self._waiters[stream_id]
                if stream_id not in self._streams:
                    del self._locks[stream_id]

    def get(self, stream_id: str) -> Optional[StreamRecord]:
        """Get a stream by ID."""
        return self._streams.get(stream_id)

    def list_streams(self) -> List[StreamRecord]:
        """Get a snapshot of all streams."""
        return list(self._streams.values())

    async def add(
        self,
        stream_id: str,
        source_url: str,
        name: Optional[str] = None,
    ) -> StreamRecord:
        """Register a stream with the relay and record it.

        An ID that is already registered is returned as-is without
        contacting the relay.

        Args:
            stream_id: Relay path name and registry key
            source_url: Camera RTSP URL
            name: Optional display name (defaults to the ID)

        Returns:
            The new or existing StreamRecord

        Raises:
            RelayError: relay rejected or could not be reached; nothing is
                recorded
        """
        async with self._exclusive(stream_id):
            existing = self._streams.get(stream_id)
            if existing is not None:
                logger.debug(f"[{stream_id}] Already registered, skipping relay")
                return existing
            return await self._register(stream_id, source_url, name)

    async def remove(self, stream_id: str) -> bool:
        """Remove a stream.

        The relay deletion is best-effort; the local record is dropped
        whatever the relay answers.

        Returns:
            True if the stream was registered
        """
        async with self._exclusive(stream_id):
            if stream_id not in self._streams:
                return False
            await self._teardown(stream_id)
            return True

    async def restart(self, stream_id: str) -> StreamRecord:
        """Tear a stream down and register it again with the same source.

        Blocks for ``restart_delay_seconds`` between the two phases. The
        per-ID lock is held throughout, so concurrent add/remove calls for
        the same ID wait for the restart to finish.

        Raises:
            StreamNotFoundError: stream is not registered
            RelayError: re-registration failed; the stream stays absent
        """
        async with self._exclusive(stream_id):
            record = self._streams.get(stream_id)
            if record is None:
                raise StreamNotFoundError(stream_id)

            logger.info(f"[{stream_id}] Restarting stream")
            await self._teardown(stream_id)
            await asyncio.sleep(self.restart_delay_seconds)
            return await self._register(stream_id, record.source_url, record.name)

    async def _register(
        self,
        stream_id: str,
        source_url: str,
        name: Optional[str],
    ) -> StreamRecord:
        record = StreamRecord(
            id=stream_id,
            source_url=source_url,
            name=name or stream_id,
            status=StreamStatus.RUNNING,
            start_time=datetime.now(),
        )
        logger.info(f"[{stream_id}] Registering stream with relay: {record.source_url_masked}")
        try:
            await self.relay.register(stream_id, source_url)
        except Exception as e:
            logger.error(f"[{stream_id}] Failed to register stream: {e}")
            raise

        self._streams[stream_id] = record
        return record

    async def _teardown(self, stream_id: str) -> None:
        logger.info(f"[{stream_id}] Removing stream from relay")
        if not await self.relay.unregister(stream_id):
            logger.warning(
                f"[{stream_id}] Relay did not confirm removal; dropping local record anyway"
            )
        self._streams.pop(stream_id, None)
