"""Client for the media relay's path-management control API.

Registers and deletes named source paths on a MediaMTX-compatible relay
over its HTTP control plane (``/v3/config/paths/...``).
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import aiohttp

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Base class for relay control-plane failures."""


class RelayRejected(RelayError):
    """The relay answered with a non-success status."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"Relay API error: {status} {body}".rstrip())


class RelayUnreachable(RelayError):
    """The relay could not be reached or did not answer in time."""


class RelayClient:
    """Client for the relay's path-management API.

    Usage:
        client = RelayClient("http://mediamtx:9997", "admin", "admin")
        await client.register("cam1", "rtsp://10.0.0.5/live")
        await client.unregister("cam1")
        await client.close()
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:9997",
        username: str = "admin",
        password: str = "admin",
        timeout_seconds: float = 10.0,
    ):
        """Initialize relay client.

        Args:
            base_url: Relay control API URL (e.g., http://mediamtx:9997)
            username: Basic auth user
            password: Basic auth password
            timeout_seconds: Total timeout per request
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._auth = aiohttp.BasicAuth(username, password)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            headers = {"Authorization": self._auth.encode()}
            self._session = aiohttp.ClientSession(timeout=timeout, headers=headers)
        return self._session

    async def close(self) -> None:
        """Close the client and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _path_url(self, action: str, stream_id: str) -> str:
        # Encode as a single path segment
        return f"{self.base_url}/v3/config/paths/{action}/{quote(stream_id, safe='')}"

    async def register(self, stream_id: str, source_url: str) -> None:
        """Create a relay path that pulls from ``source_url``.

        On-demand activation is disabled so the relay keeps the source
        connected and first-frame latency stays low.

        Raises:
            RelayRejected: relay answered with a non-2xx status
            RelayUnreachable: connection failure or timeout
        """
        payload = {"source": source_url, "sourceOnDemand": False}
        try:
            session = await self._get_session()
            async with session.post(self._path_url("add", stream_id), json=payload) as resp:
                if 200 <= resp.status < 300:
                    logger.info(f"[{stream_id}] Path registered with relay")
                    return
                body = await resp.text()
        except asyncio.TimeoutError as e:
            raise RelayUnreachable(f"Relay request timed out: {self.base_url}") from e
        except aiohttp.ClientError as e:
            raise RelayUnreachable(f"Relay unreachable: {e}") from e

        logger.error(f"[{stream_id}] Relay rejected path: {resp.status} {body}")
        raise RelayRejected(resp.status, body)

    async def unregister(self, stream_id: str) -> bool:
        """Delete a relay path.

        Never raises: a missing path counts as deleted, other failures are
        logged and reported through the return value.

        Returns:
            True if the relay confirmed the path is gone
        """
        try:
            session = await self._get_session()
            async with session.delete(self._path_url("delete", stream_id)) as resp:
                if 200 <= resp.status < 300 or resp.status == 404:
                    logger.info(f"[{stream_id}] Path removed from relay")
                    return True
                logger.error(f"[{stream_id}] Failed to delete path: {resp.status}")
                return False
        except asyncio.TimeoutError:
            logger.error(f"[{stream_id}] Timed out deleting path from relay")
            return False
        except aiohttp.ClientError as e:
            logger.error(f"[{stream_id}] Error removing path from relay: {e}")
            return False
