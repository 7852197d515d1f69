"""Stream registration and lifecycle."""

from camrelay.streams.registry import StreamNotFoundError, StreamRegistry

__all__ = ["StreamNotFoundError", "StreamRegistry"]
