"""API route handlers for the relay service."""

from camrelay.api.routes import health, streams, system

__all__ = ["health", "streams", "system"]
