"""Relay mediator entry point.

Starts the FastAPI server with uvicorn.

Usage:
    python -m camrelay.main
    python -m camrelay.main --host 0.0.0.0 --port 3001
"""

import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

import uvicorn

from camrelay.config import get_settings


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure logging for the relay service.

    Args:
        level: Log level name
        log_file: Optional path for a rotating log file
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        )

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def main():
    """Main entry point for the relay service."""
    parser = argparse.ArgumentParser(
        description="IP camera relay mediator - registers RTSP sources with a media relay"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind to (default: from settings)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (default: from settings)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from settings)",
    )

    args = parser.parse_args()

    settings = get_settings()
    log_level = args.log_level or settings.server.log_level

    setup_logging(log_level, settings.server.log_file)
    logger = logging.getLogger(__name__)

    # Override with CLI args if provided
    host = args.host or settings.server.host
    port = args.port or settings.server.port

    logger.info(f"{settings.service_name} starting on {host}:{port}")
    logger.info(f"Relay API: {settings.relay.api_url}")

    uvicorn.run(
        "camrelay.api.server:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    main()
