"""Request dependencies resolving the components owned by the app."""

from fastapi import Request

from camrelay.config import Settings
from camrelay.streams.registry import StreamRegistry
from camrelay.telemetry.sampler import TelemetrySampler


def get_registry(request: Request) -> StreamRegistry:
    return request.app.state.registry


def get_sampler(request: Request) -> TelemetrySampler:
    return request.app.state.sampler


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
