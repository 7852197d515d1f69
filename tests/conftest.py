import pytest
from fastapi.testclient import TestClient

from camrelay.api.server import create_app
from camrelay.config import PlaybackSettings, ServerSettings, Settings
from camrelay.models.telemetry import DiskStats, MemoryStats, SystemStats
from camrelay.streams.registry import StreamRegistry


class FakeRelayClient:
    """Records relay calls; failures are injected per test."""

    def __init__(self):
        self.calls = []
        self.register_error = None
        self.unregister_result = True
        self.closed = False

    async def register(self, stream_id, source_url):
        self.calls.append(("register", stream_id, source_url))
        if self.register_error is not None:
            raise self.register_error

    async def unregister(self, stream_id):
        self.calls.append(("unregister", stream_id))
        return self.unregister_result

    async def close(self):
        self.closed = True

    def count(self, action):
        return sum(1 for call in self.calls if call[0] == action)


class StubSampler:
    def uptime_seconds(self):
        return 1234

    def snapshot(self, stream_count=0):
        return SystemStats(
            cpu=42,
            memory=MemoryStats(used_gb=6, total_gb=16, used_percent=38),
            disk=DiskStats(used_gb=50, total_gb=100, used_percent=50),
            uptime=1234,
            streams=stream_count,
        )


@pytest.fixture
def fake_relay():
    return FakeRelayClient()


@pytest.fixture
def registry(fake_relay):
    reg = StreamRegistry(fake_relay)
    reg.restart_delay_seconds = 0.01
    return reg


@pytest.fixture
def settings():
    return Settings(
        server=ServerSettings(port=3001),
        playback=PlaybackSettings(
            public_host="cams.local", rtsp_port=8554, hls_port=8888, webrtc_port=8889
        ),
    )


@pytest.fixture
def app(settings, fake_relay):
    application = create_app(settings=settings, relay=fake_relay, sampler=StubSampler())
    application.state.registry.restart_delay_seconds = 0.01
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
