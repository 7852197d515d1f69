"""
StreamRegistry tests with a recording fake relay.

Usage:
    pytest tests/test_stream_registry.py -v
"""

import asyncio
import time

import pytest

from camrelay.models.stream import StreamStatus
from camrelay.relay.client import RelayRejected, RelayUnreachable
from camrelay.streams.registry import StreamNotFoundError

URL = "rtsp://10.0.0.5/live"


class TestAdd:
    @pytest.mark.asyncio
    async def test_add_registers_and_records(self, registry, fake_relay):
        record = await registry.add("cam1", URL)

        assert record.id == "cam1"
        assert record.source_url == URL
        assert record.status == StreamStatus.RUNNING
        assert record.name == "cam1"
        assert registry.get("cam1") is record
        assert fake_relay.calls == [("register", "cam1", URL)]

    @pytest.mark.asyncio
    async def test_add_twice_registers_once_and_returns_original(self, registry, fake_relay):
        first = await registry.add("cam1", URL)
        second = await registry.add("cam1", "rtsp://10.0.0.99/other")

        assert second is first
        assert second.source_url == URL
        assert fake_relay.count("register") == 1

    @pytest.mark.asyncio
    async def test_add_keeps_display_name(self, registry):
        record = await registry.add("cam1", URL, name="Front door")
        assert record.name == "Front door"

    @pytest.mark.asyncio
    async def test_relay_rejection_leaves_registry_unchanged(self, registry, fake_relay):
        fake_relay.register_error = RelayRejected(400, "bad source")

        with pytest.raises(RelayRejected):
            await registry.add("cam1", URL)

        assert "cam1" not in registry
        assert registry.list_streams() == []

    @pytest.mark.asyncio
    async def test_relay_unreachable_propagates(self, registry, fake_relay):
        fake_relay.register_error = RelayUnreachable("down")

        with pytest.raises(RelayUnreachable):
            await registry.add("cam1", URL)
        assert len(registry) == 0


class TestRemove:
    @pytest.mark.asyncio
    async def test_remove_unknown_returns_false_without_relay_call(self, registry, fake_relay):
        assert await registry.remove("ghost") is False
        assert fake_relay.calls == []

    @pytest.mark.asyncio
    async def test_remove_known(self, registry, fake_relay):
        await registry.add("cam1", URL)

        assert await registry.remove("cam1") is True
        assert registry.get("cam1") is None
        assert fake_relay.calls[-1] == ("unregister", "cam1")

    @pytest.mark.asyncio
    async def test_remove_clears_slot_even_if_relay_fails(self, registry, fake_relay):
        await registry.add("cam1", URL)
        fake_relay.unregister_result = False

        assert await registry.remove("cam1") is True
        assert "cam1" not in registry


class TestRestart:
    @pytest.mark.asyncio
    async def test_restart_tears_down_then_re_registers_same_source(self, registry, fake_relay):
        original = await registry.add("cam1", URL, name="Front door")

        restarted = await registry.restart("cam1")

        assert fake_relay.calls == [
            ("register", "cam1", URL),
            ("unregister", "cam1"),
            ("register", "cam1", URL),
        ]
        assert restarted is not original
        assert restarted.source_url == URL
        assert restarted.name == "Front door"
        assert registry.get("cam1") is restarted

    @pytest.mark.asyncio
    async def test_restart_waits_for_delay(self, registry):
        await registry.add("cam1", URL)
        registry.restart_delay_seconds = 0.1

        start = time.monotonic()
        await registry.restart("cam1")

        assert time.monotonic() - start >= 0.1

    @pytest.mark.asyncio
    async def test_restart_unknown_raises(self, registry, fake_relay):
        with pytest.raises(StreamNotFoundError):
            await registry.restart("ghost")
        assert fake_relay.calls == []

    @pytest.mark.asyncio
    async def test_failed_re_add_leaves_stream_absent(self, registry, fake_relay):
        await registry.add("cam1", URL)
        fake_relay.register_error = RelayRejected(500, "relay busy")

        with pytest.raises(RelayRejected):
            await registry.restart("cam1")

        assert "cam1" not in registry

    @pytest.mark.asyncio
    async def test_teardown_failure_does_not_block_restart(self, registry, fake_relay):
        await registry.add("cam1", URL)
        fake_relay.unregister_result = False

        restarted = await registry.restart("cam1")
        assert registry.get("cam1") is restarted


class TestSameIdSerialization:
    @pytest.mark.asyncio
    async def test_add_during_restart_waits_and_sees_restarted_stream(self, registry, fake_relay):
        await registry.add("cam1", URL)
        registry.restart_delay_seconds = 0.05

        restart_task = asyncio.create_task(registry.restart("cam1"))
        await asyncio.sleep(0.01)
        # Mid-restart the ID is absent for readers
        assert "cam1" not in registry

        added = await registry.add("cam1", "rtsp://10.0.0.99/other")
        restarted = await restart_task

        assert added is restarted
        assert added.source_url == URL
        assert fake_relay.count("register") == 2

    @pytest.mark.asyncio
    async def test_remove_during_restart_applies_after_restart(self, registry, fake_relay):
        await registry.add("cam1", URL)
        registry.restart_delay_seconds = 0.05

        restart_task = asyncio.create_task(registry.restart("cam1"))
        await asyncio.sleep(0.01)

        removed = await registry.remove("cam1")
        await restart_task

        assert removed is True
        assert "cam1" not in registry
        assert fake_relay.calls[-1] == ("unregister", "cam1")

    @pytest.mark.asyncio
    async def test_other_ids_are_not_blocked_by_restart(self, registry):
        await registry.add("cam1", URL)
        registry.restart_delay_seconds = 0.2

        restart_task = asyncio.create_task(registry.restart("cam1"))
        await asyncio.sleep(0.01)

        start = time.monotonic()
        await registry.add("cam2", "rtsp://10.0.0.6/live")
        assert time.monotonic() - start < 0.1

        await restart_task
        assert {r.id for r in registry.list_streams()} == {"cam1", "cam2"}


@pytest.mark.asyncio
async def test_list_is_a_snapshot(registry):
    await registry.add("cam1", URL)

    snapshot = registry.list_streams()
    snapshot.clear()

    assert len(registry.list_streams()) == 1


class TestLockCleanup:
    @pytest.mark.asyncio
    async def test_unknown_ids_leave_no_locks(self, registry):
        for i in range(200):
            assert await registry.remove(f"ghost{i}") is False
            with pytest.raises(StreamNotFoundError):
                await registry.restart(f"nope{i}")

        assert registry._locks == {}
        assert registry._waiters == {}

    @pytest.mark.asyncio
    async def test_failed_add_leaves_no_lock(self, registry, fake_relay):
        fake_relay.register_error = RelayRejected(400, "bad source")

        with pytest.raises(RelayRejected):
            await registry.add("cam1", URL)

        assert registry._locks == {}

    @pytest.mark.asyncio
    async def test_lock_kept_while_registered_and_dropped_on_remove(self, registry):
        await registry.add("cam1", URL)
        assert set(registry._locks) == {"cam1"}

        await registry.remove("cam1")
        assert registry._locks == {}

    @pytest.mark.asyncio
    async def test_failed_restart_leaves_no_lock(self, registry, fake_relay):
        await registry.add("cam1", URL)
        fake_relay.register_error = RelayRejected(500, "relay busy")

        with pytest.raises(RelayRejected):
            await registry.restart("cam1")

        assert registry._locks == {}

    @pytest.mark.asyncio
    async def test_waiting_caller_still_shares_the_lock(self, registry, fake_relay):
        await registry.add("cam1", URL)
        registry.restart_delay_seconds = 0.05

        restart_task = asyncio.create_task(registry.restart("cam1"))
        await asyncio.sleep(0.01)
        remove_task = asyncio.create_task(registry.remove("cam1"))
        await asyncio.sleep(0)
        assert registry._waiters == {"cam1": 2}

        await restart_task
        assert await remove_task is True
        assert registry._locks == {}
        assert registry._waiters == {}
