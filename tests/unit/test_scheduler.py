"""
Unit tests for the refresh scheduler.
"""
import asyncio

import pytest

from playlistwatch import config
from playlistwatch.registry import StreamRegistry
from playlistwatch.scheduler import RefreshScheduler

from tests.fixtures.sample_data import SAMPLE_PLAYLIST, StubPlaylistClient


@pytest.fixture
def client():
    return StubPlaylistClient(SAMPLE_PLAYLIST)


@pytest.fixture
def registry(client, clock):
    return StreamRegistry(client, clock=clock)


class TestConstruction:
    def test_rejects_non_positive_interval(self, registry):
        with pytest.raises(ValueError):
            RefreshScheduler(registry, interval=0)

    def test_from_config(self, registry):
        scheduler = RefreshScheduler.from_config(registry)
        assert scheduler.interval == config.get_refresh_interval()
        assert scheduler.auto_refresh is config.get_auto_refresh_enabled()

    def test_set_interval_validates(self, registry):
        scheduler = RefreshScheduler(registry)
        with pytest.raises(ValueError):
            scheduler.set_interval(-1)


class TestIntervalLoop:
    def test_periodic_refresh(self, registry, client):
        async def scenario():
            scheduler = RefreshScheduler(registry, interval=0.01)
            scheduler.start()
            await asyncio.sleep(0.1)
            await scheduler.stop()

        asyncio.run(scenario())

        assert client.calls >= 2
        assert set(client.forced) == {False}

    def test_disabled_auto_refresh_never_fires(self, registry, client):
        async def scenario():
            scheduler = RefreshScheduler(registry, interval=0.01, auto_refresh=False)
            scheduler.start()
            await asyncio.sleep(0.05)
            await scheduler.stop()

        asyncio.run(scenario())

        assert client.calls == 0

    def test_set_auto_refresh_restarts_loop(self, registry, client):
        async def scenario():
            scheduler = RefreshScheduler(registry, interval=0.01, auto_refresh=False)
            scheduler.start()
            await asyncio.sleep(0.03)
            before = client.calls
            scheduler.set_auto_refresh(True)
            await asyncio.sleep(0.1)
            scheduler.set_auto_refresh(False)
            await asyncio.sleep(0)
            stopped_at = client.calls
            await asyncio.sleep(0.05)
            await scheduler.stop()
            return before, stopped_at

        before, stopped_at = asyncio.run(scenario())

        assert before == 0
        assert stopped_at >= 2
        assert client.calls == stopped_at

    def test_stop_is_idempotent(self, registry):
        async def scenario():
            scheduler = RefreshScheduler(registry, interval=0.01)
            scheduler.start()
            await scheduler.stop()
            await scheduler.stop()
            return scheduler.running

        assert asyncio.run(scenario()) is False


class TestTriggers:
    def test_trigger_is_coalesced_while_refreshing(self, registry, client):
        async def scenario():
            scheduler = RefreshScheduler(registry, interval=100)
            client.gate = asyncio.Event()
            inflight = asyncio.ensure_future(registry.refresh())
            await asyncio.sleep(0)
            dropped = await scheduler.trigger("manual")
            client.gate.set()
            await inflight
            return dropped

        assert asyncio.run(scenario()) is None
        assert client.calls == 1

    def test_trigger_refreshes(self, registry, client):
        async def scenario():
            return await RefreshScheduler(registry, interval=100).trigger()

        outcome = asyncio.run(scenario())

        assert outcome.success is True
        assert client.calls == 1

    def test_visibility_transition(self, registry, client):
        async def scenario():
            scheduler = RefreshScheduler(registry, interval=100)
            scheduler.start()
            scheduler.on_visibility_changed(True)
            await asyncio.sleep(0.01)
            unchanged = client.calls
            scheduler.on_visibility_changed(False)
            scheduler.on_visibility_changed(True)
            await asyncio.sleep(0.01)
            await scheduler.stop()
            return unchanged

        assert asyncio.run(scenario()) == 0
        assert client.calls == 1

    def test_visibility_ignored_when_auto_refresh_off(self, registry, client):
        async def scenario():
            scheduler = RefreshScheduler(registry, interval=100, auto_refresh=False)
            scheduler.start()
            scheduler.on_visibility_changed(False)
            scheduler.on_visibility_changed(True)
            await asyncio.sleep(0.01)
            await scheduler.stop()

        asyncio.run(scenario())

        assert client.calls == 0

    def test_network_restored(self, registry, client):
        async def scenario():
            scheduler = RefreshScheduler(
                registry, interval=100, auto_refresh=False, online_refresh_delay=0.01
            )
            scheduler.start()
            scheduler.on_network_changed(False)
            scheduler.on_network_changed(True)
            await asyncio.sleep(0)
            early = client.calls
            await asyncio.sleep(0.05)
            await scheduler.stop()
            return early

        assert asyncio.run(scenario()) == 0
        assert client.calls == 1

    def test_triggers_ignored_when_stopped(self, registry, client):
        async def scenario():
            scheduler = RefreshScheduler(registry, interval=100, online_refresh_delay=0)
            scheduler.on_visibility_changed(False)
            scheduler.on_visibility_changed(True)
            scheduler.on_network_changed(False)
            scheduler.on_network_changed(True)
            await asyncio.sleep(0.01)

        asyncio.run(scenario())

        assert client.calls == 0

    def test_stop_cancels_pending_online_trigger(self, registry, client):
        async def scenario():
            scheduler = RefreshScheduler(registry, interval=100, online_refresh_delay=10)
            scheduler.start()
            scheduler.on_network_changed(False)
            scheduler.on_network_changed(True)
            await asyncio.sleep(0)
            await scheduler.stop()

        asyncio.run(scenario())

        assert client.calls == 0
