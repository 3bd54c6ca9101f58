"""
Unit tests for the DI container, application wiring and CLI options.
"""
import asyncio

import pytest

from playlistwatch import config
from playlistwatch.app import PlaylistWatchApp
from playlistwatch.container import DIContainer, ServiceRegistry
from playlistwatch.events import EventBus
from playlistwatch.main import build_parser, query_options_from_args
from playlistwatch.models import SortKey, SortOrder, StatusFilter
from playlistwatch.registry import StreamRegistry
from playlistwatch.scheduler import RefreshScheduler

from tests.fixtures.sample_data import StubPlaylistClient


class TestDIContainer:
    def test_singleton_is_lazy_and_cached(self):
        container = DIContainer()
        created = []
        container.register_singleton("thing", lambda: created.append(1) or object())

        assert not container.is_created("thing")
        first = container.get("thing")

        assert container.get("thing") is first
        assert created == [1]

    def test_instance(self):
        container = DIContainer()
        marker = object()
        container.register_instance("marker", marker)
        assert container.has("marker")
        assert container.get("marker") is marker

    def test_missing_service(self):
        with pytest.raises(KeyError):
            DIContainer().get("nope")

    def test_clear(self):
        container = DIContainer()
        container.register_instance("x", 1)
        container.clear()
        assert not container.has("x")


class TestServiceRegistry:
    def test_wires_registry(self, snapshot_db):
        container = DIContainer()
        client = StubPlaylistClient()
        container.register_instance("playlist_client", client)
        container.register_instance("database", snapshot_db)
        ServiceRegistry.configure_container(container)

        registry = container.get("registry")

        assert isinstance(registry, StreamRegistry)
        assert registry.client is client
        assert registry.database is snapshot_db
        assert registry.bus is container.get("event_bus")
        assert isinstance(container.get("scheduler"), RefreshScheduler)
        assert container.get("scheduler").registry is registry


class TestPlaylistWatchApp:
    def _app(self, snapshot_db, client):
        container = DIContainer()
        container.register_instance("playlist_client", client)
        container.register_instance("database", snapshot_db)
        container.register_instance("event_bus", EventBus())
        return PlaylistWatchApp(container)

    def test_start_and_close(self, snapshot_db):
        client = StubPlaylistClient()
        app = self._app(snapshot_db, client)

        async def scenario():
            outcome = await app.start(run_scheduler=True)
            running = app.scheduler.running
            await app.close()
            return outcome, running

        outcome, running = asyncio.run(scenario())

        assert outcome.success is True
        assert running is True
        assert app.scheduler.running is False
        assert client.calls == 1

    def test_start_without_refresh(self, snapshot_db):
        client = StubPlaylistClient()
        app = self._app(snapshot_db, client)

        async def scenario():
            async with app:
                return await app.start(refresh=False, run_scheduler=False)

        assert asyncio.run(scenario()) is None
        assert client.calls == 0

    def test_close_without_start(self, snapshot_db):
        app = self._app(snapshot_db, StubPlaylistClient())
        asyncio.run(app.close())
        assert not app.container.is_created("registry")


    def test_set_auto_refresh_reaches_scheduler_and_config(self, snapshot_db):
        app = self._app(snapshot_db, StubPlaylistClient())
        assert app.scheduler.auto_refresh is True

        app.set_auto_refresh(False)

        assert app.scheduler.auto_refresh is False
        config.load_config()
        assert config.get_auto_refresh_enabled() is False

    def test_set_auto_refresh_without_persisting(self, snapshot_db):
        app = self._app(snapshot_db, StubPlaylistClient())

        app.set_auto_refresh(False, persist=False)

        assert app.scheduler.auto_refresh is False
        config.load_config()
        assert config.get_auto_refresh_enabled() is True

class TestCommandLine:
    def test_defaults_follow_config(self):
        args = build_parser().parse_args([])
        options = query_options_from_args(args)

        assert options.status_filter is StatusFilter.LIVE
        assert options.sort_key is SortKey.VIEWERS
        assert options.sort_order is SortOrder.DESC
        assert args.force is False

    def test_explicit_options(self):
        args = build_parser().parse_args(
            ["--all", "--search", "chat", "--min-viewers", "10", "--sort", "name", "--order", "asc"]
        )
        options = query_options_from_args(args)

        assert options.status_filter is StatusFilter.ALL
        assert options.search_text == "chat"
        assert options.min_viewers == 10
        assert options.sort_key is SortKey.NAME
        assert options.sort_order is SortOrder.ASC

    def test_auto_refresh_flag(self):
        assert build_parser().parse_args([]).auto_refresh is None
        assert build_parser().parse_args(["--auto-refresh", "off"]).auto_refresh == "off"
