"""
playlistwatch application class.

Owns the service container and the registry lifecycle:
create -> init (restore snapshot) -> operate -> dispose (stop scheduler).
"""

import logging
from typing import Any, Optional

from . import config
from .container import DIContainer, ServiceRegistry
from .events import EventBus
from .models import RefreshOutcome
from .registry import StreamRegistry
from .scheduler import RefreshScheduler

logger = logging.getLogger(config.APP_NAME + ".app")


class PlaylistWatchApp:
    """
    Composition root for the stream pipeline.

    Usable as an async context manager::

        async with PlaylistWatchApp() as app:
            await app.start()
            streams = app.registry.query(status_filter="live")
    """

    def __init__(self, container: Optional[DIContainer] = None):
        """
        Args:
            container: Optional pre-populated DI container. Services that are
                already registered are kept; missing ones get defaults.
        """
        self.container = container or DIContainer()
        ServiceRegistry.configure_container(self.container)
        self._started = False

    @property
    def registry(self) -> StreamRegistry:
        return self.container.get("registry")

    @property
    def scheduler(self) -> RefreshScheduler:
        return self.container.get("scheduler")

    @property
    def bus(self) -> EventBus:
        return self.container.get("event_bus")

    def get_service(self, service_name: str) -> Any:
        return self.container.get(service_name)

    async def start(self, refresh: bool = True, force: bool = False,
                    run_scheduler: bool = True) -> Optional[RefreshOutcome]:
        """
        Restore the snapshot, optionally refresh once and start the scheduler.

        Returns:
            The initial refresh outcome, or None when ``refresh`` is False
        """
        logger.info("Starting playlistwatch")
        await self.registry.init()
        self._started = True

        outcome = None
        if refresh:
            outcome = await self.registry.refresh(force=force)
            if not outcome.success and not outcome.streams:
                logger.error("No streams available: first load failed and no cache exists")

        if run_scheduler:
            self.scheduler.start()
        return outcome

    def set_auto_refresh(self, enabled: bool, persist: bool = True) -> None:
        """
        Turn the periodic refresh on or off while running.

        Args:
            enabled: New auto-refresh flag, applied to the scheduler immediately
            persist: Also save the flag to config.ini for the next run
        """
        self.scheduler.set_auto_refresh(enabled)
        if persist:
            config.set_auto_refresh_enabled(enabled)

    async def close(self) -> None:
        """Stop the scheduler, dispose the registry and release resources."""
        logger.info("Shutting down playlistwatch")
        if self.container.is_created("scheduler"):
            await self.scheduler.stop()
        if self.container.is_created("registry"):
            await self.registry.dispose()
        if self.container.is_created("playlist_client"):
            await self.container.get("playlist_client").aclose()
        if self.container.is_created("database"):
            self.container.get("database").close()
        self._started = False
        logger.info("playlistwatch shutdown completed")

    async def __aenter__(self) -> "PlaylistWatchApp":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


__all__ = [
    "PlaylistWatchApp",
]
