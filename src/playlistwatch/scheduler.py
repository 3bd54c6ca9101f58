"""
Refresh scheduler.

Drives ``StreamRegistry.refresh(False)`` on a fixed interval while
auto-refresh is enabled, and eagerly when the page becomes visible again or
the network comes back. Triggers that arrive while a refresh is in flight
are dropped.
"""

import asyncio
import logging
from typing import Optional, Set

from . import config
from .constants import RefreshConstants
from .models import RefreshOutcome
from .registry import StreamRegistry

logger = logging.getLogger(config.APP_NAME + ".scheduler")


class RefreshScheduler:
    """
    Cooperative asyncio scheduler for registry refreshes.

    Args:
        registry: The registry to refresh
        interval: Seconds between periodic refreshes
        auto_refresh: Whether the periodic refresh runs
        online_refresh_delay: Seconds to wait after the network returns
    """

    def __init__(
        self,
        registry: StreamRegistry,
        interval: float = RefreshConstants.DEFAULT_INTERVAL,
        auto_refresh: bool = True,
        online_refresh_delay: float = RefreshConstants.DEFAULT_ONLINE_DELAY,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.registry = registry
        self.interval = interval
        self.auto_refresh = auto_refresh
        self.online_refresh_delay = online_refresh_delay

        self._interval_task: Optional[asyncio.Task] = None
        self._trigger_tasks: Set[asyncio.Task] = set()
        self._visible = True
        self._online = True
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start the interval loop (if auto-refresh is on). Needs a running loop."""
        self._running = True
        self._restart_interval()
        logger.info(
            f"Scheduler started (auto_refresh={self.auto_refresh}, interval={self.interval}s)"
        )

    async def stop(self) -> None:
        """Cancel the interval loop and pending triggers. Safe to call twice."""
        self._running = False
        tasks = list(self._trigger_tasks)
        if self._interval_task is not None:
            tasks.append(self._interval_task)
            self._interval_task = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._trigger_tasks.clear()
        logger.debug("Scheduler stopped")

    # --- Runtime settings ---

    def set_auto_refresh(self, enabled: bool) -> None:
        """Toggle the periodic refresh, cancelling and restarting the loop."""
        self.auto_refresh = enabled
        logger.info(f"Auto-refresh {'enabled' if enabled else 'disabled'}")
        if self._running:
            self._restart_interval()

    def set_interval(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError("interval must be positive")
        self.interval = seconds
        if self._running:
            self._restart_interval()

    def _restart_interval(self) -> None:
        if self._interval_task is not None:
            self._interval_task.cancel()
            self._interval_task = None
        if self.auto_refresh:
            self._interval_task = asyncio.ensure_future(self._interval_loop())

    async def _interval_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.trigger("interval")
            except Exception:
                logger.error("Periodic refresh failed unexpectedly", exc_info=True)

    # --- Triggers ---

    async def trigger(self, reason: str = "manual") -> Optional[RefreshOutcome]:
        """
        Refresh now unless a refresh is already in flight.

        Returns:
            The refresh outcome, or None when the trigger was coalesced
        """
        if self.registry.is_refreshing:
            logger.debug(f"Refresh trigger '{reason}' coalesced with in-flight refresh")
            return None
        logger.debug(f"Refresh triggered by {reason}")
        return await self.registry.refresh(False)

    def on_visibility_changed(self, visible: bool) -> None:
        """Hidden -> visible refreshes when auto-refresh is enabled."""
        became_visible = visible and not self._visible
        self._visible = visible
        if became_visible and self.auto_refresh and self._running:
            self._spawn(self.trigger("visible"))

    def on_network_changed(self, online: bool) -> None:
        """Offline -> online refreshes after a short settling delay."""
        came_online = online and not self._online
        self._online = online
        if not online:
            logger.warning("Network offline; refreshes will fail until it returns")
        if came_online and self._running:
            logger.info("Network restored")
            self._spawn(self._delayed_trigger("online", self.online_refresh_delay))

    async def _delayed_trigger(self, reason: str, delay: float) -> Optional[RefreshOutcome]:
        if delay > 0:
            await asyncio.sleep(delay)
        return await self.trigger(reason)

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._trigger_tasks.add(task)
        task.add_done_callback(self._trigger_tasks.discard)

    @classmethod
    def from_config(cls, registry: StreamRegistry) -> "RefreshScheduler":
        return cls(
            registry,
            interval=config.get_refresh_interval(),
            auto_refresh=config.get_auto_refresh_enabled(),
            online_refresh_delay=config.get_online_refresh_delay(),
        )
