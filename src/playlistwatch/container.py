"""
Dependency injection container for playlistwatch.

Builds the registry and its collaborators once and hands the same instances
to everything that asks, replacing module-level shared state.
"""

import logging
from typing import Any, Callable, Dict, TypeVar

from . import config

logger = logging.getLogger(config.APP_NAME + ".container")

T = TypeVar("T")


class DIContainer:
    """
    Minimal service container.

    Singletons are created lazily on first ``get``; pre-built instances can be
    registered directly (handy for tests).
    """

    def __init__(self) -> None:
        self._singletons: Dict[str, Any] = {}
        self._singleton_factories: Dict[str, Callable[[], Any]] = {}

    def register_singleton(self, service_name: str, factory: Callable[[], T]) -> None:
        """Register a factory whose result is cached after the first call."""
        self._singleton_factories[service_name] = factory
        logger.debug(f"Registered singleton factory for '{service_name}'")

    def register_instance(self, service_name: str, instance: T) -> None:
        """Register an already-built instance."""
        self._singletons[service_name] = instance
        logger.debug(f"Registered instance for '{service_name}'")

    def get(self, service_name: str) -> Any:
        """
        Resolve a service by name.

        Raises:
            KeyError: If the service is not registered
        """
        if service_name in self._singletons:
            return self._singletons[service_name]

        if service_name in self._singleton_factories:
            logger.debug(f"Creating singleton instance for '{service_name}'")
            instance = self._singleton_factories[service_name]()
            self._singletons[service_name] = instance
            return instance

        raise KeyError(f"Service '{service_name}' is not registered in the container")

    def has(self, service_name: str) -> bool:
        return service_name in self._singletons or service_name in self._singleton_factories

    def is_created(self, service_name: str) -> bool:
        """Whether the singleton has been built (used to skip needless cleanup)."""
        return service_name in self._singletons

    def clear(self) -> None:
        self._singletons.clear()
        self._singleton_factories.clear()

    def __str__(self) -> str:
        names = sorted(set(self._singletons) | set(self._singleton_factories))
        return f"DIContainer(services={len(names)}: {names})"


class ServiceRegistry:
    """Wires the application services into a container."""

    @staticmethod
    def configure_container(container: DIContainer) -> None:
        from .database import SnapshotDatabase
        from .events import EventBus
        from .playlist_client import PlaylistClient
        from .registry import StreamRegistry
        from .scheduler import RefreshScheduler

        logger.info("Configuring DI container with application services")

        if not container.has("database"):
            container.register_singleton("database", lambda: SnapshotDatabase())
        if not container.has("playlist_client"):
            container.register_singleton("playlist_client", lambda: PlaylistClient())
        if not container.has("event_bus"):
            container.register_singleton("event_bus", lambda: EventBus())

        container.register_singleton(
            "registry",
            lambda: StreamRegistry(
                client=container.get("playlist_client"),
                database=container.get("database"),
                bus=container.get("event_bus"),
                snapshot_max_age=config.get_snapshot_max_age_seconds(),
            ),
        )
        container.register_singleton(
            "scheduler", lambda: RefreshScheduler.from_config(container.get("registry"))
        )


__all__ = [
    "DIContainer",
    "ServiceRegistry",
]
