"""
Service container for the earnings reporter.

Holds the wired-up sources, caches and services for one CLI run. Services
are registered as lazily created singletons or as ready-made instances.
"""
from typing import Dict, Any, Callable, TypeVar, Optional
import logging

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ServiceNotFoundError(Exception):
    """Raised when a requested service has not been registered."""
    pass


class ServiceCreationError(Exception):
    """Raised when a registered service fails to build."""
    pass


class ServiceContainer:
    """Name-keyed registry of services."""

    def __init__(self):
        self._singleton_factories: Dict[str, Callable[[], Any]] = {}
        self._instances: Dict[str, Any] = {}

    def register_singleton(self, name: str, factory: Callable[[], T]) -> None:
        """Register a service built on first lookup and reused afterwards."""
        self._singleton_factories[name] = factory
        logger.debug(f"Registered singleton service: {name}")

    def register_instance(self, name: str, instance: T) -> None:
        """Register an already built service."""
        self._instances[name] = instance
        logger.debug(f"Registered service instance: {name}")

    def get(self, name: str) -> Any:
        """
        Resolve a service by name.

        Raises:
            ServiceNotFoundError: If nothing is registered under `name`
            ServiceCreationError: If the service factory raised
        """
        if name in self._instances:
            return self._instances[name]

        if name in self._singleton_factories:
            instance = self._build(name, self._singleton_factories[name])
            self._instances[name] = instance
            return instance

        raise ServiceNotFoundError(f"Service '{name}' not found in container")

    @staticmethod
    def _build(name: str, factory: Callable[[], Any]) -> Any:
        logger.debug(f"Creating service: {name}")
        try:
            return factory()
        except Exception as e:
            logger.error(f"Failed to create service '{name}': {e}")
            raise ServiceCreationError(f"Failed to create service '{name}': {e}") from e

    def clear_singletons(self) -> None:
        """Drop built singletons; the next lookup rebuilds them."""
        for name in list(self._instances):
            if name in self._singleton_factories:
                del self._instances[name]
        logger.debug("Cleared singleton instances")

    def list_services(self) -> Dict[str, str]:
        services = {name: "singleton" for name in self._singleton_factories}
        services.update({name: "instance" for name in self._instances if name not in self._singleton_factories})
        return services


_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """Return the process-wide container, creating it on first use."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """Discard the process-wide container (used by tests)."""
    global _container
    _container = None
