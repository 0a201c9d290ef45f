"""
Service container for dependency wiring.

Services are registered by name either as lazily-created singletons, as
factories creating a fresh object on every lookup, or as ready instances.
"""

import logging
from typing import Any, Callable, Dict, Optional, TypeVar

from .errors import PromoTrackError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceNotFoundError(PromoTrackError):
    """Raised when a requested service is not registered."""
    pass


class ServiceCreationError(PromoTrackError):
    """Raised when a registered service fails to build."""
    pass


class ServiceContainer:
    """Name-keyed registry of the record store, the dispatcher and the services."""

    def __init__(self):
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._singleton_factories: Dict[str, Callable[[], Any]] = {}
        self._instances: Dict[str, Any] = {}
        self._config: Dict[str, Any] = {}

    def register_singleton(self, name: str, factory: Callable[[], T]) -> None:
        """Build on first ``get`` and reuse afterwards."""
        self._singleton_factories[name] = factory
        self._instances.pop(name, None)
        logger.debug(f"Registered singleton service: {name}")

    def register_factory(self, name: str, factory: Callable[[], T]) -> None:
        """Build a fresh object on every ``get``."""
        self._factories[name] = factory
        logger.debug(f"Registered factory service: {name}")

    def register_instance(self, name: str, instance: T) -> None:
        self._instances[name] = instance
        logger.debug(f"Registered service instance: {name}")

    def set_config(self, config: Dict[str, Any]) -> None:
        self._config = dict(config)

    def get_config(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def get(self, name: str) -> Any:
        """
        Resolve a service by name.

        Raises:
            ServiceNotFoundError: nothing registered under ``name``
            ServiceCreationError: the registered factory raised
        """
        if name in self._instances:
            return self._instances[name]

        if name in self._singleton_factories:
            instance = self._build(name, self._singleton_factories[name])
            self._instances[name] = instance
            return instance

        if name in self._factories:
            return self._build(name, self._factories[name])

        raise ServiceNotFoundError(f"Service '{name}' not found in container")

    def has_service(self, name: str) -> bool:
        return name in self._instances or name in self._singleton_factories or name in self._factories

    def list_services(self) -> Dict[str, str]:
        services = {name: "factory" for name in self._factories}
        services.update({name: "singleton" for name in self._singleton_factories})
        services.update({
            name: "instance" for name in self._instances if name not in self._singleton_factories
        })
        return services

    def clear_singletons(self) -> None:
        """Drop built singletons so the next ``get`` rebuilds them."""
        for name in self._singleton_factories:
            self._instances.pop(name, None)

    @staticmethod
    def _build(name: str, factory: Callable[[], Any]) -> Any:
        try:
            logger.debug(f"Creating service: {name}")
            return factory()
        except Exception as e:
            logger.error(f"Failed to create service '{name}': {e}")
            raise ServiceCreationError(f"Failed to create service '{name}': {e}") from e


_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """The process-wide container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """Discard the process-wide container (used by tests and app factories)."""
    global _container
    _container = None
