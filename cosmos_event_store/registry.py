"""
Named singleton registry.

Services are registered as factories under a (type, name) key and built
lazily on first resolution. The name is the bounded context, so several
event stores can live side by side in one process.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

from .exceptions import RegistrationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingletonRegistry(Protocol):
    """Anything that can hold named singleton factories."""

    def register_singleton(self, service_type: type[T], factory: Callable[[], T], name: str) -> None: ...


class _Registration:
    __slots__ = ("factory", "instance", "created", "lock")

    def __init__(self, factory: Callable[[], Any]):
        self.factory = factory
        self.instance: Any = None
        self.created = False
        # Held while the factory runs; the registry-wide lock never is
        self.lock = threading.RLock()


class ServiceRegistry:
    """In-process SingletonRegistry implementation."""

    def __init__(self) -> None:
        self._registrations: dict[tuple[type, str], _Registration] = {}
        self._lock = threading.Lock()

    def register_singleton(self, service_type: type[T], factory: Callable[[], T], name: str) -> None:
        """Register a factory whose first result is cached for ``(service_type, name)``."""
        if not name or not name.strip():
            raise RegistrationError(service_type.__name__, name, "name must not be empty")

        key = (service_type, name)
        with self._lock:
            if key in self._registrations:
                raise RegistrationError(service_type.__name__, name, "already registered")
            self._registrations[key] = _Registration(factory)

        logger.debug(
            "Registered singleton",
            extra={"service": service_type.__name__, "registration_name": name},
        )

    def resolve(self, service_type: type[T], name: str) -> T:
        """Return the singleton for ``(service_type, name)``, creating it on first use."""
        with self._lock:
            registration = self._registrations.get((service_type, name))
        if registration is None:
            raise RegistrationError(service_type.__name__, name, "not registered")

        with registration.lock:
            if not registration.created:
                registration.instance = registration.factory()
                registration.created = True
            return registration.instance

    def is_registered(self, service_type: type, name: str) -> bool:
        with self._lock:
            return (service_type, name) in self._registrations

    def names(self, service_type: type) -> list[str]:
        """Names registered for a service type, in registration order."""
        with self._lock:
            return [name for (kind, name) in self._registrations if kind is service_type]
