"""
Event store bootstrap for a bounded context.

Usage:

    >>> registry = ServiceRegistry()
    >>> host = HostSettings(name="Orders", registry=registry)
    >>> await configure_event_store(
    ...     host,
    ...     lambda s: s.set_connection(endpoint, key).enable_provisioning(),
    ...     serializer=serializer,
    ... )
    >>> store = registry.resolve(CosmosEventStore, "Orders")

Finalize does not return until provisioning (when enabled) is confirmed,
so a half-provisioned store is never registered.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .exceptions import ConfigurationError, InvalidArgumentError
from .logging_utils import EventStoreLoggerAdapter, get_event_store_logger
from .provisioning import ensure_storage
from .registry import SingletonRegistry
from .settings import CosmosEventStoreSettings
from .store import CosmosEventStore, Serializer

logger = get_event_store_logger("builder")


@dataclass
class HostSettings:
    """The application-level settings the event store is attached to.

    Attributes:
        name: Bounded context name, used as the registry key
        registry: Where the event store singleton is registered
    """

    name: str
    registry: SingletonRegistry

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidArgumentError("name", "bounded context name must be a non-empty string", self.name)


async def configure_event_store(
    host: HostSettings,
    configure: Callable[[CosmosEventStoreSettings], Any] | None = None,
    *,
    serializer: Serializer,
) -> HostSettings:
    """Configure, provision (optionally) and register the event store for ``host``.

    Args:
        host: Host settings carrying the bounded context name and registry
        configure: Optional callback applying overrides to the default settings
        serializer: Serializer handed to the event store

    Returns:
        ``host``, unchanged
    """
    settings = CosmosEventStoreSettings(host.name)
    if configure is not None:
        try:
            configure(settings)
        except Exception:
            await settings.close()
            raise

    await finalize(host, settings, serializer)
    return host


async def finalize(
    host: HostSettings,
    settings: CosmosEventStoreSettings,
    serializer: Serializer,
) -> CosmosEventStore:
    """Provision if requested, then build and register the event store.

    On failure every client and credential the settings created is closed
    before the error propagates. On success the current client passes to
    the event store and superseded ones are closed.

    Raises:
        ConfigurationError: Provisioning requested without a connection
        ProvisioningError: Remote provisioning failed; nothing is registered
    """
    log = EventStoreLoggerAdapter(logger, {"bounded_context": host.name})
    log.info(
        "Finalizing event store",
        extra={
            "collection_link": settings.collection_link,
            "provision": settings.with_new_storage_if_not_exists,
        },
    )

    try:
        event_store = await _provision_and_register(host, settings, serializer, log)
    except Exception:
        await settings.close()
        raise

    await settings.close_replaced()
    log.info("Event store registered", extra={"collection_link": event_store.collection_link})
    return event_store


async def _provision_and_register(
    host: HostSettings,
    settings: CosmosEventStoreSettings,
    serializer: Serializer,
    log: EventStoreLoggerAdapter,
) -> CosmosEventStore:
    if settings.with_new_storage_if_not_exists:
        if settings.client is None:
            raise ConfigurationError(
                "connection", "a connection is required when provisioning is enabled"
            )
        await ensure_storage(
            settings.client,
            settings.database_name,
            settings.collection_name,
            settings.throughput,
            timeout=settings.provisioning_timeout,
        )
        log.info("Event store storage provisioned", extra={"throughput": settings.throughput})
    elif settings.client is None:
        log.warning("No connection configured; event store will not reach Cosmos DB")

    event_store = CosmosEventStore(
        settings.client, settings.collection_link, serializer, credential=settings.credential
    )
    host.registry.register_singleton(CosmosEventStore, lambda: event_store, host.name)
    return event_store
