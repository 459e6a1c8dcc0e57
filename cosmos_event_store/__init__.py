"""
Cosmos Event Store

Configuration and provisioning of Azure Cosmos DB storage for an
event-sourced application.

Provides:
- Validated, chainable event store settings (code, environment, YAML)
- Idempotent provisioning of the database and partitioned collection
- Registration of the event store handle per bounded context

Usage:

    >>> from cosmos_event_store import HostSettings, ServiceRegistry, configure_event_store
    >>> host = HostSettings(name="Orders", registry=ServiceRegistry())
    >>> await configure_event_store(
    ...     host,
    ...     lambda s: s.set_connection(endpoint, key).set_throughput(3000).enable_provisioning(),
    ...     serializer=serializer,
    ... )
"""

from .builder import HostSettings, configure_event_store, finalize

# Exceptions
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    EventStoreError,
    InvalidArgumentError,
    ProvisioningError,
    RegistrationError,
    StorageConnectionError,
)
from .logging_utils import configure_event_store_logging
from .provisioning import ensure_storage
from .registry import ServiceRegistry, SingletonRegistry
from .settings import (
    DEFAULT_COLLECTION_NAME,
    DEFAULT_DATABASE_NAME,
    DEFAULT_THROUGHPUT,
    MIN_THROUGHPUT,
    CosmosEventStoreSettings,
)
from .store import PARTITION_KEY_PATH, CosmosEventStore, Serializer, collection_link

__all__ = [
    # Bootstrap
    "HostSettings",
    "configure_event_store",
    "finalize",
    "ensure_storage",
    # Settings
    "CosmosEventStoreSettings",
    "DEFAULT_DATABASE_NAME",
    "DEFAULT_COLLECTION_NAME",
    "DEFAULT_THROUGHPUT",
    "MIN_THROUGHPUT",
    # Event store
    "CosmosEventStore",
    "Serializer",
    "PARTITION_KEY_PATH",
    "collection_link",
    # Registry
    "ServiceRegistry",
    "SingletonRegistry",
    # Logging
    "configure_event_store_logging",
    # Exceptions
    "EventStoreError",
    "InvalidArgumentError",
    "ConfigurationError",
    "AuthenticationError",
    "ProvisioningError",
    "StorageConnectionError",
    "RegistrationError",
]

__version__ = "0.1.0"
