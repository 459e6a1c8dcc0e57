"""
Validated settings for a Cosmos DB backed event store.

Each mutator validates its input before committing it and returns the
settings object, so configuration reads as a chain:

    >>> settings = (
    ...     CosmosEventStoreSettings("Orders")
    ...     .set_database_name("Test")
    ...     .set_collection_name("Events")
    ...     .set_throughput(3000)
    ...     .enable_provisioning()
    ... )

No mutator touches the network. Remote work happens in finalize.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from azure.cosmos.aio import CosmosClient
from azure.identity.aio import DefaultAzureCredential

from .exceptions import AuthenticationError, ConfigurationError, InvalidArgumentError
from .store import collection_link

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = "Elders"
DEFAULT_COLLECTION_NAME = "EventStore"

# Minimum provisioned throughput (RU/s) accepted for the event store collection
MIN_THROUGHPUT = 2500
DEFAULT_THROUGHPUT = MIN_THROUGHPUT

DEFAULT_PROVISIONING_TIMEOUT = 300.0  # seconds

# Auth methods
AUTH_KEY = "key"
AUTH_DEFAULT_CREDENTIAL = "default_credential"

# Environment variables read by apply_env()
ENV_ENDPOINT = "CRONUS_COSMOS_ENDPOINT"
ENV_KEY = "CRONUS_COSMOS_KEY"
ENV_AUTH_METHOD = "CRONUS_COSMOS_AUTH_METHOD"
ENV_DATABASE = "CRONUS_COSMOS_DATABASE"
ENV_COLLECTION = "CRONUS_COSMOS_COLLECTION"
ENV_THROUGHPUT = "CRONUS_COSMOS_THROUGHPUT"
ENV_PROVISION = "CRONUS_COSMOS_PROVISION"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _require_name(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(field, "must be a non-empty string", value)
    return value


def _require_endpoint(endpoint: Any) -> str:
    if endpoint is None:
        raise InvalidArgumentError("endpoint", "must not be None")
    endpoint = str(endpoint)
    parsed = urlparse(endpoint)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidArgumentError("endpoint", "must be an absolute http(s) URI", endpoint)
    return endpoint


def _require_mapping(field: str, value: Any, path: Path) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(field, "must be a mapping", str(path))
    return value


def _parse_bool(field: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise InvalidArgumentError(field, "must be a boolean", value)


def _parse_int(field: str, value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidArgumentError(field, "must be an integer", value) from None


class CosmosEventStoreSettings:
    """Settings for one bounded context's event store.

    Attributes:
        bounded_context: Name of the bounded context served by the store
        database_name: Target Cosmos database id
        collection_name: Target collection (container) id
        throughput: Provisioned RU/s for a newly created collection
        with_new_storage_if_not_exists: Provision database and collection on finalize
        endpoint: Cosmos account endpoint, set together with client
        client: Async Cosmos client built by set_connection()
        provisioning_timeout: Upper bound for provisioning, in seconds
    """

    def __init__(self, bounded_context: str):
        self.bounded_context = _require_name("bounded_context", bounded_context)
        self.database_name = DEFAULT_DATABASE_NAME
        self.collection_name = DEFAULT_COLLECTION_NAME
        self.throughput = DEFAULT_THROUGHPUT
        self.with_new_storage_if_not_exists = False
        self.endpoint: str | None = None
        self.client: CosmosClient | None = None
        self._credential: DefaultAzureCredential | None = None
        self._replaced: list[Any] = []
        self.provisioning_timeout = DEFAULT_PROVISIONING_TIMEOUT

    # =========================================================================
    # Mutators
    # =========================================================================

    def set_database_name(self, name: str) -> CosmosEventStoreSettings:
        self.database_name = _require_name("database_name", name)
        return self

    def set_collection_name(self, name: str) -> CosmosEventStoreSettings:
        self.collection_name = _require_name("collection_name", name)
        return self

    def set_throughput(self, value: int) -> CosmosEventStoreSettings:
        """Set the RU/s used when the collection is created.

        Cosmos DB requires at least 2500 RU/s for the partitioned event
        store collection.
        """
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidArgumentError("throughput", "must be an integer", value)
        if value < MIN_THROUGHPUT:
            raise InvalidArgumentError("throughput", f"minimum is {MIN_THROUGHPUT}", value)
        self.throughput = value
        return self

    def set_connection(self, endpoint: str, credential: str) -> CosmosEventStoreSettings:
        """Connect with an account endpoint and master key.

        Both values are checked before the client is built, so a rejected
        call leaves no client behind. A client from an earlier connection
        call is kept for close_replaced().
        """
        endpoint = _require_endpoint(endpoint)
        if not isinstance(credential, str) or not credential:
            raise InvalidArgumentError("credential", "must be a non-empty string")

        self._attach(endpoint, CosmosClient(endpoint, credential=credential))
        return self

    def set_default_credential_connection(self, endpoint: str) -> CosmosEventStoreSettings:
        """Connect with an Azure identity (DefaultAzureCredential) instead of a key."""
        endpoint = _require_endpoint(endpoint)
        credential = DefaultAzureCredential()
        self._attach(endpoint, CosmosClient(endpoint, credential=credential), credential)
        return self

    def _attach(
        self,
        endpoint: str,
        client: CosmosClient,
        credential: DefaultAzureCredential | None = None,
    ) -> None:
        if self.client is not None:
            self._replaced.append(self.client)
        if self._credential is not None:
            self._replaced.append(self._credential)
        self.client = client
        self._credential = credential
        self.endpoint = endpoint

    async def close_replaced(self) -> None:
        """Close clients and credentials superseded by a later connection call."""
        replaced, self._replaced = self._replaced, []
        for resource in replaced:
            await resource.close()

    async def close(self) -> None:
        """Close every client and credential these settings created.

        Used when configuration is abandoned; after a successful finalize
        the current client belongs to the registered event store.
        """
        await self.close_replaced()
        client, self.client = self.client, None
        credential, self._credential = self._credential, None
        if client is not None:
            await client.close()
        if credential is not None:
            await credential.close()

    def enable_provisioning(self) -> CosmosEventStoreSettings:
        """Create database and collection on finalize if they do not exist."""
        self.with_new_storage_if_not_exists = True
        return self

    def set_provisioning_timeout(self, seconds: float) -> CosmosEventStoreSettings:
        if (
            not isinstance(seconds, (int, float))
            or isinstance(seconds, bool)
            or not seconds > 0
        ):
            raise InvalidArgumentError("provisioning_timeout", "must be a positive number", seconds)
        self.provisioning_timeout = float(seconds)
        return self

    @property
    def credential(self) -> DefaultAzureCredential | None:
        """Identity credential behind the current client, if any."""
        return self._credential

    @property
    def collection_link(self) -> str:
        return collection_link(self.database_name, self.collection_name)

    # =========================================================================
    # Loaders
    # =========================================================================

    def apply_env(self, environ: Mapping[str, str] | None = None) -> CosmosEventStoreSettings:
        """Apply CRONUS_COSMOS_* environment variables that are present.

        Expected environment variables:
        - CRONUS_COSMOS_ENDPOINT: Cosmos DB account endpoint
        - CRONUS_COSMOS_KEY: Cosmos DB account key (key auth)
        - CRONUS_COSMOS_AUTH_METHOD: "key" (default) or "default_credential"
        - CRONUS_COSMOS_DATABASE / CRONUS_COSMOS_COLLECTION: target names
        - CRONUS_COSMOS_THROUGHPUT: RU/s for a new collection
        - CRONUS_COSMOS_PROVISION: "true" to provision on finalize

        Raises:
            AuthenticationError: If key auth is selected and no key is set
            InvalidArgumentError: If a value fails validation
        """
        env = os.environ if environ is None else environ
        self._apply(
            {
                "endpoint": env.get(ENV_ENDPOINT),
                "key": env.get(ENV_KEY),
                "auth_method": env.get(ENV_AUTH_METHOD),
                "database_name": env.get(ENV_DATABASE),
                "collection_name": env.get(ENV_COLLECTION),
                "throughput": env.get(ENV_THROUGHPUT),
                "provision": env.get(ENV_PROVISION),
            }
        )
        return self

    def apply_file(self, path: str | Path, profile: str | None = None) -> CosmosEventStoreSettings:
        """Apply the ``event_store`` section of a YAML settings file.

        ```yaml
        event_store:
          endpoint: "https://account.documents.azure.com:443/"
          auth_method: key
          key: "..."
          database_name: Elders
          throughput: 4000
          profiles:
            Orders:
              collection_name: OrderEvents
              provision: true
        ```

        Values under ``profiles.<profile>`` override the shared ones.
        ``profile`` defaults to the bounded context name.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError("config_path", "file not found", str(path))

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError("config_path", f"invalid YAML: {e}", str(path)) from e

        if not isinstance(config, dict):
            raise ConfigurationError("config_path", "top level must be a mapping", str(path))

        section = _require_mapping("event_store", config.get("event_store"), path)
        profiles = _require_mapping("event_store.profiles", section.get("profiles"), path)
        profile = profile or self.bounded_context
        overrides = _require_mapping(f"event_store.profiles.{profile}", profiles.get(profile), path)

        values = {k: v for k, v in section.items() if k != "profiles"}
        values.update(overrides)

        logger.debug(
            "Applying event store settings file",
            extra={"path": str(path), "bounded_context": self.bounded_context},
        )
        self._apply(values)
        return self

    def _apply(self, values: Mapping[str, Any]) -> None:
        if values.get("database_name") is not None:
            self.set_database_name(values["database_name"])
        if values.get("collection_name") is not None:
            self.set_collection_name(values["collection_name"])
        if values.get("throughput") is not None:
            self.set_throughput(_parse_int("throughput", values["throughput"]))
        if values.get("provisioning_timeout") is not None:
            self.set_provisioning_timeout(values["provisioning_timeout"])
        if values.get("provision") is not None and _parse_bool("provision", values["provision"]):
            self.enable_provisioning()

        endpoint = values.get("endpoint")
        if not endpoint:
            return

        auth_method = values.get("auth_method") or AUTH_KEY
        if auth_method == AUTH_DEFAULT_CREDENTIAL:
            self.set_default_credential_connection(endpoint)
        elif auth_method == AUTH_KEY:
            key = values.get("key")
            if not key:
                raise AuthenticationError(endpoint, "key required for key auth")
            self.set_connection(endpoint, key)
        else:
            raise InvalidArgumentError("auth_method", "must be 'key' or 'default_credential'", auth_method)

    def __repr__(self) -> str:
        return (
            f"CosmosEventStoreSettings(bounded_context={self.bounded_context!r}, "
            f"collection_link={self.collection_link!r}, throughput={self.throughput}, "
            f"provision={self.with_new_storage_if_not_exists})"
        )
