"""
Event store handle backed by a Cosmos DB collection.

The handle is what gets registered for a bounded context. It holds only
the resolved client, the collection link and the serializer; reading and
appending event streams is done by the event store engine built on top.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from azure.core.credentials_async import AsyncTokenCredential
from azure.cosmos.aio import ContainerProxy, CosmosClient

from .exceptions import InvalidArgumentError, StorageConnectionError

# Partition key path of the event store collection: the aggregate (stream) id
PARTITION_KEY_PATH = "/i"


@runtime_checkable
class Serializer(Protocol):
    """Converts events to and from their stored representation."""

    def serialize(self, obj: Any) -> bytes: ...

    def deserialize(self, data: bytes) -> Any: ...


def collection_link(database_name: str, collection_name: str) -> str:
    """Build the fully-qualified collection link, e.g. ``dbs/Elders/colls/EventStore``."""
    return f"dbs/{database_name}/colls/{collection_name}"


def parse_collection_link(link: str) -> tuple[str, str]:
    """Split a collection link into ``(database_name, collection_name)``."""
    parts = link.strip("/").split("/")
    if len(parts) != 4 or parts[0] != "dbs" or parts[2] != "colls" or not parts[1] or not parts[3]:
        raise InvalidArgumentError("collection_link", "expected dbs/<database>/colls/<collection>", link)
    return parts[1], parts[3]


class CosmosEventStore:
    """Handle to the event store collection of one bounded context."""

    def __init__(
        self,
        client: CosmosClient | None,
        collection_link: str,
        serializer: Serializer,
        credential: AsyncTokenCredential | None = None,
    ):
        self.database_name, self.collection_name = parse_collection_link(collection_link)
        self.collection_link = collection_link
        self.client = client
        self.serializer = serializer
        self.credential = credential

    @property
    def container(self) -> ContainerProxy:
        """Container proxy for the event store collection."""
        if self.client is None:
            raise StorageConnectionError(
                None, f"no connection configured for {self.collection_link}"
            )
        database = self.client.get_database_client(self.database_name)
        return database.get_container_client(self.collection_name)

    async def close(self) -> None:
        """Close the Cosmos client and the identity credential behind it."""
        client, self.client = self.client, None
        credential, self.credential = self.credential, None
        if client is not None:
            await client.close()
        if credential is not None:
            await credential.close()

    def __repr__(self) -> str:
        return f"CosmosEventStore({self.collection_link!r})"
