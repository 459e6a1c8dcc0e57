"""
Shared test configuration and fixtures.

Provides an in-memory stand-in for the async Cosmos client that honours
create-if-not-exists semantics, so provisioning can be tested without
an account. Live tests live in test_cosmos_live.py.
"""

import asyncio
import json
from typing import Any

import pytest

from cosmos_event_store import HostSettings, ServiceRegistry


class FakeContainer:
    """Container proxy recording how the collection was created."""

    def __init__(self, id: str, partition_key_path: str, throughput: int | None):
        self.id = id
        self.partition_key_path = partition_key_path
        self.throughput = throughput
        self.fail_read_with: BaseException | None = None

    async def read(self) -> dict[str, Any]:
        if self.fail_read_with is not None:
            raise self.fail_read_with
        return {
            "id": self.id,
            "partitionKey": {"paths": [self.partition_key_path], "kind": "Hash"},
        }


class FakeDatabase:
    def __init__(self, id: str, client: "FakeCosmosClient"):
        self.id = id
        self.containers: dict[str, FakeContainer] = {}
        self._client = client

    async def create_container_if_not_exists(
        self, id: str, partition_key: Any, offer_throughput: int | None = None, **kwargs: Any
    ) -> FakeContainer:
        self._client.calls.append(("create_container_if_not_exists", self.id, id))
        if self._client.fail_container_with is not None:
            raise self._client.fail_container_with
        if id not in self.containers:
            self.containers[id] = FakeContainer(id, partition_key.path, offer_throughput)
        return self.containers[id]

    def get_container_client(self, id: str) -> FakeContainer:
        return self.containers[id]


class FakeCosmosClient:
    """Async Cosmos client double holding databases in memory."""

    def __init__(self) -> None:
        self.databases: dict[str, FakeDatabase] = {}
        self.calls: list[tuple[str, ...]] = []
        self.fail_database_with: BaseException | None = None
        self.fail_container_with: BaseException | None = None
        self.delay: float = 0.0
        self.closed = False

    async def create_database_if_not_exists(self, id: str, **kwargs: Any) -> FakeDatabase:
        self.calls.append(("create_database_if_not_exists", id))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_database_with is not None:
            raise self.fail_database_with
        if id not in self.databases:
            self.databases[id] = FakeDatabase(id, self)
        return self.databases[id]

    def get_database_client(self, id: str) -> FakeDatabase:
        return self.databases[id]

    async def close(self) -> None:
        self.closed = True

    def add_existing_container(
        self, database_id: str, container_id: str, partition_key_path: str, throughput: int
    ) -> FakeContainer:
        """Seed a collection as if it had been created earlier by someone else."""
        database = self.databases.setdefault(database_id, FakeDatabase(database_id, self))
        container = FakeContainer(container_id, partition_key_path, throughput)
        database.containers[container_id] = container
        return container


class JsonSerializer:
    """Minimal serializer for tests."""

    def serialize(self, obj: Any) -> bytes:
        return json.dumps(obj).encode("utf-8")

    def deserialize(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


@pytest.fixture
def fake_client() -> FakeCosmosClient:
    return FakeCosmosClient()


@pytest.fixture
def serializer() -> JsonSerializer:
    return JsonSerializer()


@pytest.fixture
def registry() -> ServiceRegistry:
    return ServiceRegistry()


@pytest.fixture
def host(registry) -> HostSettings:
    return HostSettings(name="Orders", registry=registry)
