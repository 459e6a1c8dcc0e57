"""
Integration tests against a real Cosmos DB account.

Run with: pytest -m integration tests/test_cosmos_live.py

Environment variables required:
- CRONUS_COSMOS_ENDPOINT: Cosmos DB endpoint URL

Authentication (one of):
- CRONUS_COSMOS_KEY: Cosmos DB account key (for key-based auth)
- CRONUS_COSMOS_AUTH_METHOD=default_credential (for identity-based auth)

Each run provisions a uniquely named database and deletes it afterwards.
"""

import os
import uuid

import pytest

from cosmos_event_store import (
    CosmosEventStore,
    HostSettings,
    ServiceRegistry,
    configure_event_store,
    ensure_storage,
)

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not os.environ.get("CRONUS_COSMOS_ENDPOINT"),
        reason="CRONUS_COSMOS_ENDPOINT not set",
    ),
]


class NullSerializer:
    def serialize(self, obj):
        return b""

    def deserialize(self, data):
        return None


@pytest.fixture
def database_name():
    return f"test-events-{uuid.uuid4().hex[:8]}"


@pytest.mark.asyncio
async def test_provision_and_register(database_name):
    registry = ServiceRegistry()
    host = HostSettings(name="LiveTest", registry=registry)

    await configure_event_store(
        host,
        lambda s: s.apply_env().set_database_name(database_name).enable_provisioning(),
        serializer=NullSerializer(),
    )

    store = registry.resolve(CosmosEventStore, "LiveTest")
    try:
        properties = await store.container.read()
        assert properties["partitionKey"]["paths"] == ["/i"]

        # Second run against existing storage is a no-op
        await ensure_storage(store.client, database_name, store.collection_name, 2500)
    finally:
        await store.client.delete_database(database_name)
        await store.client.close()
