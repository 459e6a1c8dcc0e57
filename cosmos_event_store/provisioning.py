"""
Provisioning of the event store database and collection.

Both steps use create-if-not-exists, so running provisioning again on a
fully or partly provisioned account is safe. An existing collection is
never altered: its throughput is left as it is, and a partition key that
differs from PARTITION_KEY_PATH is only reported.
"""

from __future__ import annotations

import asyncio
import logging

from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, CosmosClient
from azure.cosmos.exceptions import CosmosHttpResponseError

from .exceptions import ProvisioningError
from .store import PARTITION_KEY_PATH

logger = logging.getLogger(__name__)


async def ensure_storage(
    client: CosmosClient,
    database_name: str,
    collection_name: str,
    throughput: int,
    timeout: float | None = None,
) -> ContainerProxy:
    """Ensure the database and the partitioned event store collection exist.

    Args:
        client: Async Cosmos client
        database_name: Database id
        collection_name: Collection (container) id
        throughput: RU/s applied only when the collection is created
        timeout: Optional upper bound in seconds for the whole step

    Returns:
        Proxy for the ensured collection

    Raises:
        ProvisioningError: On any remote failure or timeout. Nothing is retried.
    """
    deadline = asyncio.timeout(timeout)
    try:
        async with deadline:
            return await _ensure_storage(client, database_name, collection_name, throughput)
    except CosmosHttpResponseError as e:
        raise ProvisioningError(database_name, collection_name, e.status_code, e) from e
    except TimeoutError as e:
        cause = TimeoutError(f"timed out after {timeout}s") if deadline.expired() else e
        raise ProvisioningError(database_name, collection_name, cause=cause) from e
    except Exception as e:
        raise ProvisioningError(database_name, collection_name, cause=e) from e


async def _ensure_storage(
    client: CosmosClient,
    database_name: str,
    collection_name: str,
    throughput: int,
) -> ContainerProxy:
    logger.info("Ensuring database exists", extra={"database": database_name})
    database = await client.create_database_if_not_exists(id=database_name)

    logger.info(
        "Ensuring collection exists",
        extra={
            "database": database_name,
            "collection": collection_name,
            "partition_key": PARTITION_KEY_PATH,
            "throughput": throughput,
        },
    )
    container = await database.create_container_if_not_exists(
        id=collection_name,
        partition_key=PartitionKey(path=PARTITION_KEY_PATH),
        offer_throughput=throughput,
    )

    await _check_partition_key(container, database_name, collection_name)
    return container


async def _check_partition_key(
    container: ContainerProxy, database_name: str, collection_name: str
) -> None:
    try:
        properties = await container.read()
    except CosmosHttpResponseError as e:
        logger.warning(
            "Could not read collection properties; partition key not checked",
            extra={
                "database": database_name,
                "collection": collection_name,
                "status_code": e.status_code,
            },
        )
        return

    paths = (properties.get("partitionKey") or {}).get("paths") or []
    if paths != [PARTITION_KEY_PATH]:
        # Pre-existing collection with another layout; needs a migration, not a fix here
        logger.warning(
            "Existing collection has an unexpected partition key",
            extra={
                "database": database_name,
                "collection": collection_name,
                "expected_partition_key": PARTITION_KEY_PATH,
                "actual_partition_key": paths,
            },
        )
