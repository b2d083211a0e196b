"""
Database client management for the MongoDB and Redis backends.

Provides one lazily created client per backend per process. pymongo and
redis-py both pool connections internally, so repositories share these
clients rather than opening their own.

For testing, use set_mongo_client_override() / set_redis_override() to
inject an in-memory client (mongomock, fakeredis) that will be used
instead of connecting to a real server.
"""

import logging

from pymongo import MongoClient
from pymongo.collection import Collection
from redis import Redis

from researchbench.config import config

logger = logging.getLogger(__name__)

# =============================================================================
# Client Overrides (for testing)
# =============================================================================

_mongo_client_override: MongoClient | None = None
_redis_override: Redis | None = None


def set_mongo_client_override(client: MongoClient) -> None:
    """
    Set a Mongo client to use instead of connecting to config.mongo_url.

    Args:
        client: Any object with the MongoClient interface, e.g. mongomock.MongoClient
    """
    global _mongo_client_override
    _mongo_client_override = client


def clear_mongo_client_override() -> None:
    """Clear the Mongo client override, restoring normal behavior."""
    global _mongo_client_override
    _mongo_client_override = None


def set_redis_override(client: Redis) -> None:
    """
    Set a Redis client to use instead of connecting to config.redis_url.

    Args:
        client: Any object with the Redis interface, e.g. fakeredis.FakeRedis
    """
    global _redis_override
    _redis_override = client


def clear_redis_override() -> None:
    """Clear the Redis client override, restoring normal behavior."""
    global _redis_override
    _redis_override = None


# =============================================================================
# Client Management
# =============================================================================

_mongo_client: MongoClient | None = None
_redis_client: Redis | None = None


def get_mongo_client() -> MongoClient:
    """
    Return the process-wide Mongo client.

    The client is created on first use. pymongo connects lazily, so
    connection errors surface on the first operation, not here.
    """
    global _mongo_client
    if _mongo_client_override is not None:
        return _mongo_client_override

    if _mongo_client is None:
        logger.debug("Creating Mongo client for %s", config.mongo_url)
        _mongo_client = MongoClient(config.mongo_url)
    return _mongo_client


def get_collection(name: str = None) -> Collection:
    """
    Return a collection in the configured database.

    Args:
        name: Collection name, defaults to config.mongo_collection
    """
    client = get_mongo_client()
    return client[config.mongo_database][name or config.mongo_collection]


def get_redis() -> Redis:
    """
    Return the process-wide Redis client.

    Responses are decoded to str so hashes read back as dict[str, str].
    """
    global _redis_client
    if _redis_override is not None:
        return _redis_override

    if _redis_client is None:
        logger.debug("Creating Redis client for %s", config.redis_url)
        _redis_client = Redis.from_url(config.redis_url, decode_responses=True)
    return _redis_client


def close_clients() -> None:
    """Close any clients created by this module. Overrides are left to their owners."""
    global _mongo_client, _redis_client
    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
