# src/researchbench/conftest.py
"""
Pytest configuration and shared fixtures.

Tests are co-located with implementation files using the *_test.py suffix.
This file provides fixtures available to all tests in the package.

The MongoDB and Redis backends are replaced by mongomock and fakeredis
through the db module's client overrides, so no servers are needed.
"""

import os

# Set environment BEFORE importing any app modules
os.environ["RESEARCHBENCH_ENV"] = "test"

import fakeredis
import mongomock
import pytest

from researchbench import db
from researchbench.benchmark import BenchmarkOptions
from researchbench.config import config
from researchbench.research import MongoResearchRepository, RedisResearchRepository, Research

# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def mongo_client():
    """
    Provide an in-memory Mongo client installed as the db override.

    The research database is dropped afterwards so tests don't affect
    each other.
    """
    client = mongomock.MongoClient()
    db.set_mongo_client_override(client)

    yield client

    client.drop_database(config.mongo_database)
    db.clear_mongo_client_override()
    client.close()


@pytest.fixture
def redis_client():
    """Provide an in-memory Redis client installed as the db override."""
    client = fakeredis.FakeRedis(decode_responses=True)
    # FakeRedis instances share one server per host/port
    client.flushall()
    db.set_redis_override(client)

    yield client

    client.flushall()
    db.clear_redis_override()


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
def mongo_repo(mongo_client) -> MongoResearchRepository:
    """Provide a MongoResearchRepository on the in-memory client."""
    return MongoResearchRepository()


@pytest.fixture
def redis_repo(redis_client) -> RedisResearchRepository:
    """Provide a RedisResearchRepository on the in-memory client."""
    return RedisResearchRepository()


@pytest.fixture(params=["mongo", "redis"])
def repository(request):
    """Run the requesting test once per backend."""
    return request.getfixturevalue(f"{request.param}_repo")


# =============================================================================
# Seed Data Fixtures
# =============================================================================


@pytest.fixture
def sample_research(repository) -> Research:
    """Persist the record the benchmark harness seeds."""
    return repository.save(Research("Very Cool Research", 20000))


@pytest.fixture
def sample_researches(repository) -> list[Research]:
    """Persist several records."""
    records = [
        Research("Short Paper", 1200),
        Research("Thesis", 80000),
        Research("Empty Draft", 0),
    ]
    return [repository.save(r) for r in records]


# =============================================================================
# Benchmark Fixtures
# =============================================================================


@pytest.fixture
def quick_options() -> BenchmarkOptions:
    """Options that shrink every benchmark to a couple of 1 ms iterations."""
    return BenchmarkOptions(warmup_iterations=1, measurement_iterations=2, iteration_time_ms=1)
