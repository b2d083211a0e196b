"""
Research

This package provides the Research record and its repositories for the
MongoDB and Redis backends.
"""

from researchbench.research.model import Research
from researchbench.research.mongo_repository import MongoResearchRepository
from researchbench.research.redis_repository import RedisResearchRepository
from researchbench.research.repository import ResearchRepository

BACKENDS = {
    "mongo": MongoResearchRepository,
    "redis": RedisResearchRepository,
}

__all__ = [
    "BACKENDS",
    "MongoResearchRepository",
    "RedisResearchRepository",
    "Research",
    "ResearchRepository",
]
