import logging
import uuid
from typing import Optional

from redis import Redis

from researchbench import db
from researchbench.research.model import Research

logger = logging.getLogger(__name__)


def _decode(value) -> str:
    """Clients without decode_responses return bytes."""
    return value.decode() if isinstance(value, bytes) else str(value)


class RedisResearchRepository:
    """
    Repository for Research records stored as Redis hashes.

    Layout:
        Research:<id>   hash with the record's fields
        Research        set of every stored id
    """

    KEYSPACE = "Research"

    def __init__(self, client: Redis = None, keyspace: str = KEYSPACE):
        self.client = client if client is not None else db.get_redis()
        self.keyspace = keyspace

    def _key(self, research_id) -> str:
        return f"{self.keyspace}:{_decode(research_id)}"

    def save(self, research: Research) -> Research:
        """Write the record's hash and index its id in one transaction."""
        key = self._key(research.id)
        with self.client.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            pipe.hset(key, mapping=research.to_hash())
            pipe.sadd(self.keyspace, str(research.id))
            pipe.execute()
        return research

    def find_by_id(self, research_id: uuid.UUID) -> Optional[Research]:
        """Get a record by id."""
        mapping = self.client.hgetall(self._key(research_id))
        if not mapping:
            return None
        return Research.from_hash({_decode(k): _decode(v) for k, v in mapping.items()})

    def delete_all(self) -> None:
        """Delete every indexed hash and the index set."""
        ids = self.client.smembers(self.keyspace)
        with self.client.pipeline(transaction=True) as pipe:
            for research_id in ids:
                pipe.delete(self._key(research_id))
            pipe.delete(self.keyspace)
            pipe.execute()
        logger.info("Deleted %d research hashes under %s", len(ids), self.keyspace)

    def count(self) -> int:
        return self.client.scard(self.keyspace)
