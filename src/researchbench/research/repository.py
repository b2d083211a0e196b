import uuid
from typing import Optional, Protocol, runtime_checkable

from researchbench.research.model import Research


@runtime_checkable
class ResearchRepository(Protocol):
    """
    Data access capability for Research records.

    Implementations:
    - MongoResearchRepository: one document per record in a collection.
    - RedisResearchRepository: one hash per record plus an index set.

    Backend errors propagate to the caller unchanged. Nothing here retries.
    """

    def save(self, research: Research) -> Research:
        """Insert or replace the record with this id. Returns the record."""
        ...

    def find_by_id(self, research_id: uuid.UUID) -> Optional[Research]:
        """Get a record by id, or None if it is not stored."""
        ...

    def delete_all(self) -> None:
        """Remove every Research record from the backing store."""
        ...

    def count(self) -> int:
        """Number of stored records."""
        ...
