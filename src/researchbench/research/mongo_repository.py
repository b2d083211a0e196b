import logging
import uuid
from typing import Optional

from pymongo.collection import Collection

from researchbench import db
from researchbench.research.model import Research

logger = logging.getLogger(__name__)


class MongoResearchRepository:
    """
    Repository for Research records stored as MongoDB documents.
    Encapsulates all queries against the research collection.
    """

    def __init__(self, collection: Collection = None):
        self.collection = collection if collection is not None else db.get_collection()

    def save(self, research: Research) -> Research:
        """Upsert the record by id."""
        self.collection.replace_one({"_id": str(research.id)}, research.to_document(), upsert=True)
        return research

    def find_by_id(self, research_id: uuid.UUID) -> Optional[Research]:
        """Get a record by id."""
        document = self.collection.find_one({"_id": str(research_id)})
        return Research.from_document(document) if document else None

    def delete_all(self) -> None:
        """Delete every document in the collection."""
        result = self.collection.delete_many({})
        logger.info("Deleted %d research documents from %s", result.deleted_count, self.collection.name)

    def count(self) -> int:
        return self.collection.count_documents({})
