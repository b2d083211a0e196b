import uuid
from datetime import datetime
from typing import Any, Mapping


class Research:
    """
    A research record: generated identifier, two business fields and a
    creation timestamp.

    `id` and `created_at` are fixed at construction. `name` and
    `word_length` are plain mutable attributes and are not validated.
    Two records are equal when their ids are equal.
    """

    __slots__ = ("_id", "_created_at", "name", "word_length")

    def __init__(self, name: str, word_length: int):
        self._id = uuid.uuid4()
        self._created_at = datetime.now()
        self.name = name
        self.word_length = word_length

    @property
    def id(self) -> uuid.UUID:
        return self._id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Research):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return (
            f"Research(id={self._id}, name={self.name!r}, "
            f"word_length={self.word_length}, created_at={self._created_at.isoformat()})"
        )

    @classmethod
    def _restore(cls, id: uuid.UUID, name: str, word_length: int, created_at: datetime) -> "Research":
        """Rebuild a stored record without generating a new id or timestamp."""
        research = cls.__new__(cls)
        research._id = id
        research._created_at = created_at
        research.name = name
        research.word_length = word_length
        return research

    # Mongo documents

    def to_document(self) -> dict[str, Any]:
        """Mongo document for this record, keyed by the id's string form."""
        return {
            "_id": str(self._id),
            "name": self.name,
            "word_length": self.word_length,
            "created_at": self._created_at,
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Research":
        return cls._restore(
            id=uuid.UUID(document["_id"]),
            name=document["name"],
            word_length=int(document["word_length"]),
            created_at=document["created_at"],
        )

    # Redis hashes

    def to_hash(self) -> dict[str, str]:
        """Redis hash mapping for this record. Redis stores every field as a string."""
        return {
            "id": str(self._id),
            "name": self.name,
            "word_length": str(self.word_length),
            "created_at": self._created_at.isoformat(),
        }

    @classmethod
    def from_hash(cls, mapping: Mapping[str, str]) -> "Research":
        return cls._restore(
            id=uuid.UUID(mapping["id"]),
            name=mapping["name"],
            word_length=int(mapping["word_length"]),
            created_at=datetime.fromisoformat(mapping["created_at"]),
        )
