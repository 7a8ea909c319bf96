"""
Document store interface consumed by the CMS services.
"""
import re
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from .filters import Document, Filter, Sort


class StoreError(Exception):
    """Base store error."""


class DuplicateKeyError(StoreError):
    """Raised when a write would break a unique field."""

    def __init__(self, collection: str, field: str, value: Any):
        super().__init__(f"duplicate value for {collection}.{field}: {value!r}")
        self.collection = collection
        self.field = field
        self.value = value


class DocumentStore(ABC):
    """Collections of JSON-like documents keyed by an opaque string id.

    ``unique_fields`` maps a collection name to the fields whose values must
    be unique within it; string values are compared case-insensitively.
    """

    def __init__(self, unique_fields: Optional[Mapping[str, Sequence[str]]] = None):
        self.unique_fields = {name: tuple(fields) for name, fields in (unique_fields or {}).items()}

    @abstractmethod
    def find(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        *,
        sort: Optional[Sort] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Document]:
        ...

    @abstractmethod
    def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        ...

    @abstractmethod
    def insert(self, collection: str, document: Document) -> Document:
        """Insert a document, assigning ``id`` when it has none."""

    @abstractmethod
    def find_by_id(self, collection: str, id: str) -> Optional[Document]:
        ...

    @abstractmethod
    def update_by_id(self, collection: str, id: str, patch: Dict[str, Any]) -> Optional[Document]:
        """Apply a partial patch and return the updated document, or None if absent."""

    @abstractmethod
    def increment(
        self,
        collection: str,
        id: str,
        field: str,
        delta: int,
        *,
        floor: Optional[int] = None,
    ) -> Optional[Document]:
        """Atomically add ``delta`` to a numeric field, never going below ``floor``."""

    @abstractmethod
    def delete_by_id(self, collection: str, id: str) -> bool:
        ...

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator["DocumentStore"]:
        """Group writes so they are applied together or not at all."""

    def find_one(self, collection: str, filter: Filter) -> Optional[Document]:
        found = self.find(collection, filter, limit=1)
        return found[0] if found else None

    def _check_unique(self, collection: str, document: Document, exclude_id: Optional[str] = None) -> None:
        for field in self.unique_fields.get(collection, ()):
            value = document.get(field)
            if value is None:
                continue
            for other in self.find(collection, _unique_probe(field, value)):
                if other["id"] != exclude_id:
                    raise DuplicateKeyError(collection, field, value)


def _unique_probe(field: str, value: Any) -> Filter:
    if isinstance(value, str):
        return {field: {"$regex": f"^{re.escape(value)}$", "$options": "i"}}
    return {field: value}
