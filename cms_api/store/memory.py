"""
In-process document store, used by tests and single-process tooling.
"""
import copy
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence
from uuid import uuid4

from .base import DocumentStore
from .filters import Document, Filter, Sort, matches, page, sort_documents


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store; documents are deep-copied in and out."""

    def __init__(self, unique_fields: Optional[Mapping[str, Sequence[str]]] = None) -> None:
        super().__init__(unique_fields)
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = threading.RLock()

    def _collection(self, name: str) -> Dict[str, Document]:
        return self._collections.setdefault(name, {})

    def find(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        *,
        sort: Optional[Sort] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Document]:
        with self._lock:
            found = [doc for doc in self._collection(collection).values() if matches(doc, filter)]
            return copy.deepcopy(page(sort_documents(found, sort), skip, limit))

    def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        with self._lock:
            return sum(1 for doc in self._collection(collection).values() if matches(doc, filter))

    def insert(self, collection: str, document: Document) -> Document:
        with self._lock:
            stored = copy.deepcopy(document)
            stored.setdefault("id", uuid4().hex)
            self._check_unique(collection, stored)
            self._collection(collection)[stored["id"]] = stored
            return copy.deepcopy(stored)

    def find_by_id(self, collection: str, id: str) -> Optional[Document]:
        with self._lock:
            found = self._collection(collection).get(id)
            return copy.deepcopy(found) if found is not None else None

    def update_by_id(self, collection: str, id: str, patch: Dict[str, Any]) -> Optional[Document]:
        with self._lock:
            current = self._collection(collection).get(id)
            if current is None:
                return None
            updated = {**current, **copy.deepcopy(patch), "id": id}
            self._check_unique(collection, updated, exclude_id=id)
            self._collection(collection)[id] = updated
            return copy.deepcopy(updated)

    def increment(
        self,
        collection: str,
        id: str,
        field: str,
        delta: int,
        *,
        floor: Optional[int] = None,
    ) -> Optional[Document]:
        with self._lock:
            current = self._collection(collection).get(id)
            if current is None:
                return None
            value = (current.get(field) or 0) + delta
            if floor is not None:
                value = max(value, floor)
            current[field] = value
            return copy.deepcopy(current)

    def delete_by_id(self, collection: str, id: str) -> bool:
        with self._lock:
            return self._collection(collection).pop(id, None) is not None

    @contextmanager
    def transaction(self) -> Iterator["InMemoryDocumentStore"]:
        with self._lock:
            snapshot = copy.deepcopy(self._collections)
            try:
                yield self
            except BaseException:
                self._collections = snapshot
                raise
