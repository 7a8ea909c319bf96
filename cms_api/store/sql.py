"""
Document store backed by a single SQLAlchemy table.

Each document is one row of ``documents`` keyed by (collection, id) with the
body held in a JSON column. Datetimes are tagged as ``{"$date": iso}`` so they
round-trip as timezone-aware values.

Unique fields are mirrored into ``document_keys``, whose unique constraint
holds even when two sessions pass the read-side check at the same time.
"""
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence
from uuid import uuid4

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..logging_config import db_logger
from ..models.document import DocumentKey, StoredDocument
from .base import DocumentStore, DuplicateKeyError
from .filters import Document, Filter, Sort, matches, page, sort_documents

# Unique fields per collection, enforced on every write
UNIQUE_FIELDS = {
    "posts": ("slug",),
    "categories": ("slug",),
    "placements": ("slug",),
    "users": ("email",),
}


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {"$date": value.isoformat()}
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_encode(item) for item in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {"$date"}:
            return datetime.fromisoformat(value["$date"])
        return {key: _decode(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_decode(item) for item in value]
    return value


def _key(value: Any) -> str:
    return value.lower() if isinstance(value, str) else str(value)


class SqlDocumentStore(DocumentStore):
    """Store bound to one SQLAlchemy session.

    Writes commit immediately unless they run inside ``transaction()``, in
    which case the outermost block commits or rolls back.
    """

    def __init__(self, session: Session, unique_fields: Optional[Mapping[str, Sequence[str]]] = None) -> None:
        super().__init__(unique_fields)
        self.session = session
        self._depth = 0

    def _rows(self, collection: str):
        return (
            self.session.query(StoredDocument)
            .filter(StoredDocument.collection == collection)
            .order_by(StoredDocument.created_at)
        )

    def _row(self, collection: str, id: str, lock: bool = False) -> Optional[StoredDocument]:
        query = self._rows(collection).filter(StoredDocument.id == id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def _write_done(self) -> None:
        if self._depth:
            self.session.flush()
            return
        try:
            self.session.commit()
        except Exception as exc:
            db_logger.error("Document store commit failed", error=exc)
            self.session.rollback()
            raise

    def find(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        *,
        sort: Optional[Sort] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Document]:
        if not filter and not sort:
            query = self._rows(collection).offset(skip)
            if limit is not None:
                query = query.limit(limit)
            return [_decode(row.body) for row in query]
        documents = (_decode(row.body) for row in self._rows(collection))
        found = [doc for doc in documents if matches(doc, filter)]
        return page(sort_documents(found, sort), skip, limit)

    def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        if not filter:
            return self._rows(collection).order_by(None).count()
        return sum(1 for row in self._rows(collection) if matches(_decode(row.body), filter))

    def insert(self, collection: str, document: Document) -> Document:
        stored = dict(document)
        stored.setdefault("id", uuid4().hex)
        self._check_unique(collection, stored)
        self.session.add(StoredDocument(collection=collection, id=stored["id"], body=_encode(stored)))
        for field, value in self._keys(collection, stored).items():
            self.session.add(DocumentKey(collection=collection, field=field, value=value, document_id=stored["id"]))
        self._flush_keys(collection, stored)
        self._write_done()
        return _decode(_encode(stored))

    def find_by_id(self, collection: str, id: str) -> Optional[Document]:
        row = self._row(collection, id)
        return _decode(row.body) if row is not None else None

    def update_by_id(self, collection: str, id: str, patch: Dict[str, Any]) -> Optional[Document]:
        row = self._row(collection, id, lock=True)
        if row is None:
            return None
        current = _decode(row.body)
        updated = {**current, **patch, "id": id}
        self._check_unique(collection, updated, exclude_id=id)
        old_keys = self._keys(collection, current)
        for field, value in self._keys(collection, updated).items():
            if old_keys.pop(field, None) == value:
                continue
            self._key_rows(collection, id, field).delete(synchronize_session=False)
            self.session.add(DocumentKey(collection=collection, field=field, value=value, document_id=id))
        for field in old_keys:
            self._key_rows(collection, id, field).delete(synchronize_session=False)
        # Assign a new object so the JSON column is marked dirty
        row.body = _encode(updated)
        self._flush_keys(collection, updated, exclude_id=id)
        self._write_done()
        return _decode(row.body)

    def increment(
        self,
        collection: str,
        id: str,
        field: str,
        delta: int,
        *,
        floor: Optional[int] = None,
    ) -> Optional[Document]:
        row = self._row(collection, id, lock=True)
        if row is None:
            return None
        body = _decode(row.body)
        value = (body.get(field) or 0) + delta
        if floor is not None:
            value = max(value, floor)
        body[field] = value
        row.body = _encode(body)
        self._write_done()
        return body

    def delete_by_id(self, collection: str, id: str) -> bool:
        row = self._row(collection, id, lock=True)
        if row is None:
            return False
        self.session.delete(row)
        self._key_rows(collection, id).delete(synchronize_session=False)
        self._write_done()
        return True

    def _keys(self, collection: str, document: Document) -> Dict[str, str]:
        return {
            field: _key(document[field])
            for field in self.unique_fields.get(collection, ())
            if document.get(field) is not None
        }

    def _key_rows(self, collection: str, document_id: str, field: Optional[str] = None):
        query = self.session.query(DocumentKey).filter(
            DocumentKey.collection == collection,
            DocumentKey.document_id == document_id,
        )
        if field is not None:
            query = query.filter(DocumentKey.field == field)
        return query

    def _flush_keys(self, collection: str, document: Document, exclude_id: Optional[str] = None) -> None:
        """Flush pending key rows, turning a constraint violation into DuplicateKeyError.

        A violation here means a concurrent writer committed the same value
        after the read-side check passed.
        """
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            db_logger.warning("Unique key violation on flush", collection=collection, id=document.get("id"))
            self._check_unique(collection, document, exclude_id=exclude_id)
            fields = [f for f in self.unique_fields.get(collection, ()) if document.get(f) is not None]
            field = fields[0] if fields else "id"
            raise DuplicateKeyError(collection, field, document.get(field)) from exc

    @contextmanager
    def transaction(self) -> Iterator["SqlDocumentStore"]:
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if not self._depth:
                self.session.rollback()
            raise
        self._depth -= 1
        if not self._depth:
            self._write_done()


def get_store(db: Session = Depends(get_db)) -> SqlDocumentStore:
    """Request-scoped document store on top of the request's session."""
    return SqlDocumentStore(db, unique_fields=UNIQUE_FIELDS)
