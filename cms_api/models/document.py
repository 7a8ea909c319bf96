"""
Storage rows for the SQL-backed document store.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, Index, UniqueConstraint
from datetime import datetime, timezone
from ..database import Base


class StoredDocument(Base):
    __tablename__ = "documents"

    collection = Column(String(64), primary_key=True)
    id = Column(String(32), primary_key=True)
    body = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (Index("ix_documents_collection", "collection"),)


class DocumentKey(Base):
    """One row per unique field value; the constraint is what makes it unique."""

    __tablename__ = "document_keys"

    id = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(64), nullable=False)
    field = Column(String(64), nullable=False)
    value = Column(String(320), nullable=False)  # lower-cased
    document_id = Column(String(32), nullable=False)

    __table_args__ = (
        UniqueConstraint("collection", "field", "value", name="uq_document_keys_value"),
        Index("ix_document_keys_document", "collection", "document_id"),
    )
