from .base import DocumentStore, DuplicateKeyError, StoreError
from .filters import FilterError
from .memory import InMemoryDocumentStore
from .sql import UNIQUE_FIELDS, SqlDocumentStore, get_store

__all__ = [
    "DocumentStore",
    "DuplicateKeyError",
    "StoreError",
    "FilterError",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
    "UNIQUE_FIELDS",
    "get_store",
]
