from .document import DocumentKey, StoredDocument

__all__ = [
    "DocumentKey",
    "StoredDocument",
]
