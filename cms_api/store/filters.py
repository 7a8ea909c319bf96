"""
Filter and sort evaluation for the document store.

Filters use a small subset of the MongoDB query language:

    {"status": "published"}                       equality (membership for list fields)
    {"tags": {"$in": ["python", "news"]}}         any overlap
    {"expired_at": {"$gt": now}}                  comparison
    {"title": {"$regex": "cms", "$options": "i"}} pattern search
    {"$or": [{...}, {...}]}                       disjunction

Every top-level key must hold for a document to match.
"""
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

Document = Dict[str, Any]
Filter = Dict[str, Any]
Sort = Sequence[Tuple[str, int]]

_MISSING = object()


class FilterError(ValueError):
    """Raised for operators the store does not understand."""


def matches(document: Document, query: Optional[Filter]) -> bool:
    """Return True if ``document`` satisfies every clause of ``query``."""
    if not query:
        return True

    for key, condition in query.items():
        if key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif key == "$and":
            if not all(matches(document, sub) for sub in condition):
                return False
        elif key.startswith("$"):
            raise FilterError(f"unsupported top-level operator: {key}")
        elif not _field_matches(document.get(key, _MISSING), condition):
            return False
    return True


def _field_matches(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
        return all(
            _apply_operator(value, op, operand, condition)
            for op, operand in condition.items()
            if op != "$options"
        )
    return _equals(value, condition)


def _equals(value: Any, expected: Any) -> bool:
    if value is _MISSING:
        return expected is None
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return value == expected


def _apply_operator(value: Any, op: str, operand: Any, condition: Dict[str, Any]) -> bool:
    if op == "$exists":
        present = value is not _MISSING
        return present if operand else not present
    if op == "$ne":
        return not _equals(value, operand)
    if op == "$in":
        return any(_equals(value, candidate) for candidate in operand)
    if op == "$nin":
        return not any(_equals(value, candidate) for candidate in operand)
    if op == "$regex":
        flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
        pattern = re.compile(operand, flags)
        return any(isinstance(v, str) and pattern.search(v) for v in _as_list(value))
    if op in ("$gt", "$gte", "$lt", "$lte"):
        if value is _MISSING or value is None or operand is None:
            return False
        try:
            if op == "$gt":
                return value > operand
            if op == "$gte":
                return value >= operand
            if op == "$lt":
                return value < operand
            return value <= operand
        except TypeError:
            return False
    raise FilterError(f"unsupported operator: {op}")


def _as_list(value: Any) -> List[Any]:
    if value is _MISSING or value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def sort_documents(documents: Iterable[Document], sort: Optional[Sort]) -> List[Document]:
    """Sort by several ``(field, 1 | -1)`` keys.

    Missing and None values sort first ascending and last descending.
    """
    ordered = list(documents)
    for field, direction in reversed(list(sort or [])):
        ordered.sort(key=lambda doc: _sort_key(doc.get(field)), reverse=direction < 0)
    return ordered


def _sort_key(value: Any) -> Tuple[int, Any]:
    if value is None:
        return (0, 0)
    return (1, value)


def page(documents: List[Document], skip: int = 0, limit: Optional[int] = None) -> List[Document]:
    start = max(skip, 0)
    if limit is None:
        return documents[start:]
    return documents[start:start + max(limit, 0)]
