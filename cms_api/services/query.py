"""
List query builder: filters, sort orders and the paged envelope.
"""
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..errors import ValidationError
from ..store import DocumentStore

# Newest first; the default for admin list views
SORT_RECENT: Sequence[Tuple[str, int]] = (("created_at", -1),)
# Curated order for public placements
SORT_PUBLISHED: Sequence[Tuple[str, int]] = (("order_no", 1), ("published_at", -1))

POST_SEARCH_FIELDS = ("title", "content", "excerpt")
USER_SEARCH_FIELDS = ("email", "first_name", "last_name")


@dataclass
class PostListQuery:
    page: int = 1
    page_size: int = 10
    status: Optional[str] = None
    author_id: Optional[str] = None
    search: Optional[str] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)


@dataclass
class Page:
    """Paged result envelope."""

    items: List[Any]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)

    def map(self, func: Callable[[Any], Any]) -> "Page":
        return Page([func(item) for item in self.items], self.total, self.page, self.page_size)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": self.items,
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
        }


def search_clause(term: str, fields: Iterable[str]) -> Dict[str, Any]:
    """Case-insensitive literal substring match across ``fields``."""
    pattern = re.escape(term)
    return {"$or": [{name: {"$regex": pattern, "$options": "i"}} for name in fields]}


def build_post_filter(query: PostListQuery) -> Dict[str, Any]:
    clauses: Dict[str, Any] = {}
    if query.status:
        clauses["status"] = query.status
    if query.author_id:
        clauses["author_id"] = query.author_id
    if query.search and query.search.strip():
        clauses.update(search_clause(query.search.strip(), POST_SEARCH_FIELDS))
    if query.tags:
        clauses["tags"] = {"$in": sorted(query.tags)}
    return clauses


def published_filter(now: datetime) -> Dict[str, Any]:
    """Published posts whose expiry, if any, is still in the future."""
    return {
        "status": "published",
        "$or": [
            {"expired_at": {"$exists": False}},
            {"expired_at": None},
            {"expired_at": {"$gt": now}},
        ],
    }


def validate_paging(page: int, page_size: int) -> None:
    if page < 1:
        raise ValidationError("page must be >= 1", {"page": page})
    if page_size < 1:
        raise ValidationError("page_size must be >= 1", {"page_size": page_size})


def paginate(
    store: DocumentStore,
    collection: str,
    filter: Dict[str, Any],
    *,
    page: int,
    page_size: int,
    sort: Sequence[Tuple[str, int]] = SORT_RECENT,
) -> Page:
    validate_paging(page, page_size)
    total = store.count(collection, filter)
    items = store.find(collection, filter, sort=sort, skip=(page - 1) * page_size, limit=page_size)
    return Page(items=items, total=total, page=page, page_size=page_size)


def empty_page(page: int, page_size: int) -> Page:
    validate_paging(page, page_size)
    return Page(items=[], total=0, page=page, page_size=page_size)
