"""
Posts routes: CRUD, listing views and view counting.
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from ..auth import get_required_principal
from ..config import get_settings
from ..dependencies import get_post_engine
from ..errors import AuthorizationError
from ..responses import created, deleted, paginated, retrieved, updated
from ..schemas.posts import PostCreate, PostStatus, PostUpdate
from ..services.authorization import (
    Action,
    Principal,
    authorize,
    authorize_post_edit,
    is_allowed,
)
from ..services.posts import PostLifecycleEngine
from ..services.query import PostListQuery

settings = get_settings()

router = APIRouter(prefix="/api/posts", tags=["posts"])


def list_query(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    status: Optional[PostStatus] = None,
    author: Optional[str] = None,
    search: Optional[str] = None,
    tags: Optional[List[str]] = Query(default=None),
) -> PostListQuery:
    """Shared query parameters of the post list views."""
    tag_set = set()
    for value in tags or []:
        tag_set.update(tag.strip() for tag in value.split(",") if tag.strip())
    return PostListQuery(
        page=page,
        page_size=limit,
        status=status.value if status else None,
        author_id=author,
        search=search,
        tags=frozenset(tag_set),
    )


@router.get("")
def list_posts(
    query: PostListQuery = Depends(list_query),
    engine: PostLifecycleEngine = Depends(get_post_engine),
):
    """List posts, newest first, with optional filters."""
    return paginated(engine.populate_page(engine.list(query)))


@router.get("/filter")
def filter_published_posts(
    category_name: Optional[str] = Query(default=None, alias="categoryName"),
    placement_name: Optional[str] = Query(default=None, alias="placementName"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    engine: PostLifecycleEngine = Depends(get_post_engine),
):
    """Published, unexpired posts for a category and/or placement name."""
    result = engine.list_published(category_name, placement_name, page=page, page_size=limit)
    return paginated(engine.populate_page(result))


@router.get("/author/{author_id}")
def list_posts_by_author(
    author_id: str,
    query: PostListQuery = Depends(list_query),
    engine: PostLifecycleEngine = Depends(get_post_engine),
):
    return paginated(engine.populate_page(engine.list_by_author(author_id, query)))


@router.get("/tag/{tag}")
def list_posts_by_tag(
    tag: str,
    query: PostListQuery = Depends(list_query),
    engine: PostLifecycleEngine = Depends(get_post_engine),
):
    return paginated(engine.populate_page(engine.list_by_tag(tag, query)))


@router.get("/slug/{slug}")
def get_post_by_slug(slug: str, engine: PostLifecycleEngine = Depends(get_post_engine)):
    return retrieved(engine.populate(engine.get_by_slug(slug)))


@router.get("/{post_id}")
def get_post(post_id: str, engine: PostLifecycleEngine = Depends(get_post_engine)):
    return retrieved(engine.populate(engine.get(post_id)))


@router.post("", status_code=201)
def create_post(
    post_data: PostCreate,
    principal: Principal = Depends(get_required_principal),
    engine: PostLifecycleEngine = Depends(get_post_engine),
):
    """Create a post owned by the caller, or by another author for editors and admins."""
    authorize(principal, Action.CREATE_POST)
    author_id = post_data.author_id or principal.id
    if author_id != principal.id and not is_allowed(principal.role, Action.EDIT_ANY_POST):
        raise AuthorizationError("Only editors and admins can create posts for other authors")
    post = engine.create(post_data, author_id)
    return created(engine.populate(post))


@router.patch("/{post_id}/view")
def increment_view_count(post_id: str, engine: PostLifecycleEngine = Depends(get_post_engine)):
    """Count one view; public, no deduplication."""
    return updated(engine.populate(engine.increment_view_count(post_id)))


@router.patch("/{post_id}")
def update_post(
    post_id: str,
    post_update: PostUpdate,
    principal: Principal = Depends(get_required_principal),
    engine: PostLifecycleEngine = Depends(get_post_engine),
):
    """Partially update a post (own post for authors, any post for editors and admins)."""
    existing = engine.get(post_id)
    authorize_post_edit(principal, existing.get("author_id"))
    if "author_id" in post_update.model_fields_set and post_update.author_id != existing.get("author_id"):
        authorize(principal, Action.EDIT_ANY_POST)
    return updated(engine.populate(engine.update(post_id, post_update)))


@router.delete("/{post_id}")
def delete_post(
    post_id: str,
    principal: Principal = Depends(get_required_principal),
    engine: PostLifecycleEngine = Depends(get_post_engine),
):
    authorize(principal, Action.DELETE_POST)
    engine.remove(post_id)
    return deleted()
