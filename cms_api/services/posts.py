"""
Post lifecycle engine.

Owns post documents and keeps three things consistent on every create,
update and delete:

* the publication state (``status`` plus the ``published_at`` stamp),
* the post's references to a category and a placement,
* the ``post_count`` aggregate held by those two registries.

The post write and its count deltas run inside one store transaction. Count
anomalies (a missing target, a counter already at zero) are logged by the
registries and never fail the request; ``reconcile_counts`` repairs drift.
"""
from typing import Any, Dict, List, Optional

from ..errors import ConflictError, NotFoundError, ValidationError
from ..logging_config import posts_logger, timed
from ..schemas.posts import PostCreate, PostResponse, PostStatus, PostUpdate
from ..schemas.refs import Reference, Resolved
from ..store import DocumentStore, DuplicateKeyError
from .clock import Clock, as_utc, utcnow
from .query import SORT_PUBLISHED, Page, PostListQuery, build_post_filter, empty_page, paginate, published_filter
from .registries import POSTS_COLLECTION, CategoryRegistry, PlacementRegistry
from .users import USERS_COLLECTION

# Stored transitions; "expired" is derived from expired_at and never stored
STATUS_TRANSITIONS = {
    PostStatus.DRAFT: {PostStatus.PUBLISHED, PostStatus.ARCHIVED},
    PostStatus.PUBLISHED: {PostStatus.ARCHIVED},
    PostStatus.ARCHIVED: set(),
}

AUTHOR_SUMMARY = ("first_name", "last_name", "email")
CATEGORY_SUMMARY = ("name", "slug", "color")
PLACEMENT_SUMMARY = ("name", "slug", "sub_category", "color")


def _unique_tags(tags: Optional[List[str]]) -> List[str]:
    seen = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class PostLifecycleEngine:
    def __init__(
        self,
        store: DocumentStore,
        categories: CategoryRegistry,
        placements: PlacementRegistry,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.categories = categories
        self.placements = placements
        self.clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, id: str) -> Dict[str, Any]:
        post = self.store.find_by_id(POSTS_COLLECTION, id)
        if post is None:
            raise NotFoundError.for_resource("Post", "ID", id)
        return post

    def get_by_slug(self, slug: str) -> Dict[str, Any]:
        post = self.store.find_one(POSTS_COLLECTION, {"slug": slug})
        if post is None:
            raise NotFoundError.for_resource("Post", "slug", slug)
        return post

    def list(self, query: PostListQuery) -> Page:
        return paginate(
            self.store,
            POSTS_COLLECTION,
            build_post_filter(query),
            page=query.page,
            page_size=query.page_size,
        )

    def list_by_author(self, author_id: str, query: PostListQuery) -> Page:
        query.author_id = author_id
        return self.list(query)

    def list_by_tag(self, tag: str, query: PostListQuery) -> Page:
        query.tags = frozenset({tag})
        return self.list(query)

    def list_published(
        self,
        category_name: Optional[str] = None,
        placement_name: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Page:
        """Published, unexpired posts, optionally narrowed by category/placement name.

        An unknown name yields an empty page rather than an error.
        """
        filter = published_filter(self.clock())
        if category_name:
            category = self.categories.find_by_name(category_name)
            if category is None:
                return empty_page(page, page_size)
            filter["category_id"] = category["id"]
        if placement_name:
            placement = self.placements.find_by_name(placement_name)
            if placement is None:
                return empty_page(page, page_size)
            filter["placement_id"] = placement["id"]
        return paginate(self.store, POSTS_COLLECTION, filter, page=page, page_size=page_size, sort=SORT_PUBLISHED)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, data: PostCreate, author_id: Optional[str]) -> Dict[str, Any]:
        if not author_id:
            raise ValidationError("Author ID is required", {"field": "author_id"})
        if data.status == PostStatus.EXPIRED:
            raise ValidationError("Posts cannot be created as expired; set expired_at instead", {"field": "status"})
        self._ensure_slug_free(data.slug)
        self._ensure_resolves(self.categories, data.category_id, "category_id")
        self._ensure_resolves(self.placements, data.placement_id, "placement_id")
        # An author named in the payload must be a real user
        if data.author_id is not None:
            self._ensure_author(data.author_id)

        now = self.clock()
        document = data.model_dump(exclude={"author_id", "status", "published_at", "expired_at", "tags"})
        document.update(
            author_id=author_id,
            status=data.status.value,
            tags=_unique_tags(data.tags),
            view_count=0,
            published_at=as_utc(data.published_at),
            expired_at=as_utc(data.expired_at),
            created_at=now,
            updated_at=now,
        )
        if data.status == PostStatus.PUBLISHED and document["published_at"] is None:
            document["published_at"] = now

        with self.store.transaction():
            post = self._insert(document)
            self.categories.increment_post_count(post["category_id"])
            self.placements.increment_post_count(post["placement_id"])

        posts_logger.info("Post created", id=post["id"], slug=post["slug"], status=post["status"], author_id=author_id)
        return post

    def update(self, id: str, patch: PostUpdate) -> Dict[str, Any]:
        existing = self.get(id)
        changes = patch.model_dump(exclude_unset=True)

        # Clearing a required field is not a partial update
        for required in ("title", "slug", "status", "category_id", "placement_id", "author_id", "order_no"):
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} cannot be null", {"field": required})

        if "slug" in changes and changes["slug"] != existing["slug"]:
            self._ensure_slug_free(changes["slug"])
        category_moved = "category_id" in changes and changes["category_id"] != existing["category_id"]
        placement_moved = "placement_id" in changes and changes["placement_id"] != existing["placement_id"]
        if category_moved:
            self._ensure_resolves(self.categories, changes["category_id"], "category_id")
        if placement_moved:
            self._ensure_resolves(self.placements, changes["placement_id"], "placement_id")
        if "author_id" in changes and changes["author_id"] != existing.get("author_id"):
            self._ensure_author(changes["author_id"])

        if "tags" in changes:
            changes["tags"] = _unique_tags(changes["tags"])
        for stamp in ("published_at", "expired_at"):
            if stamp in changes:
                changes[stamp] = as_utc(changes[stamp])
        # published_at is never cleared once set
        if "published_at" in changes and changes["published_at"] is None and existing.get("published_at"):
            del changes["published_at"]

        if "status" in changes:
            target = PostStatus(changes["status"])
            self._check_transition(PostStatus(existing["status"]), target)
            changes["status"] = target.value
            if target == PostStatus.PUBLISHED and not changes.get("published_at") and not existing.get("published_at"):
                changes["published_at"] = self.clock()

        changes["updated_at"] = self.clock()

        with self.store.transaction():
            try:
                updated = self.store.update_by_id(POSTS_COLLECTION, id, changes)
            except DuplicateKeyError as exc:
                raise ValidationError("Post with this slug already exists", {"slug": exc.value}) from exc
            if updated is None:
                raise NotFoundError.for_resource("Post", "ID", id)
            # Deltas come from the pre-update snapshot
            if category_moved:
                self.categories.decrement_post_count(existing["category_id"])
                self.categories.increment_post_count(changes["category_id"])
            if placement_moved:
                self.placements.decrement_post_count(existing["placement_id"])
                self.placements.increment_post_count(changes["placement_id"])

        posts_logger.info(
            "Post updated",
            id=id,
            fields=sorted(k for k in changes if k != "updated_at"),
            category_moved=category_moved,
            placement_moved=placement_moved,
        )
        return updated

    def remove(self, id: str) -> None:
        post = self.get(id)
        with self.store.transaction():
            if not self.store.delete_by_id(POSTS_COLLECTION, id):
                raise NotFoundError.for_resource("Post", "ID", id)
            self.categories.decrement_post_count(post["category_id"])
            self.placements.decrement_post_count(post["placement_id"])
        posts_logger.info("Post deleted", id=id, slug=post["slug"])

    def increment_view_count(self, id: str) -> Dict[str, Any]:
        updated = self.store.increment(POSTS_COLLECTION, id, "view_count", 1)
        if updated is None:
            raise NotFoundError.for_resource("Post", "ID", id)
        return updated

    @timed(posts_logger, level="info")
    def reconcile_counts(self) -> Dict[str, List[Dict[str, Any]]]:
        """Recompute category and placement post counts from the posts collection."""
        with self.store.transaction():
            report = {
                "categories": self.categories.recount(),
                "placements": self.placements.recount(),
            }
        if report["categories"] or report["placements"]:
            posts_logger.warning(
                "Post counts reconciled",
                categories_fixed=len(report["categories"]),
                placements_fixed=len(report["placements"]),
            )
        return report

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def populate(self, post: Dict[str, Any], cache: Optional[Dict[Any, Any]] = None) -> PostResponse:
        """Build the response with author, category and placement resolved where possible."""
        cache = {} if cache is None else cache
        return PostResponse(
            **{k: v for k, v in post.items() if k not in ("author_id", "category_id", "placement_id")},
            author=self._relation(USERS_COLLECTION, post.get("author_id"), AUTHOR_SUMMARY, cache),
            category=self._relation(self.categories.collection, post.get("category_id"), CATEGORY_SUMMARY, cache),
            placement=self._relation(self.placements.collection, post.get("placement_id"), PLACEMENT_SUMMARY, cache),
        )

    def populate_page(self, page: Page) -> Page:
        cache: Dict[Any, Any] = {}
        return page.map(lambda post: self.populate(post, cache))

    def _relation(self, collection: str, id: Optional[str], fields, cache: Dict[Any, Any]):
        key = (collection, id)
        if key not in cache:
            cache[key] = self.store.find_by_id(collection, id) if id else None
        entity = cache[key]
        if entity is None:
            return Reference(id=id or "")
        return Resolved(id=id, entity={name: entity.get(name) for name in fields})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return self.store.insert(POSTS_COLLECTION, document)
        except DuplicateKeyError as exc:
            raise ValidationError("Post with this slug already exists", {"slug": exc.value}) from exc

    def _ensure_slug_free(self, slug: str) -> None:
        if self.store.find_one(POSTS_COLLECTION, {"slug": slug}) is not None:
            raise ValidationError("Post with this slug already exists", {"slug": slug})

    @staticmethod
    def _ensure_resolves(registry, id: Optional[str], field: str) -> None:
        if not registry.exists(id):
            raise ValidationError(f"{registry.label} {id} does not exist", {"field": field, "id": id})

    def _ensure_author(self, author_id: str) -> None:
        if self.store.find_by_id(USERS_COLLECTION, author_id) is None:
            raise ValidationError(f"User {author_id} does not exist", {"field": "author_id", "id": author_id})

    @staticmethod
    def _check_transition(current: PostStatus, target: PostStatus) -> None:
        if target == PostStatus.EXPIRED:
            raise ValidationError("Expiry is controlled by expired_at, not status", {"field": "status"})
        if target == current:
            return
        if target not in STATUS_TRANSITIONS.get(current, set()):
            raise ConflictError(
                f"Cannot move a post from {current.value} to {target.value}",
                {"from": current.value, "to": target.value},
            )
