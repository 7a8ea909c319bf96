"""
Category and placement registries.

Both own a ``post_count`` aggregate that the post lifecycle engine keeps in
step with the posts collection. The counter is adjusted incrementally on each
post mutation; ``recount`` rebuilds it from the posts themselves.
"""
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from ..errors import ConflictError, NotFoundError, ValidationError
from ..logging_config import registry_logger
from ..store import DocumentStore, DuplicateKeyError
from .clock import Clock, utcnow

POSTS_COLLECTION = "posts"

DEFAULT_PLACEMENTS = [
    {"name": "Top Navigation", "slug": "top-navigation", "sub_category": "topnav",
     "description": "Posts displayed in the top navigation area", "color": "#3498db", "sort_order": 1},
    {"name": "Right Sidebar", "slug": "right-sidebar", "sub_category": "rightsidebar",
     "description": "Posts displayed in the right sidebar", "color": "#2ecc71", "sort_order": 2},
    {"name": "Left Sidebar", "slug": "left-sidebar", "sub_category": "leftsidebar",
     "description": "Posts displayed in the left sidebar", "color": "#f39c12", "sort_order": 3},
    {"name": "Bottom Section", "slug": "bottom-section", "sub_category": "bottom",
     "description": "Posts displayed in the bottom section", "color": "#e74c3c", "sort_order": 4},
    {"name": "Featured Content", "slug": "featured-content", "sub_category": "featured",
     "description": "Featured posts for special highlighting", "color": "#9b59b6", "sort_order": 5},
    {"name": "Header Banner", "slug": "header-banner", "sub_category": "header",
     "description": "Posts displayed in header banner area", "color": "#1abc9c", "sort_order": 6},
    {"name": "Footer Area", "slug": "footer-area", "sub_category": "footer",
     "description": "Posts displayed in footer area", "color": "#34495e", "sort_order": 7},
]


class Registry:
    """Shared behaviour of the category and placement registries."""

    collection: str = ""
    label: str = ""
    # Field on a post document that references this registry's entities
    reference_field: str = ""
    sort: Sequence[Tuple[str, int]] = (("name", 1),)
    # Fields a patch may change but never clear
    required_fields: Sequence[str] = ("name", "slug", "color", "is_active")

    def __init__(self, store: DocumentStore, clock: Clock = utcnow) -> None:
        self.store = store
        self.clock = clock
        self.log = registry_logger.bind(collection=self.collection)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(self, data: BaseModel) -> Dict[str, Any]:
        values = data.model_dump(mode="json")
        self._ensure_slug_free(values["slug"])
        now = self.clock()
        document = {**values, "post_count": 0, "created_at": now, "updated_at": now}
        try:
            created = self.store.insert(self.collection, document)
        except DuplicateKeyError as exc:
            raise ConflictError(f"{self.label} with slug '{values['slug']}' already exists", {"slug": values["slug"]}) from exc
        self.log.info(f"{self.label} created", id=created["id"], slug=created["slug"])
        return created

    def find_all(self, active_only: bool = False) -> List[Dict[str, Any]]:
        filter = {"is_active": True} if active_only else None
        return self.store.find(self.collection, filter, sort=self.sort)

    def find_by_id(self, id: str) -> Dict[str, Any]:
        found = self.store.find_by_id(self.collection, id)
        if found is None:
            raise NotFoundError.for_resource(self.label, "ID", id)
        return found

    def find_by_slug(self, slug: str) -> Dict[str, Any]:
        found = self.store.find_one(self.collection, {"slug": slug})
        if found is None:
            raise NotFoundError.for_resource(self.label, "slug", slug)
        return found

    def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive exact name lookup; None when nothing matches."""
        pattern = f"^{re.escape(name.strip())}$"
        return self.store.find_one(self.collection, {"name": {"$regex": pattern, "$options": "i"}})

    def exists(self, id: Optional[str]) -> bool:
        return bool(id) and self.store.find_by_id(self.collection, id) is not None

    def update(self, id: str, patch: BaseModel) -> Dict[str, Any]:
        self.find_by_id(id)
        changes = patch.model_dump(mode="json", exclude_unset=True)
        changes.pop("post_count", None)
        for required in self.required_fields:
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} cannot be null", {"field": required})
        if "slug" in changes:
            self._ensure_slug_free(changes["slug"], exclude_id=id)
        changes["updated_at"] = self.clock()
        try:
            updated = self.store.update_by_id(self.collection, id, changes)
        except DuplicateKeyError as exc:
            raise ConflictError(f"{self.label} with slug '{changes['slug']}' already exists", {"slug": changes["slug"]}) from exc
        if updated is None:
            raise NotFoundError.for_resource(self.label, "ID", id)
        return updated

    def remove(self, id: str) -> None:
        """Delete an entity that no post references any more."""
        entity = self.find_by_id(id)
        referencing = self.store.count(POSTS_COLLECTION, {self.reference_field: id})
        if entity.get("post_count", 0) > 0 or referencing > 0:
            raise ConflictError(
                f"Cannot delete {self.label.lower()} '{entity['name']}' while posts reference it",
                {"post_count": max(entity.get("post_count", 0), referencing)},
            )
        self.store.delete_by_id(self.collection, id)
        self.log.info(f"{self.label} deleted", id=id)

    # ------------------------------------------------------------------
    # Denormalized post counts
    # ------------------------------------------------------------------

    def increment_post_count(self, id: str) -> Optional[Dict[str, Any]]:
        updated = self.store.increment(self.collection, id, "post_count", 1)
        if updated is None:
            self.log.warning("post_count increment target missing", id=id)
        return updated

    def decrement_post_count(self, id: str) -> Optional[Dict[str, Any]]:
        """Decrement, clamped at zero.

        A counter that is already zero means it drifted earlier; that is
        logged for reconciliation rather than reported to the caller.
        """
        current = self.store.find_by_id(self.collection, id)
        if current is None:
            self.log.warning("post_count decrement target missing", id=id)
            return None
        if current.get("post_count", 0) <= 0:
            self.log.warning("post_count already zero; counter has drifted", id=id)
            return current
        return self.store.increment(self.collection, id, "post_count", -1, floor=0)

    def recount(self) -> List[Dict[str, Any]]:
        """Rebuild every ``post_count`` from the posts collection.

        Returns one entry per corrected entity.
        """
        corrections = []
        for entity in self.store.find(self.collection):
            actual = self.store.count(POSTS_COLLECTION, {self.reference_field: entity["id"]})
            stored = entity.get("post_count", 0)
            if stored == actual:
                continue
            self.store.update_by_id(self.collection, entity["id"], {"post_count": actual})
            self.log.warning(
                "post_count diverged from posts collection",
                id=entity["id"],
                stored=stored,
                actual=actual,
            )
            corrections.append({"id": entity["id"], "name": entity.get("name"), "stored": stored, "actual": actual})
        return corrections

    def _ensure_slug_free(self, slug: str, exclude_id: Optional[str] = None) -> None:
        existing = self.store.find_one(self.collection, {"slug": slug})
        if existing is not None and existing["id"] != exclude_id:
            raise ConflictError(f"{self.label} with slug '{slug}' already exists", {"slug": slug})


class CategoryRegistry(Registry):
    collection = "categories"
    label = "Category"
    reference_field = "category_id"


class PlacementRegistry(Registry):
    collection = "placements"
    label = "Placement"
    reference_field = "placement_id"
    sort = (("sort_order", 1), ("name", 1))
    required_fields = Registry.required_fields + ("sub_category", "sort_order")

    def find_by_sub_category(self, sub_category: str) -> List[Dict[str, Any]]:
        return self.store.find(self.collection, {"sub_category": sub_category, "is_active": True}, sort=self.sort)

    def seed_defaults(self) -> int:
        """Insert the default placements into an empty collection."""
        if self.store.count(self.collection):
            return 0
        now = self.clock()
        for placement in DEFAULT_PLACEMENTS:
            self.store.insert(
                self.collection,
                {**placement, "is_active": True, "post_count": 0, "created_at": now, "updated_at": now},
            )
        self.log.info("Seeded default placements", count=len(DEFAULT_PLACEMENTS))
        return len(DEFAULT_PLACEMENTS)
