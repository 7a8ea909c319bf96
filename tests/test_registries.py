"""
Tests for the category and placement registries.
"""
import pytest

from cms_api.errors import ConflictError, NotFoundError, ValidationError
from cms_api.schemas.taxonomy import CategoryCreate, CategoryUpdate, PlacementCreate, PlacementUpdate, SubCategory
from cms_api.services.registries import DEFAULT_PLACEMENTS


class TestCategoryRegistry:
    def test_create_starts_with_zero_count(self, categories):
        created = categories.create(CategoryCreate(name="Tech", slug="tech"))

        assert created["post_count"] == 0
        assert created["color"] == "#000000"
        assert created["is_active"] is True

    def test_duplicate_slug(self, categories):
        categories.create(CategoryCreate(name="Tech", slug="tech"))
        with pytest.raises(ConflictError):
            categories.create(CategoryCreate(name="Technology", slug="tech"))

    def test_find_all_sorted_and_active_only(self, categories):
        categories.create(CategoryCreate(name="Zebra", slug="zebra"))
        categories.create(CategoryCreate(name="Alpha", slug="alpha"))
        categories.create(CategoryCreate(name="Hidden", slug="hidden", is_active=False))

        assert [c["name"] for c in categories.find_all()] == ["Alpha", "Hidden", "Zebra"]
        assert [c["name"] for c in categories.find_all(active_only=True)] == ["Alpha", "Zebra"]

    def test_find_by_name_is_case_insensitive_and_exact(self, categories):
        created = categories.create(CategoryCreate(name="Career Tips", slug="career-tips"))

        assert categories.find_by_name("career tips")["id"] == created["id"]
        assert categories.find_by_name("Career") is None
        assert categories.find_by_name("career.tips") is None

    def test_find_by_slug_and_id_missing(self, categories):
        with pytest.raises(NotFoundError):
            categories.find_by_slug("nope")
        with pytest.raises(NotFoundError):
            categories.find_by_id("nope")

    def test_update_cannot_set_post_count(self, categories, store):
        created = categories.create(CategoryCreate(name="Tech", slug="tech"))
        store.update_by_id("categories", created["id"], {"post_count": 4})

        patch = CategoryUpdate(name="Tech & Science")
        updated = categories.update(created["id"], patch)

        assert updated["name"] == "Tech & Science"
        assert updated["post_count"] == 4

    def test_update_slug_conflict(self, categories):
        categories.create(CategoryCreate(name="A", slug="a"))
        b = categories.create(CategoryCreate(name="B", slug="b"))
        with pytest.raises(ConflictError):
            categories.update(b["id"], CategoryUpdate(slug="a"))

    @pytest.mark.parametrize("field", ["name", "slug", "color", "is_active"])
    def test_update_rejects_null_required_field(self, categories, field):
        created = categories.create(CategoryCreate(name="Tech", slug="tech"))

        with pytest.raises(ValidationError) as excinfo:
            categories.update(created["id"], CategoryUpdate(**{field: None}))

        assert excinfo.value.details == {"field": field}
        assert categories.find_by_id(created["id"])[field] == created[field]

    def test_update_can_clear_description(self, categories):
        created = categories.create(CategoryCreate(name="Tech", slug="tech", description="Gadgets"))
        assert categories.update(created["id"], CategoryUpdate(description=None))["description"] is None

    def test_remove_blocked_while_count_positive(self, categories, store):
        created = categories.create(CategoryCreate(name="Tech", slug="tech"))
        store.update_by_id("categories", created["id"], {"post_count": 1})

        with pytest.raises(ConflictError):
            categories.remove(created["id"])

        assert categories.find_by_id(created["id"])

    def test_remove_blocked_by_referencing_post_despite_zero_count(self, categories, store):
        created = categories.create(CategoryCreate(name="Tech", slug="tech"))
        store.insert("posts", {"slug": "p", "category_id": created["id"]})

        with pytest.raises(ConflictError):
            categories.remove(created["id"])

    def test_remove_unreferenced(self, categories):
        created = categories.create(CategoryCreate(name="Tech", slug="tech"))
        categories.remove(created["id"])
        with pytest.raises(NotFoundError):
            categories.find_by_id(created["id"])

    def test_decrement_clamps_at_zero(self, categories):
        created = categories.create(CategoryCreate(name="Tech", slug="tech"))

        categories.decrement_post_count(created["id"])

        assert categories.find_by_id(created["id"])["post_count"] == 0

    def test_counts_against_missing_entity_are_ignored(self, categories):
        assert categories.increment_post_count("missing") is None
        assert categories.decrement_post_count("missing") is None


class TestPlacementRegistry:
    def test_sorted_by_sort_order_then_name(self, placements):
        placements.create(PlacementCreate(name="B", slug="b", sub_category=SubCategory.TOPNAV, sort_order=2))
        placements.create(PlacementCreate(name="C", slug="c", sub_category=SubCategory.TOPNAV, sort_order=1))
        placements.create(PlacementCreate(name="A", slug="a", sub_category=SubCategory.TOPNAV, sort_order=2))

        assert [p["name"] for p in placements.find_all()] == ["C", "A", "B"]

    def test_defaults(self, placements):
        created = placements.create(PlacementCreate(name="Top", slug="top", sub_category=SubCategory.TOPNAV))
        assert created["color"] == "#3498db"
        assert created["sort_order"] == 0
        assert created["sub_category"] == "topnav"

    def test_find_by_sub_category_returns_active_only(self, placements):
        placements.create(PlacementCreate(name="Top", slug="top", sub_category=SubCategory.TOPNAV))
        placements.create(PlacementCreate(name="Old Top", slug="old-top", sub_category=SubCategory.TOPNAV, is_active=False))
        placements.create(PlacementCreate(name="Footer", slug="footer", sub_category=SubCategory.FOOTER))

        assert [p["slug"] for p in placements.find_by_sub_category("topnav")] == ["top"]

    def test_remove_is_guarded_like_categories(self, placements, store):
        created = placements.create(PlacementCreate(name="Top", slug="top", sub_category=SubCategory.TOPNAV))
        store.update_by_id("placements", created["id"], {"post_count": 2})

        with pytest.raises(ConflictError):
            placements.remove(created["id"])

    def test_update_sub_category(self, placements):
        created = placements.create(PlacementCreate(name="Top", slug="top", sub_category=SubCategory.TOPNAV))
        updated = placements.update(created["id"], PlacementUpdate(sub_category=SubCategory.HEADER))
        assert updated["sub_category"] == "header"

    @pytest.mark.parametrize("field", ["sub_category", "sort_order", "is_active"])
    def test_update_rejects_null_required_field(self, placements, field):
        created = placements.create(PlacementCreate(name="Top", slug="top", sub_category=SubCategory.TOPNAV))

        with pytest.raises(ValidationError):
            placements.update(created["id"], PlacementUpdate(**{field: None}))

        assert placements.find_by_id(created["id"])[field] == created[field]

    def test_seed_defaults_only_into_empty_collection(self, placements):
        assert placements.seed_defaults() == len(DEFAULT_PLACEMENTS)
        assert placements.seed_defaults() == 0
        assert [p["slug"] for p in placements.find_all()][0] == "top-navigation"


class TestRecount:
    def test_recount_reports_corrections(self, categories, store):
        tech = categories.create(CategoryCreate(name="Tech", slug="tech"))
        categories.create(CategoryCreate(name="News", slug="news"))
        store.insert("posts", {"slug": "one", "category_id": tech["id"]})
        store.insert("posts", {"slug": "two", "category_id": tech["id"]})

        corrections = categories.recount()

        assert corrections == [{"id": tech["id"], "name": "Tech", "stored": 0, "actual": 2}]
        assert categories.find_by_id(tech["id"])["post_count"] == 2
