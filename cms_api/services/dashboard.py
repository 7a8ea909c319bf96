"""
Dashboard statistics for the admin landing page.
"""
from ..schemas.dashboard import DashboardData, DashboardStats
from ..schemas.posts import PostStatus
from ..schemas.taxonomy import CategoryResponse
from .posts import PostLifecycleEngine
from .query import PostListQuery
from .registries import POSTS_COLLECTION
from .users import USERS_COLLECTION

RECENT_LIMIT = 5


def build_dashboard(engine: PostLifecycleEngine) -> DashboardData:
    store = engine.store
    by_status = {
        status.value: store.count(POSTS_COLLECTION, {"status": status.value})
        for status in PostStatus
        if status != PostStatus.EXPIRED
    }
    stats = DashboardStats(
        total_posts=store.count(POSTS_COLLECTION),
        posts_by_status=by_status,
        total_users=store.count(USERS_COLLECTION),
        total_categories=store.count(engine.categories.collection),
        total_placements=store.count(engine.placements.collection),
    )
    recent = engine.populate_page(engine.list(PostListQuery(page=1, page_size=RECENT_LIMIT)))
    top_categories = store.find(
        engine.categories.collection,
        sort=(("post_count", -1), ("name", 1)),
        limit=RECENT_LIMIT,
    )
    return DashboardData(
        stats=stats,
        recent_posts=recent.items,
        top_categories=[CategoryResponse(**category) for category in top_categories],
    )
