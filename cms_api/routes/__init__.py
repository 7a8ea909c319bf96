from .auth import router as auth_router
from .categories import router as categories_router
from .dashboard import router as dashboard_router
from .maintenance import router as maintenance_router
from .placements import router as placements_router
from .posts import router as posts_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "categories_router",
    "dashboard_router",
    "maintenance_router",
    "placements_router",
    "posts_router",
    "users_router",
]
