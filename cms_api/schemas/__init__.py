from .auth import Role, RegisterRequest, UserCreate, UserUpdate, RoleUpdate, UserLogin, UserResponse, TokenResponse
from .posts import PostStatus, PostCreate, PostUpdate, PostResponse
from .refs import Reference, Resolved, Relation
from .taxonomy import (
    SubCategory,
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    PlacementCreate,
    PlacementUpdate,
    PlacementResponse,
)
from .dashboard import DashboardStats, DashboardData

__all__ = [
    "Role", "RegisterRequest", "UserCreate", "UserUpdate", "RoleUpdate", "UserLogin", "UserResponse", "TokenResponse",
    "PostStatus", "PostCreate", "PostUpdate", "PostResponse",
    "Reference", "Resolved", "Relation",
    "SubCategory", "CategoryCreate", "CategoryUpdate", "CategoryResponse",
    "PlacementCreate", "PlacementUpdate", "PlacementResponse",
    "DashboardStats", "DashboardData",
]
