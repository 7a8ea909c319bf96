from pydantic import BaseModel
from typing import Dict, List

from .posts import PostResponse
from .taxonomy import CategoryResponse


class DashboardStats(BaseModel):
    total_posts: int
    posts_by_status: Dict[str, int]
    total_users: int
    total_categories: int
    total_placements: int


class DashboardData(BaseModel):
    stats: DashboardStats
    recent_posts: List[PostResponse]
    top_categories: List[CategoryResponse]
