"""
Category and placement payloads.
"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class SubCategory(str, Enum):
    TOPNAV = "topnav"
    RIGHTSIDEBAR = "rightsidebar"
    LEFTSIDEBAR = "leftsidebar"
    BOTTOM = "bottom"
    FEATURED = "featured"
    SIDEBAR = "sidebar"
    HEADER = "header"
    FOOTER = "footer"


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    slug: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
    color: str = "#000000"
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    color: Optional[str] = None
    is_active: bool
    post_count: int
    created_at: datetime
    updated_at: datetime


class PlacementCreate(CategoryCreate):
    sub_category: SubCategory
    color: str = "#3498db"
    sort_order: int = 0


class PlacementUpdate(CategoryUpdate):
    sub_category: Optional[SubCategory] = None
    sort_order: Optional[int] = None


class PlacementResponse(CategoryResponse):
    sub_category: SubCategory
    sort_order: int = 0
