from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from .refs import Relation


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"
    EXPIRED = "expired"


class PostBase(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    slug: str = Field(min_length=1, max_length=300)
    excerpt: Optional[str] = None
    content: Optional[str] = None
    tags: List[str] = []
    image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    order_no: int = 0


class PostCreate(PostBase):
    status: PostStatus = PostStatus.DRAFT
    category_id: str = Field(min_length=1)
    placement_id: str = Field(min_length=1)
    author_id: Optional[str] = None
    published_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None


class PostUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=300)
    excerpt: Optional[str] = None
    content: Optional[str] = None
    status: Optional[PostStatus] = None
    category_id: Optional[str] = None
    placement_id: Optional[str] = None
    author_id: Optional[str] = None
    tags: Optional[List[str]] = None
    image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    order_no: Optional[int] = None
    published_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None


class PostResponse(PostBase):
    id: str
    status: PostStatus
    author: Relation
    category: Relation
    placement: Relation
    view_count: int = 0
    published_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
