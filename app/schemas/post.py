from typing import List, Optional, Union

from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema


class PostRead(BaseResponseSchema):
    """A post row as returned by the store."""
    title: str
    content: str
    author_id: str
    published: bool = False


class PostCreate(BaseModel):
    """Schema for creating a post. Bounds are checked by app.utils.validation so the first error surfaces."""
    title: str = ""
    content: str = ""
    published: bool = False


class PostUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""
    title: Optional[str] = None
    content: Optional[str] = None
    published: Optional[bool] = None


class PostPage(BaseModel):
    """One listing window plus the size of the whole result set."""
    items: List[PostRead]
    total_count: int


class PostCard(BaseResponseSchema):
    """Listing item with a rendered, length-bounded preview"""
    title: str
    slug: str
    published_on: str
    author_id: str
    published: bool
    excerpt: str
    preview_html: str
    reading_time_minutes: int


class PostDetail(PostRead):
    """Full post with rendered HTML"""
    slug: str
    published_on: str
    content_html: str
    excerpt: str
    reading_time_minutes: int


class PaginationInfo(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int
    show_pagination: bool
    page_numbers: List[Union[int, str]] = Field(default_factory=list, description="Page buttons, '...' marks a collapsed gap")
    previous_page: int
    next_page: int
    has_previous: bool
    has_next: bool


class PostListResponse(BaseModel):
    posts: List[PostCard]
    search: str = ""
    pagination: PaginationInfo


class PostIdsResponse(BaseModel):
    ids: List[str]
