"""
Post stores: the storage collaborator behind AsyncPostService.

Both stores are bound to one caller. Visibility and ownership are decided
by the store's row policy, never by the caller:

- a post is visible when it is published or the caller is its author
- only the author may update or delete it

SupabasePostStore delegates that policy to Postgres RLS through PostgREST.
DatabasePostStore talks to the posts table directly and applies the same
policy in its WHERE clauses. A mutation that matches zero rows is reported
as PostPermissionError in both stores.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, false, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from postgrest.exceptions import APIError
from postgrest.types import CountMethod
from supabase import AsyncClient

from app.db.base_class import utc_now
from app.models.post import Post
from app.schemas.post import PostRead
from app.services.async_error_handler import (
    PGRST_RANGE_NOT_SATISFIABLE,
    PostPermissionError,
    async_transaction_rollback,
    translate_store_errors,
)

POSTS_TABLE = "posts"

PostWindow = Tuple[List[PostRead], int]


class PostStore(ABC):
    """Row access for posts on behalf of a single caller."""

    @abstractmethod
    async def fetch_one(self, post_id: str) -> Optional[PostRead]:
        ...

    @abstractmethod
    async def fetch_page(
        self,
        offset: int,
        limit: int,
        published_only: bool = False,
        author_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> PostWindow:
        """Rows ordered by created_at descending, plus the total match count."""
        ...

    @abstractmethod
    async def insert(self, values: Dict[str, Any]) -> PostRead:
        ...

    @abstractmethod
    async def update(self, post_id: str, changes: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete(self, post_id: str) -> None:
        ...

    @abstractmethod
    async def fetch_ids(self, published_only: bool = True) -> List[str]:
        ...


class DatabasePostStore(PostStore):
    """Post store over an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession, viewer_id: Optional[str] = None):
        self.db = db
        self.viewer_id = viewer_id

    def _visible(self):
        if self.viewer_id is None:
            return Post.published.is_(True)
        return or_(Post.published.is_(True), Post.author_id == self.viewer_id)

    def _owned(self, post_id: str):
        if self.viewer_id is None:
            return false()
        return (Post.id == post_id) & (Post.author_id == self.viewer_id)

    @translate_store_errors("fetch post")
    async def fetch_one(self, post_id: str) -> Optional[PostRead]:
        stmt = (
            select(Post)
            .where(Post.id == post_id, self._visible())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        post = result.scalar_one_or_none()
        return PostRead.model_validate(post) if post else None

    @translate_store_errors("list posts")
    async def fetch_page(
        self,
        offset: int,
        limit: int,
        published_only: bool = False,
        author_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> PostWindow:
        stmt = select(Post).where(self._visible()).execution_options(populate_existing=True)
        if published_only:
            stmt = stmt.where(Post.published.is_(True))
        if author_id is not None:
            stmt = stmt.where(Post.author_id == author_id)
        if search:
            stmt = stmt.where(func.lower(Post.title).contains(search.lower(), autoescape=True))

        # Get total count
        count_stmt = select(func.count()).select_from(stmt.subquery())
        count_result = await self.db.execute(count_stmt)
        total_count = count_result.scalar() or 0

        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc()).offset(offset).limit(limit)
        result = await self.db.execute(stmt)
        posts = result.scalars().all()

        return [PostRead.model_validate(post) for post in posts], total_count

    @translate_store_errors("create post")
    async def insert(self, values: Dict[str, Any]) -> PostRead:
        if self.viewer_id is None or values.get("author_id") != self.viewer_id:
            raise PostPermissionError("Posts can only be created for the signed-in author")

        post = Post(**values)
        async with async_transaction_rollback(self.db):
            self.db.add(post)
        await self.db.refresh(post)
        return PostRead.model_validate(post)

    @translate_store_errors("update post")
    async def update(self, post_id: str, changes: Dict[str, Any]) -> None:
        stmt = (
            update(Post)
            .where(self._owned(post_id))
            .values(**changes, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        async with async_transaction_rollback(self.db):
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise PostPermissionError("No post was updated")

    @translate_store_errors("delete post")
    async def delete(self, post_id: str) -> None:
        stmt = delete(Post).where(self._owned(post_id)).execution_options(synchronize_session=False)
        async with async_transaction_rollback(self.db):
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise PostPermissionError("No post was deleted")

    @translate_store_errors("list post ids")
    async def fetch_ids(self, published_only: bool = True) -> List[str]:
        stmt = select(Post.id).where(self._visible())
        if published_only:
            stmt = stmt.where(Post.published.is_(True))
        result = await self.db.execute(stmt.order_by(Post.created_at.desc()))
        return list(result.scalars().all())


class SupabasePostStore(PostStore):
    """
    Post store over Supabase PostgREST.

    The client must carry the caller's access token so that Postgres RLS
    evaluates auth.uid() as the caller.
    """

    def __init__(self, client: AsyncClient):
        self.client = client

    def _table(self):
        return self.client.table(POSTS_TABLE)

    @staticmethod
    def _ilike_pattern(search: str) -> str:
        escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        # PostgREST turns every * into %, escaped or not
        escaped = escaped.replace("*", "_")
        return f"%{escaped}%"

    def _filtered(self, query, published_only: bool, author_id: Optional[str], search: Optional[str]):
        if published_only:
            query = query.eq("published", True)
        if author_id is not None:
            query = query.eq("author_id", author_id)
        if search:
            query = query.ilike("title", self._ilike_pattern(search))
        return query

    @translate_store_errors("fetch post")
    async def fetch_one(self, post_id: str) -> Optional[PostRead]:
        response = await self._table().select("*").eq("id", post_id).limit(1).execute()
        if not response.data:
            return None
        return PostRead.model_validate(response.data[0])

    @translate_store_errors("list posts")
    async def fetch_page(
        self,
        offset: int,
        limit: int,
        published_only: bool = False,
        author_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> PostWindow:
        query = self._filtered(
            self._table().select("*", count=CountMethod.exact),
            published_only, author_id, search,
        )
        query = query.order("created_at", desc=True).range(offset, offset + limit - 1)
        try:
            response = await query.execute()
        except APIError as e:
            if e.code != PGRST_RANGE_NOT_SATISFIABLE:
                raise
            # Window starts past the last row: empty page, count still wanted
            return [], await self._count(published_only, author_id, search)

        items = [PostRead.model_validate(row) for row in response.data or []]
        return items, response.count or 0

    async def _count(self, published_only: bool, author_id: Optional[str], search: Optional[str]) -> int:
        query = self._filtered(
            self._table().select("id", count=CountMethod.exact, head=True),
            published_only, author_id, search,
        )
        response = await query.execute()
        return response.count or 0

    @translate_store_errors("create post")
    async def insert(self, values: Dict[str, Any]) -> PostRead:
        response = await self._table().insert(values).execute()
        if not response.data:
            raise PostPermissionError("Post was not created")
        return PostRead.model_validate(response.data[0])

    @translate_store_errors("update post")
    async def update(self, post_id: str, changes: Dict[str, Any]) -> None:
        payload = dict(changes, updated_at=utc_now().isoformat())
        response = await self._table().update(payload).eq("id", post_id).execute()
        if not response.data:
            raise PostPermissionError("No post was updated")

    @translate_store_errors("delete post")
    async def delete(self, post_id: str) -> None:
        response = await self._table().delete().eq("id", post_id).execute()
        if not response.data:
            raise PostPermissionError("No post was deleted")

    @translate_store_errors("list post ids")
    async def fetch_ids(self, published_only: bool = True) -> List[str]:
        query = self._table().select("id")
        if published_only:
            query = query.eq("published", True)
        response = await query.order("created_at", desc=True).execute()
        return [row["id"] for row in response.data or []]
