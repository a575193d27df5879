from typing import List, Optional

from app.schemas.auth import CurrentUser
from app.schemas.post import PostCreate, PostPage, PostRead, PostUpdate
from app.services.async_error_handler import FormValidationError, PostNotFoundError, PostPermissionError
from app.services.post_store import PostStore
from app.utils.logger import post_logger
from app.utils.pagination import get_range


class AsyncPostService:
    """Async repository for posts. Authorization is left to the store."""

    @staticmethod
    async def get_by_id(store: PostStore, post_id: str) -> Optional[PostRead]:
        """Get a post the caller may see; hidden drafts come back as None."""
        return await store.fetch_one(post_id)

    @staticmethod
    async def get_for_edit(store: PostStore, post_id: str, user: CurrentUser) -> PostRead:
        """
        Load a post for the edit form.

        The store already hides other authors' drafts, but a published post
        of someone else is visible, so the author is compared again here.
        """
        post = await store.fetch_one(post_id)
        if post is None:
            raise PostNotFoundError("Post not found")
        if post.author_id != user.id:
            post_logger.warning("Edit attempt on another author's post", "EDIT", post_id=post_id, user_id=user.id)
            raise PostPermissionError("You do not have permission to edit this post")
        return post

    @staticmethod
    async def list_published(
        store: PostStore,
        page: int = 1,
        page_size: int = 9,
        search: Optional[str] = None,
    ) -> PostPage:
        """Published posts, newest first, optionally filtered by title."""
        start, end = get_range(page, page_size)
        items, total_count = await store.fetch_page(
            offset=start,
            limit=end - start + 1,
            published_only=True,
            search=search or None,
        )
        return PostPage(items=items, total_count=total_count)

    @staticmethod
    async def list_by_author(
        store: PostStore,
        author_id: str,
        page: int = 1,
        page_size: int = 6,
    ) -> PostPage:
        """All posts of one author, drafts included."""
        start, end = get_range(page, page_size)
        items, total_count = await store.fetch_page(
            offset=start,
            limit=end - start + 1,
            author_id=author_id,
        )
        return PostPage(items=items, total_count=total_count)

    @staticmethod
    async def create(store: PostStore, post_data: PostCreate, author_id: str) -> PostRead:
        """Create a post owned by author_id."""
        if not post_data.title:
            raise FormValidationError("Title is required", field="title")
        if not post_data.content:
            raise FormValidationError("Content is required", field="content")
        if not author_id:
            raise FormValidationError("Author is required", field="author_id")

        post = await store.insert({
            "title": post_data.title,
            "content": post_data.content,
            "published": post_data.published,
            "author_id": author_id,
        })
        post_logger.success("Post created", "CREATE", post_id=post.id, published=post.published)
        return post

    @staticmethod
    async def update(store: PostStore, post_id: str, post_update: PostUpdate) -> None:
        """Apply the fields that were provided; None means untouched."""
        changes = post_update.model_dump(exclude_none=True)
        if not changes:
            return
        await store.update(post_id, changes)
        post_logger.success("Post updated", "UPDATE", post_id=post_id, fields=sorted(changes))

    @staticmethod
    async def delete(store: PostStore, post_id: str) -> None:
        await store.delete(post_id)
        post_logger.success("Post deleted", "DELETE", post_id=post_id)

    @staticmethod
    async def list_ids(store: PostStore, published: bool = True) -> List[str]:
        return await store.fetch_ids(published_only=published)
