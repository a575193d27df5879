"""
Listing state for the public post grid and the author dashboard.

A controller holds {page, search, page_size} and the last loaded window.
Superseded loads are not cancelled: if two loads overlap, whichever
finishes last wins.
"""
from typing import List, Literal, Optional

from app.core.config import settings
from app.schemas.post import PaginationInfo, PostRead
from app.services.async_error_handler import StoreError
from app.services.async_post import AsyncPostService
from app.services.post_store import PostStore
from app.utils.logger import post_logger
from app.utils.pagination import build_pagination, calculate_total_pages

ListingScope = Literal["public", "author"]


class PostListingController:
    """Paginated, searchable view over a post store."""

    def __init__(
        self,
        store: PostStore,
        scope: ListingScope = "public",
        author_id: Optional[str] = None,
        page_size: Optional[int] = None,
        page: int = 1,
        search: str = "",
    ):
        if scope == "author" and not author_id:
            raise ValueError("author scope requires author_id")
        if page_size is None:
            page_size = settings.PUBLIC_PAGE_SIZE if scope == "public" else settings.DASHBOARD_PAGE_SIZE

        self.store = store
        self.scope = scope
        self.author_id = author_id
        self.page_size = page_size
        self.page = max(page, 1)
        self.search = search or ""

        self.items: List[PostRead] = []
        self.total_count = 0
        self.loading = False
        self.error: Optional[StoreError] = None
        self.scroll_to_top = False

    async def load(self) -> List[PostRead]:
        """Query the current window. Store errors are kept on self.error and re-raised."""
        self.loading = True
        self.error = None
        try:
            if self.scope == "author":
                result = await AsyncPostService.list_by_author(
                    self.store, self.author_id, page=self.page, page_size=self.page_size
                )
            else:
                result = await AsyncPostService.list_published(
                    self.store, page=self.page, page_size=self.page_size, search=self.search or None
                )
        except StoreError as e:
            self.error = e
            raise
        finally:
            self.loading = False

        self.items = list(result.items)
        self.total_count = result.total_count
        return self.items

    async def set_search(self, search: str) -> List[PostRead]:
        """New search term: back to page 1 and reload."""
        self.search = search or ""
        self.page = 1
        self.scroll_to_top = False
        return await self.load()

    async def set_page(self, page: int) -> List[PostRead]:
        """Move to another page keeping the search, and flag a scroll to top."""
        self.page = max(page, 1)
        self.scroll_to_top = True
        return await self.load()

    async def delete_post(self, post_id: str) -> None:
        """
        Delete through the repository, then drop the item locally.

        On failure the item stays in place and the error is re-raised for
        the caller to show as a blocking alert.
        """
        try:
            await AsyncPostService.delete(self.store, post_id)
        except StoreError as e:
            self.error = e
            post_logger.error("Delete failed, keeping item", "LISTING", post_id=post_id, error=e.message)
            raise

        self.items = [item for item in self.items if item.id != post_id]
        self.total_count = max(self.total_count - 1, 0)

    @property
    def total_pages(self) -> int:
        return calculate_total_pages(self.total_count, self.page_size)

    @property
    def show_pagination(self) -> bool:
        return self.total_pages > 1

    def pagination(self) -> PaginationInfo:
        return build_pagination(self.page, self.page_size, self.total_count)
