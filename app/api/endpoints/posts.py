from fastapi import APIRouter, Depends, Query

from app.api.deps import get_post_store
from app.schemas.post import PostDetail, PostIdsResponse, PostListResponse
from app.services.async_error_handler import PostNotFoundError, StoreError, SurfacedStoreError
from app.services.async_post import AsyncPostService
from app.services.listing import PostListingController
from app.services.post_render import to_post_card, to_post_detail
from app.services.post_store import PostStore

router = APIRouter()

POSTS_RECOVERY = {"label": "Back to posts", "href": "/posts"}


@router.get("", response_model=PostListResponse)
async def list_posts(
    search: str = Query("", description="Case-insensitive title filter"),
    page: int = Query(1, ge=1, description="Page number"),
    store: PostStore = Depends(get_post_store),
):
    """Public listing: published posts only, newest first, nine per page."""
    controller = PostListingController(store, scope="public", page=page, search=search)
    try:
        await controller.load()
    except StoreError as e:
        raise SurfacedStoreError(e, "page", {"recovery": POSTS_RECOVERY})

    return PostListResponse(
        posts=[to_post_card(post) for post in controller.items],
        search=controller.search,
        pagination=controller.pagination(),
    )


@router.get("/ids", response_model=PostIdsResponse)
async def list_post_ids(store: PostStore = Depends(get_post_store)):
    """Ids of all published posts."""
    try:
        ids = await AsyncPostService.list_ids(store, published=True)
    except StoreError as e:
        raise SurfacedStoreError(e, "page", {"recovery": POSTS_RECOVERY})
    return PostIdsResponse(ids=ids)


@router.get("/{post_id}", response_model=PostDetail)
async def get_post(post_id: str, store: PostStore = Depends(get_post_store)):
    """
    Single post with full rendering.

    Drafts are only visible to their author; for anyone else they are
    indistinguishable from a missing post.
    """
    try:
        post = await AsyncPostService.get_by_id(store, post_id)
        if post is None:
            raise PostNotFoundError("Post not found")
    except StoreError as e:
        raise SurfacedStoreError(e, "page", {"recovery": POSTS_RECOVERY})

    return to_post_detail(post)
