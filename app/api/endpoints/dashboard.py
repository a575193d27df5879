from typing import List, Tuple

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import RequireUser, get_post_store
from app.schemas.auth import CurrentUser
from app.schemas.post import PostCreate, PostListResponse, PostRead, PostUpdate
from app.schemas.render import MarkdownPreviewRequest, RenderedMarkdown
from app.services.async_error_handler import (
    FormValidationError,
    PostNotFoundError,
    StoreError,
    SurfacedStoreError,
)
from app.services.async_post import AsyncPostService
from app.services.listing import PostListingController
from app.services.post_render import to_post_card
from app.services.post_store import PostStore
from app.utils.markdown import render_markdown
from app.utils.validation import (
    ValidationResult,
    validate_all,
    validate_post_content,
    validate_post_title,
)

router = APIRouter()

DASHBOARD_RECOVERY = {"label": "Back to dashboard", "href": "/dashboard"}

require_dashboard_user = RequireUser("/dashboard")


def _ensure_valid(checks: List[Tuple[str, ValidationResult]]) -> None:
    """Raise FormValidationError for the first failing field."""
    error = validate_all(result for _, result in checks)
    if error:
        field = next(name for name, result in checks if not result.is_valid)
        raise FormValidationError(error, field=field)


def _listing_response(controller: PostListingController) -> PostListResponse:
    return PostListResponse(
        posts=[to_post_card(post) for post in controller.items],
        pagination=controller.pagination(),
    )


@router.get("/posts", response_model=PostListResponse)
async def list_my_posts(
    page: int = Query(1, ge=1, description="Page number"),
    current_user: CurrentUser = Depends(require_dashboard_user),
    store: PostStore = Depends(get_post_store),
):
    """The caller's posts, drafts included, six per page."""
    controller = PostListingController(store, scope="author", author_id=current_user.id, page=page)
    try:
        await controller.load()
    except StoreError as e:
        raise SurfacedStoreError(e, "page", {"recovery": DASHBOARD_RECOVERY})
    return _listing_response(controller)


@router.post("/posts", response_model=PostRead, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: CurrentUser = Depends(require_dashboard_user),
    store: PostStore = Depends(get_post_store),
):
    """Create a post as the current user. Input is validated before the store is touched."""
    _ensure_valid([
        ("title", validate_post_title(post_data.title)),
        ("content", validate_post_content(post_data.content)),
    ])
    post_data = post_data.model_copy(update={"title": post_data.title.strip()})

    try:
        return await AsyncPostService.create(store, post_data, author_id=current_user.id)
    except StoreError as e:
        raise SurfacedStoreError(e, "dismissible", {"input": post_data.model_dump()})


@router.get("/posts/{post_id}/edit", response_model=PostRead)
async def get_post_for_edit(
    post_id: str,
    current_user: CurrentUser = Depends(require_dashboard_user),
    store: PostStore = Depends(get_post_store),
):
    """Load a post into the edit form; only its author may do so."""
    try:
        return await AsyncPostService.get_for_edit(store, post_id, current_user)
    except StoreError as e:
        raise SurfacedStoreError(e, "page", {"recovery": DASHBOARD_RECOVERY})


@router.patch("/posts/{post_id}", response_model=PostRead)
async def update_post(
    post_id: str,
    post_update: PostUpdate,
    current_user: CurrentUser = Depends(require_dashboard_user),
    store: PostStore = Depends(get_post_store),
):
    """Partial update; omitted fields keep their stored value."""
    checks = []
    if post_update.title is not None:
        checks.append(("title", validate_post_title(post_update.title)))
        post_update = post_update.model_copy(update={"title": post_update.title.strip()})
    if post_update.content is not None:
        checks.append(("content", validate_post_content(post_update.content)))
    _ensure_valid(checks)

    try:
        await AsyncPostService.update(store, post_id, post_update)
        post = await AsyncPostService.get_by_id(store, post_id)
        if post is None:
            raise PostNotFoundError("Post not found")
    except StoreError as e:
        raise SurfacedStoreError(e, "dismissible", {"input": post_update.model_dump(exclude_none=True)})
    return post


@router.delete("/posts/{post_id}", response_model=PostListResponse)
async def delete_post(
    post_id: str,
    page: int = Query(1, ge=1, description="Dashboard page the delete was issued from"),
    current_user: CurrentUser = Depends(require_dashboard_user),
    store: PostStore = Depends(get_post_store),
):
    """
    Delete a post and return the dashboard page without the deleted item.

    The listing is not refetched after the delete: the item is dropped and
    the total decremented locally.
    """
    controller = PostListingController(store, scope="author", author_id=current_user.id, page=page)
    try:
        await controller.load()
    except StoreError as e:
        raise SurfacedStoreError(e, "page", {"recovery": DASHBOARD_RECOVERY})

    try:
        await controller.delete_post(post_id)
    except StoreError as e:
        raise SurfacedStoreError(e, "alert", {"post_id": post_id})
    return _listing_response(controller)


@router.post("/preview", response_model=RenderedMarkdown)
async def preview_markdown(
    request: MarkdownPreviewRequest,
    current_user: CurrentUser = Depends(require_dashboard_user),
):
    """Render editor content the way the post page or a listing card will show it."""
    return render_markdown(request.content, mode=request.mode, max_length=request.max_length)
