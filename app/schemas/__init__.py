"""Pydantic schemas for request and response validation."""

from .auth import (
    AuthSession,
    CurrentUser,
    ErrorDetail,
    ErrorResponse,
    MessageResponse,
    UserLogin,
    UserRegister,
    UserRegisterResponse,
)
from .post import (
    PaginationInfo,
    PostCard,
    PostCreate,
    PostDetail,
    PostIdsResponse,
    PostListResponse,
    PostPage,
    PostRead,
    PostUpdate,
)
from .render import MarkdownPreviewRequest, RenderedMarkdown

__all__ = [
    # Auth schemas
    "AuthSession",
    "CurrentUser",
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    "UserLogin",
    "UserRegister",
    "UserRegisterResponse",
    # Post schemas
    "PaginationInfo",
    "PostCard",
    "PostCreate",
    "PostDetail",
    "PostIdsResponse",
    "PostListResponse",
    "PostPage",
    "PostRead",
    "PostUpdate",
    # Render schemas
    "MarkdownPreviewRequest",
    "RenderedMarkdown",
]
