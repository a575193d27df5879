"""
API dependency injection module.

Every request gets its own Supabase client, identity provider and session
adapter; the post store is built from them according to STORE_BACKEND.
"""

from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from supabase import AsyncClient

from app.core.config import settings
from app.db.async_session import get_async_db
from app.schemas.auth import CurrentUser
from app.services.async_error_handler import StoreUnavailableError
from app.services.post_store import DatabasePostStore, PostStore, SupabasePostStore
from app.services.session import IdentityProvider, SessionAdapter
from app.services.supabase_auth import (
    SupabaseIdentityProvider,
    create_supabase_client,
    supabase_configured,
)


oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/login", auto_error=False)


async def get_access_token(
    request: Request,
    bearer_token: Optional[str] = Depends(oauth2_scheme),
) -> Optional[str]:
    """Bearer header first, then the session cookie set at login."""
    return bearer_token or request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_supabase_client(
    access_token: Optional[str] = Depends(get_access_token),
) -> AsyncGenerator[Optional[AsyncClient], None]:
    """Per-request client carrying the caller's token, closed after the response."""
    if not supabase_configured():
        yield None
        return

    client = await create_supabase_client(access_token)
    try:
        yield client
    finally:
        await client.postgrest.aclose()


async def get_identity_provider(
    client: Optional[AsyncClient] = Depends(get_supabase_client),
    access_token: Optional[str] = Depends(get_access_token),
) -> IdentityProvider:
    return SupabaseIdentityProvider(client, access_token)


async def get_session_adapter(
    provider: IdentityProvider = Depends(get_identity_provider),
) -> AsyncGenerator[SessionAdapter, None]:
    """Mounted for the duration of the request."""
    async with SessionAdapter(provider) as adapter:
        yield adapter


class RequireUser:
    """
    Dependency that demands a signed-in user.

    Raises LoginRequiredError (answered with 401 and a login_url) when the
    caller is anonymous.
    """

    def __init__(self, redirect_to: Optional[str] = None):
        self.redirect_to = redirect_to

    async def __call__(self, adapter: SessionAdapter = Depends(get_session_adapter)) -> CurrentUser:
        return adapter.require_user(self.redirect_to)


async def get_store_db() -> AsyncGenerator[Optional[AsyncSession], None]:
    """Database session for the database backend, None otherwise."""
    if settings.STORE_BACKEND != "database":
        yield None
        return
    async for session in get_async_db():
        yield session


async def get_post_store(
    db: Optional[AsyncSession] = Depends(get_store_db),
    client: Optional[AsyncClient] = Depends(get_supabase_client),
    adapter: SessionAdapter = Depends(get_session_adapter),
) -> PostStore:
    if settings.STORE_BACKEND == "supabase":
        if client is None:
            raise StoreUnavailableError("Supabase is not configured")
        return SupabasePostStore(client)

    user = adapter.get_current_user()
    return DatabasePostStore(db, viewer_id=user.id if user else None)
