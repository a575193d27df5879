"""
Supabase Auth as the identity provider.

Access tokens are verified locally against the project JWT secret; sign-in,
sign-up and revocation go through the Supabase Auth API. A fresh client is
created per request so one caller's token never leaks into another's.
"""
import logging
from typing import Optional

import jwt
from fastapi import status
from supabase import AsyncClient, AsyncClientOptions, AuthError, acreate_client

from app.core.config import settings
from app.schemas.auth import AuthSession, CurrentUser
from app.services.session import (
    AuthEvent,
    AuthProviderError,
    IdentityProvider,
    ProviderListener,
    RegistrationResult,
    Subscription,
)

logger = logging.getLogger(__name__)

_KNOWN_EVENTS = {event.value for event in AuthEvent}


def supabase_configured() -> bool:
    return bool(settings.SUPABASE_URL and settings.SUPABASE_ANON_KEY)


async def create_supabase_client(access_token: Optional[str] = None) -> AsyncClient:
    """
    Create a Supabase client for one request.

    With an access token, PostgREST calls run as that user so RLS policies
    see auth.uid(); without one they run as the anon role.
    """
    if not supabase_configured():
        raise ValueError("Supabase URL and anon key must be configured")

    client = await acreate_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_ANON_KEY,
        options=AsyncClientOptions(persist_session=False, auto_refresh_token=False),
    )
    if access_token:
        client.postgrest.auth(access_token)
    return client


def decode_access_token(token: str) -> dict:
    """Verify a Supabase access token and return its claims."""
    return jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
    )


def _to_auth_session(session) -> Optional[AuthSession]:
    if session is None or session.user is None:
        return None
    return AuthSession(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        user=CurrentUser(id=str(session.user.id), email=session.user.email),
    )


class SupabaseIdentityProvider(IdentityProvider):
    """
    Identity provider backed by a Supabase client and the caller's token.

    The client may be None when Supabase is not configured; reading the
    session still works from the token alone.
    """

    def __init__(self, client: Optional[AsyncClient], access_token: Optional[str] = None):
        self.client = client
        self.access_token = access_token

    def _require_client(self) -> AsyncClient:
        if self.client is None:
            raise AuthProviderError("Identity provider is not configured",
                                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        return self.client

    async def get_session(self) -> Optional[AuthSession]:
        if not self.access_token:
            return None
        try:
            claims = decode_access_token(self.access_token)
        except jwt.ExpiredSignatureError:
            logger.info("Access token expired, treating caller as anonymous")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected access token: {e}")
            return None

        return AuthSession(
            access_token=self.access_token,
            user=CurrentUser(id=claims["sub"], email=claims.get("email")),
        )

    def on_change(self, listener: ProviderListener):
        if self.client is None:
            return Subscription(lambda: None)

        def forward(event, session):
            if event not in _KNOWN_EVENTS:
                return
            listener(AuthEvent(event), _to_auth_session(session))

        return self.client.auth.on_auth_state_change(forward)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        client = self._require_client()
        try:
            response = await client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            raise AuthProviderError(e.message, e, status_code=status.HTTP_401_UNAUTHORIZED) from e

        session = _to_auth_session(response.session)
        if session is None:
            raise AuthProviderError("Sign-in did not return a session", status_code=status.HTTP_401_UNAUTHORIZED)
        self.access_token = session.access_token
        return session

    async def sign_up(self, email: str, password: str) -> RegistrationResult:
        client = self._require_client()
        try:
            response = await client.auth.sign_up({"email": email, "password": password})
        except AuthError as e:
            raise AuthProviderError(e.message, e) from e

        if response.user is None:
            raise AuthProviderError("Registration did not return a user")
        return RegistrationResult(
            user=CurrentUser(id=str(response.user.id), email=response.user.email),
            session=_to_auth_session(response.session),
        )

    async def sign_out(self) -> None:
        if not self.access_token:
            return
        token, self.access_token = self.access_token, None
        if self.client is None:
            return
        try:
            await self.client.auth.admin.sign_out(token)
        except AuthError as e:
            raise AuthProviderError(e.message, e) from e
