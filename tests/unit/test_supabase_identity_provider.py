from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from supabase import AuthError

from app.services.session import AuthEvent, AuthProviderError
from app.services.supabase_auth import SupabaseIdentityProvider, supabase_configured
from tests.utils_jwt import generate_test_jwt


@pytest.mark.asyncio
async def test_session_from_valid_token():
    token = generate_test_jwt("user-123", "writer@example.com")
    session = await SupabaseIdentityProvider(None, token).get_session()

    assert session.user.id == "user-123"
    assert session.user.email == "writer@example.com"
    assert session.access_token == token


@pytest.mark.asyncio
async def test_expired_token_is_anonymous():
    token = generate_test_jwt("user-123", expires_in=timedelta(seconds=-10))
    assert await SupabaseIdentityProvider(None, token).get_session() is None


@pytest.mark.asyncio
async def test_garbage_token_is_anonymous():
    assert await SupabaseIdentityProvider(None, "not-a-jwt").get_session() is None
    assert await SupabaseIdentityProvider(None, None).get_session() is None


@pytest.mark.asyncio
async def test_sign_in_without_client_is_unavailable():
    with pytest.raises(AuthProviderError) as exc_info:
        await SupabaseIdentityProvider(None).sign_in("a@b.co", "secret1")
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_sign_in_rejected_maps_to_401():
    client = MagicMock()
    client.auth.sign_in_with_password = AsyncMock(side_effect=AuthError("Invalid login credentials", None))

    with pytest.raises(AuthProviderError) as exc_info:
        await SupabaseIdentityProvider(client).sign_in("a@b.co", "wrong-password")
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid login credentials"


@pytest.mark.asyncio
async def test_sign_in_returns_session():
    client = MagicMock()
    user = MagicMock(id="user-9", email="a@b.co")
    response = MagicMock()
    response.session = MagicMock(access_token="access", refresh_token="refresh", expires_in=3600, user=user)
    client.auth.sign_in_with_password = AsyncMock(return_value=response)

    provider = SupabaseIdentityProvider(client)
    session = await provider.sign_in("a@b.co", "secret1")

    assert session.user.id == "user-9"
    assert session.refresh_token == "refresh"
    assert provider.access_token == "access"


@pytest.mark.asyncio
async def test_sign_out_revokes_token():
    client = MagicMock()
    client.auth.admin.sign_out = AsyncMock()

    provider = SupabaseIdentityProvider(client, "token-abc")
    await provider.sign_out()

    client.auth.admin.sign_out.assert_awaited_once_with("token-abc")
    assert provider.access_token is None


def test_on_change_filters_unknown_events():
    client = MagicMock()
    received = []
    provider = SupabaseIdentityProvider(client)
    provider.on_change(lambda event, session: received.append((event, session)))

    forward = client.auth.on_auth_state_change.call_args[0][0]
    forward("SIGNED_OUT", None)
    forward("PASSWORD_RECOVERY", None)

    assert received == [(AuthEvent.SIGNED_OUT, None)]


def test_on_change_without_client_is_noop():
    subscription = SupabaseIdentityProvider(None).on_change(lambda event, session: None)
    subscription.unsubscribe()
    assert subscription.active is False


def test_supabase_configured(monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "SUPABASE_URL", "")
    assert supabase_configured() is False
    monkeypatch.setattr(settings, "SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setattr(settings, "SUPABASE_ANON_KEY", "anon")
    assert supabase_configured() is True
