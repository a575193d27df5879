"""Tests for SessionState and SessionAdapter with an in-memory provider."""

from typing import List, Optional

import pytest

from app.schemas.auth import AuthSession, CurrentUser
from app.services.async_error_handler import FormValidationError
from app.services.session import (
    AuthEvent,
    AuthProviderError,
    IdentityProvider,
    LoginRequiredError,
    RegistrationResult,
    SessionAdapter,
    SessionLoadingError,
    SessionState,
    Subscription,
    build_login_url,
)


def make_session(user_id="user-1", email="reader@example.com") -> AuthSession:
    return AuthSession(access_token="token", user=CurrentUser(id=user_id, email=email))


class FakeProvider(IdentityProvider):
    def __init__(self, session: Optional[AuthSession] = None, fail_sign_out=False):
        self.session = session
        self.fail_sign_out = fail_sign_out
        self.listeners: List = []
        self.sign_out_calls = 0

    async def get_session(self):
        return self.session

    def on_change(self, listener):
        self.listeners.append(listener)
        return Subscription(lambda: self.listeners.remove(listener))

    def push(self, event, session):
        for listener in list(self.listeners):
            listener(event, session)

    async def sign_in(self, email, password):
        if password != "secret1":
            raise AuthProviderError("Invalid login credentials", status_code=401)
        self.session = make_session(email=email)
        return self.session

    async def sign_up(self, email, password):
        return RegistrationResult(user=CurrentUser(id="new-user", email=email))

    async def sign_out(self):
        self.sign_out_calls += 1
        if self.fail_sign_out:
            raise AuthProviderError("network down")


class TestSessionState:
    def test_starts_loading_without_user(self):
        state = SessionState()
        assert state.loading is True
        assert state.user is None

    def test_listeners_receive_changes_until_unsubscribed(self):
        state = SessionState()
        seen = []
        subscription = state.subscribe(lambda event, s: seen.append((event, s.user)))

        state.set(AuthEvent.SIGNED_IN, make_session())
        subscription.unsubscribe()
        subscription.unsubscribe()
        state.set(AuthEvent.SIGNED_OUT, None)

        assert len(seen) == 1
        assert seen[0][0] == AuthEvent.SIGNED_IN
        assert seen[0][1].id == "user-1"
        assert subscription.active is False


class TestSessionAdapter:
    @pytest.mark.asyncio
    async def test_mount_resolves_initial_session(self):
        provider = FakeProvider(make_session())
        async with SessionAdapter(provider) as adapter:
            assert adapter.status == "authenticated"
            assert adapter.get_current_user().id == "user-1"
            assert len(provider.listeners) == 1
        assert provider.listeners == []

    @pytest.mark.asyncio
    async def test_anonymous_require_user_redirects(self):
        async with SessionAdapter(FakeProvider()) as adapter:
            assert adapter.status == "anonymous"
            with pytest.raises(LoginRequiredError) as exc_info:
                adapter.require_user("/dashboard/edit/1")
        assert exc_info.value.login_url == "/auth/login?redirect=%2Fdashboard%2Fedit%2F1"

    def test_require_user_while_loading(self):
        adapter = SessionAdapter(FakeProvider(make_session()))
        assert adapter.status == "loading"
        with pytest.raises(SessionLoadingError):
            adapter.require_user()

    @pytest.mark.asyncio
    async def test_pushed_change_updates_state(self):
        provider = FakeProvider()
        async with SessionAdapter(provider) as adapter:
            provider.push(AuthEvent.SIGNED_IN, make_session("pushed"))
            assert adapter.get_current_user().id == "pushed"
            provider.push(AuthEvent.SIGNED_OUT, None)
            assert adapter.get_current_user() is None

    @pytest.mark.asyncio
    async def test_sign_out_clears_state_even_when_provider_fails(self):
        provider = FakeProvider(make_session(), fail_sign_out=True)
        async with SessionAdapter(provider) as adapter:
            with pytest.raises(AuthProviderError):
                await adapter.sign_out()
            assert adapter.get_current_user() is None
            assert adapter.status == "anonymous"
        assert provider.sign_out_calls == 1

    @pytest.mark.asyncio
    async def test_sign_in_validates_before_provider(self):
        provider = FakeProvider()
        async with SessionAdapter(provider) as adapter:
            with pytest.raises(FormValidationError) as exc_info:
                await adapter.sign_in("not-an-email", "secret1")
            assert exc_info.value.message == "Invalid email format"

            session = await adapter.sign_in("reader@example.com", "secret1")
            assert adapter.get_current_user().email == "reader@example.com"
            assert session.access_token == "token"

    @pytest.mark.asyncio
    async def test_register_checks_password_match(self):
        async with SessionAdapter(FakeProvider()) as adapter:
            with pytest.raises(FormValidationError) as exc_info:
                await adapter.register("new@example.com", "secret1", "secret2")
            assert exc_info.value.message == "Passwords do not match"

            result = await adapter.register("new@example.com", "secret1", "secret1")
            assert result.user.id == "new-user"
            # Email confirmation pending, still anonymous
            assert adapter.get_current_user() is None


def test_build_login_url_without_redirect():
    assert build_login_url() == "/auth/login"
    assert build_login_url("/dashboard?page=2") == "/auth/login?redirect=%2Fdashboard%3Fpage%3D2"
