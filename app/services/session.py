"""
Session state and identity adapter.

SessionState is a single observable value: listeners are registered with
subscribe() and removed through the returned Subscription. SessionAdapter
binds that state to an identity provider for the lifetime of an
``async with`` block.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional
from urllib.parse import quote

from app.core.config import settings
from app.schemas.auth import AuthSession, CurrentUser
from app.services.async_error_handler import FormValidationError
from app.utils.logger import auth_logger
from app.utils.validation import (
    validate_all,
    validate_email,
    validate_password,
    validate_password_match,
)


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class LoginRequiredError(Exception):
    """Raised when a page needs a user and the session resolved anonymous."""

    def __init__(self, redirect_to: Optional[str] = None):
        self.redirect_to = redirect_to
        self.login_url = build_login_url(redirect_to)
        super().__init__("Authentication required")


class SessionLoadingError(Exception):
    """The initial session has not been resolved yet."""
    pass


class AuthProviderError(Exception):
    """The identity provider rejected a sign-in, sign-up or sign-out."""

    def __init__(self, message: str, original_error: Optional[Exception] = None, status_code: int = 400):
        self.message = message
        self.original_error = original_error
        self.status_code = status_code
        super().__init__(self.message)


def build_login_url(redirect_to: Optional[str] = None) -> str:
    if not redirect_to:
        return settings.LOGIN_PATH
    return f"{settings.LOGIN_PATH}?redirect={quote(redirect_to, safe='')}"


@dataclass
class RegistrationResult:
    user: CurrentUser
    # None when the provider requires email confirmation first
    session: Optional[AuthSession] = None


SessionListener = Callable[[AuthEvent, "SessionState"], None]
ProviderListener = Callable[[AuthEvent, Optional[AuthSession]], None]


class Subscription:
    """Handle returned by subscribe(); unsubscribe() is idempotent."""

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._cancel()


class SessionState:
    """Current session plus a loading flag, observable by listeners."""

    def __init__(self):
        self.session: Optional[AuthSession] = None
        self.loading = True
        self._listeners: List[SessionListener] = []

    @property
    def user(self) -> Optional[CurrentUser]:
        return self.session.user if self.session else None

    def set(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        self.session = session
        self.loading = False
        for listener in list(self._listeners):
            listener(event, self)

    def subscribe(self, listener: SessionListener) -> Subscription:
        self._listeners.append(listener)

        def cancel():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(cancel)


class IdentityProvider(ABC):
    """Contract for the external auth service."""

    @abstractmethod
    async def get_session(self) -> Optional[AuthSession]:
        ...

    @abstractmethod
    def on_change(self, listener: ProviderListener):
        """Register for pushed session changes; returns an object with unsubscribe()."""
        ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> RegistrationResult:
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        ...


class SessionAdapter:
    """
    Read-only view of the provider's session for one request.

    Usage:
        async with SessionAdapter(provider) as adapter:
            user = adapter.require_user("/dashboard")
    """

    def __init__(self, provider: IdentityProvider, state: Optional[SessionState] = None):
        self.provider = provider
        self.state = state or SessionState()
        self._provider_subscription = None

    async def __aenter__(self) -> "SessionAdapter":
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    async def mount(self) -> None:
        """Subscribe to provider changes, then resolve the initial session once."""
        self._provider_subscription = self.provider.on_change(self._on_provider_change)
        session = await self.provider.get_session()
        # A pushed change may have landed while get_session was in flight
        if self.state.loading:
            self.state.set(AuthEvent.INITIAL_SESSION, session)

    def unmount(self) -> None:
        if self._provider_subscription is not None:
            self._provider_subscription.unsubscribe()
            self._provider_subscription = None

    def _on_provider_change(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        self.state.set(event, session)

    @property
    def status(self) -> str:
        if self.state.loading:
            return "loading"
        return "authenticated" if self.state.user else "anonymous"

    def get_current_user(self) -> Optional[CurrentUser]:
        return self.state.user

    def require_user(self, redirect_to: Optional[str] = None) -> CurrentUser:
        """Return the user or raise LoginRequiredError (SessionLoadingError while unresolved)."""
        if self.state.loading:
            raise SessionLoadingError("Session is still loading")
        user = self.state.user
        if user is None:
            raise LoginRequiredError(redirect_to)
        return user

    async def sign_in(self, email: str, password: str) -> AuthSession:
        error = validate_all([validate_email(email), validate_password(password)])
        if error:
            raise FormValidationError(error)

        session = await self.provider.sign_in(email, password)
        self.state.set(AuthEvent.SIGNED_IN, session)
        auth_logger.success("User signed in", "LOGIN", user_id=session.user.id)
        return session

    async def register(self, email: str, password: str, confirm_password: str) -> RegistrationResult:
        error = validate_all([
            validate_email(email),
            validate_password(password),
            validate_password_match(password, confirm_password),
        ])
        if error:
            raise FormValidationError(error)

        result = await self.provider.sign_up(email, password)
        if result.session is not None:
            self.state.set(AuthEvent.SIGNED_IN, result.session)
        auth_logger.success("User registered", "REGISTER", user_id=result.user.id,
                            confirmed=result.session is not None)
        return result

    async def sign_out(self) -> None:
        """Revoke with the provider; local state is cleared even if that fails."""
        user = self.state.user
        try:
            await self.provider.sign_out()
        finally:
            self.state.set(AuthEvent.SIGNED_OUT, None)
        auth_logger.info("User signed out", "LOGOUT", user_id=user.id if user else None)
