from fastapi import APIRouter, Depends, Response, status

from app.api.deps import RequireUser, get_session_adapter
from app.core.config import settings
from app.schemas.auth import (
    AuthSession,
    CurrentUser,
    MessageResponse,
    UserLogin,
    UserRegister,
    UserRegisterResponse,
)
from app.services.session import SessionAdapter

router = APIRouter()


def _set_session_cookie(response: Response, session: AuthSession) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.access_token,
        max_age=session.expires_in or settings.SESSION_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserRegisterResponse)
async def register(
    user_data: UserRegister,
    response: Response,
    adapter: SessionAdapter = Depends(get_session_adapter),
):
    """
    Register with email and password.

    Fields are validated locally first (email, password length, confirmation);
    when the provider signs the user in straight away the session cookie is set.
    """
    result = await adapter.register(user_data.email, user_data.password, user_data.confirm_password)

    if result.session is not None:
        _set_session_cookie(response, result.session)
        message = "Registration successful"
    else:
        message = "Registration successful. Please check your email to confirm your account."

    return UserRegisterResponse(user_id=result.user.id, email=result.user.email or user_data.email, message=message)


@router.post("/login", response_model=AuthSession)
async def login(
    credentials: UserLogin,
    response: Response,
    adapter: SessionAdapter = Depends(get_session_adapter),
):
    """Sign in with email and password; the access token is also set as a cookie."""
    session = await adapter.sign_in(credentials.email, credentials.password)
    _set_session_cookie(response, session)
    return session


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response, adapter: SessionAdapter = Depends(get_session_adapter)):
    """Revoke the session with the provider and clear the cookie."""
    await adapter.sign_out()
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Signed out")


@router.get("/me", response_model=CurrentUser)
async def get_me(current_user: CurrentUser = Depends(RequireUser())):
    return current_user
