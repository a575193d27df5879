from typing import Optional

from pydantic import BaseModel


# Registration schemas
class UserRegister(BaseModel):
    email: str = ""
    password: str = ""
    confirm_password: str = ""


class UserRegisterResponse(BaseModel):
    user_id: Optional[str] = None
    email: str
    message: str


# Login schemas
class UserLogin(BaseModel):
    email: str = ""
    password: str = ""


class CurrentUser(BaseModel):
    """Read-only view of the identity provider's user."""
    id: str
    email: Optional[str] = None


class AuthSession(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user: CurrentUser


class MessageResponse(BaseModel):
    message: str


# Error response schema
class ErrorDetail(BaseModel):
    code: str
    message: str
    details: dict = {}


class ErrorResponse(BaseModel):
    error: ErrorDetail
