# Pydantic schemas
from app.schemas.auth import (
    AuthResponse,
    CurrentUser,
    LoginPayload,
    OAuthIdentity,
    RefreshResponse,
    RegisterPayload,
    TokenPair,
)
from app.schemas.profile import ProfileCreate, ProfileResponse, ProfileUpdate
from app.schemas.user import UserResponse

__all__ = [
    "AuthResponse",
    "CurrentUser",
    "LoginPayload",
    "OAuthIdentity",
    "ProfileCreate",
    "ProfileResponse",
    "ProfileUpdate",
    "RefreshResponse",
    "RegisterPayload",
    "TokenPair",
    "UserResponse",
]
