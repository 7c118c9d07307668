"""Authentication-related request and response schemas."""

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    """Payload for user registration."""

    email: str
    password: str
    name: str


class LoginRequest(BaseModel):
    """Payload for user login."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """JWT response payload."""

    access_token: str
    token_type: str = "bearer"


class AuthUserResponse(BaseModel):
    """User response for auth endpoints."""

    id: int
    email: str
    name: str
    roles: list[str]
    is_admin: bool
