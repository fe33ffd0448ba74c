"""
Pydantic Schemas for Authentication

Request and response models for authentication endpoints.
Field rules (username length, email shape, password length) are enforced by
AuthService so that every failure maps to the same 400 error shape.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """User registration request."""

    username: str = Field(
        "",
        description="Username, 4-20 characters",
        examples=["alice1"],
    )
    email: str = Field(
        "",
        description="User email address",
        examples=["a@example.com"],
    )
    password: str = Field(
        "",
        description="Password, at least 8 characters",
        examples=["password123"],
    )


class LoginRequest(BaseModel):
    """
    User login request.

    Missing fields default to empty strings and are reported by AuthService.
    """

    email: str = Field("", description="User email address", examples=["a@example.com"])
    password: str = Field("", description="User password", examples=["password123"])


class ExternalLoginRequest(BaseModel):
    """Signed identity assertion issued by the external identity portal."""

    assertion: str = Field(..., min_length=1, description="Portal-signed JWT")


class UserSummary(BaseModel):
    """Public user fields returned after login and by /me."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: Optional[str] = None
    email: Optional[str] = None


class MeResponse(UserSummary):
    """Authenticated user including role."""

    role: str
    name: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class LoginResponse(BaseModel):
    """Login result; the session token itself travels in the cookie."""

    message: str = Field(..., examples=["Login successful"])
    user: UserSummary
