"""Pydantic schemas for response payloads.

Request bodies are not modelled here: handlers read them as raw JSON so that
a missing field is reported as ``Missing required fields: ...`` with every
absent field listed, instead of FastAPI's 422 validation error.
"""
from typing import Optional, Union

from pydantic import BaseModel, Field


# ============================================================================
# User
# ============================================================================

class UserPublic(BaseModel):
    """Client-visible user fields.

    Attributes:
        id: Internal user ID
        name: Display name
        email: Email address
        firebase_uid: Identity provider account id
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """
    id: Union[int, str]
    name: Optional[str] = None
    email: Optional[str] = None
    firebase_uid: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AuthenticatedAs(BaseModel):
    email: Optional[str] = None
    firebase_uid: str


# ============================================================================
# Endpoint responses
# ============================================================================

class RegisterResponse(BaseModel):
    """Body of a successful ``POST /register`` (status 201)."""
    success: bool = True
    user: UserPublic


class LoginResponse(BaseModel):
    """Body of a successful ``POST /login``.

    Example:
        {
            "success": true,
            "user": {"id": 1, "name": "Ada", "email": "ada@example.com", ...},
            "firebase_token": "eyJhbGciOi...",
            "refresh_token": "AMf-vBx...",
            "expires_in": "3600"
        }
    """
    success: bool = True
    user: UserPublic
    firebase_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[str] = None


class GetUserResponse(BaseModel):
    success: bool = True
    user: UserPublic
    authenticated_as: AuthenticatedAs


class ProtectedResponse(BaseModel):
    user: UserPublic


class ErrorResponse(BaseModel):
    """Body of every failed request."""
    error: str = Field(..., description="Human readable failure message")
