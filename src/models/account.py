"""Identity provider account and token models.

These mirror the JSON returned by the Identity Toolkit REST API. Field names
use the provider's camelCase keys as aliases so payloads can be validated
directly.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Account(BaseModel):
    """An authenticated principal as reported by ``accounts:lookup``.

    Attributes:
        local_id: Provider account identifier (stored as ``firebase_uid``)
        email: Account email
        email_verified: Whether the provider has verified the email
        display_name: Optional display name
        disabled: Whether the account is disabled
        created_at: Creation time in epoch milliseconds (string)
        last_login_at: Last sign-in time in epoch milliseconds (string)
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    local_id: str = Field(..., alias="localId")
    email: Optional[str] = None
    email_verified: bool = Field(default=False, alias="emailVerified")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    photo_url: Optional[str] = Field(default=None, alias="photoUrl")
    provider_user_info: List[Dict[str, Any]] = Field(default_factory=list, alias="providerUserInfo")
    password_updated_at: Optional[float] = Field(default=None, alias="passwordUpdatedAt")
    valid_since: Optional[str] = Field(default=None, alias="validSince")
    disabled: bool = False
    last_login_at: Optional[str] = Field(default=None, alias="lastLoginAt")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    custom_auth: Optional[bool] = Field(default=None, alias="customAuth")


class TokenBundle(BaseModel):
    """Tokens returned by ``accounts:signUp`` and ``accounts:signInWithPassword``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id_token: str = Field(..., alias="idToken")
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    expires_in: Optional[str] = Field(default=None, alias="expiresIn")
    local_id: str = Field(..., alias="localId")
    email: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    registered: Optional[bool] = None
