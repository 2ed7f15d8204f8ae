"""User record model.

A UserRecord is this service's own row in the ``users`` table. It is linked
to the identity provider account through ``firebase_uid``.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Fields exposed to clients. Anything else in the row stays server side.
PUBLIC_USER_FIELDS = ("id", "name", "email", "firebase_uid", "created_at", "updated_at")


class UserRecord(BaseModel):
    """Persisted user.

    Attributes:
        id: Internal identifier assigned by the data store
        name: Display name supplied at registration
        email: Email supplied at registration
        firebase_uid: Identity provider account id that owns this record
        created_at: Row creation timestamp as returned by the store
        updated_at: Row update timestamp as returned by the store
    """

    # Unknown columns are kept on the model; sanitize() drops them.
    model_config = ConfigDict(extra="allow")

    id: Union[int, str]
    name: Optional[str] = None
    email: Optional[str] = None
    firebase_uid: str = Field(..., description="Identity provider account id")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserRecord":
        """Create a UserRecord from a data store row."""
        return cls.model_validate(row)

    def is_owned_by(self, account_id: str) -> bool:
        return self.firebase_uid == account_id

    def sanitize(self) -> Dict[str, Any]:
        """Return only the client-visible fields."""
        return {field: getattr(self, field) for field in PUBLIC_USER_FIELDS}
