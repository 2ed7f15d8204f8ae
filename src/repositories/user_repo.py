"""User repository backed by the Supabase ``users`` table."""
from __future__ import annotations

import logging
from typing import Optional, Union

from src.adapters.supabase_rest import SupabaseRestClient
from src.models.user import UserRecord
from src.server.errors import DataStoreError

logger = logging.getLogger(__name__)


class UserRepository:
    """Reads and writes UserRecords through the PostgREST client."""

    def __init__(self, store: SupabaseRestClient, table: str = "users") -> None:
        self._store = store
        self._table = table

    async def get_by_id(self, user_id: Union[int, str]) -> Optional[UserRecord]:
        """Look up a user by internal id.

        An id the store rejects (e.g. not a valid integer) is reported as
        not found.
        """
        try:
            row = await self._store.select_one(self._table, id=user_id)
        except DataStoreError as exc:
            if exc.upstream_status is None or exc.upstream_status >= 500:
                raise
            logger.info("Lookup of user %s rejected by data store: %s", user_id, exc.message)
            return None
        if row is None:
            logger.info("User %s not found", user_id)
            return None
        return UserRecord.from_row(row)

    async def get_by_firebase_uid(self, firebase_uid: str) -> Optional[UserRecord]:
        row = await self._store.select_one(self._table, firebase_uid=firebase_uid)
        if row is None:
            logger.info("No user linked to account %s", firebase_uid)
            return None
        return UserRecord.from_row(row)

    async def create(self, *, name: str, email: str, firebase_uid: str) -> UserRecord:
        """Insert a new user linked to ``firebase_uid``.

        Raises:
            DataStoreError: The insert was rejected (e.g. duplicate ``firebase_uid``)
        """
        row = await self._store.insert(
            self._table,
            {"name": name, "email": email, "firebase_uid": firebase_uid},
        )
        user = UserRecord.from_row(row)
        logger.info("Created user %s for account %s", user.id, firebase_uid)
        return user
