"""Pytest configuration and fixtures.

Shared fixtures for the test suite. External services are replaced by
in-memory fakes so that no test reaches the network.

Main fixtures:
- test_settings: Settings with every required key present
- fake_identity: in-memory identity provider (sign up / sign in / lookup / delete)
- fake_store: in-memory ``users`` table with PostgREST-like select/insert
- pipeline: MiddlewarePipeline wired to the fakes
- client: FastAPI test client for an app built around ``pipeline``
- make_request: builds a bare starlette Request for pipeline unit tests
"""
import itertools
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from src.models.account import Account, TokenBundle
from src.server.errors import ConfigurationError, DataStoreError, UnauthenticatedError, ValidationError
from src.server.main import create_app
from src.server.middleware import MiddlewarePipeline
from src.server.settings import Settings


class FakeIdentityProvider:
    """Stand-in for IdentityToolkitClient keeping accounts in memory."""

    def __init__(self) -> None:
        self.accounts: Dict[str, Dict[str, str]] = {}
        self.tokens: Dict[str, str] = {}
        self._ids = itertools.count(1)

    def _issue(self, uid: str) -> TokenBundle:
        token = f"token-{uid}"
        self.tokens[token] = uid
        return TokenBundle(
            idToken=token,
            refreshToken=f"refresh-{uid}",
            expiresIn="3600",
            localId=uid,
            email=self.accounts[uid]["email"],
        )

    async def sign_up(self, email: str, password: str, display_name: str) -> TokenBundle:
        if any(acc["email"] == email for acc in self.accounts.values()):
            raise ValidationError("EMAIL_EXISTS")
        uid = f"uid-{next(self._ids)}"
        self.accounts[uid] = {"email": email, "password": password, "name": display_name}
        return self._issue(uid)

    async def sign_in(self, email: str, password: str) -> TokenBundle:
        for uid, acc in self.accounts.items():
            if acc["email"] == email and acc["password"] == password:
                return self._issue(uid)
        raise UnauthenticatedError("INVALID_LOGIN_CREDENTIALS")

    async def verify_token(self, token: str) -> Account:
        uid = self.tokens.get(token)
        if uid is None or uid not in self.accounts:
            raise UnauthenticatedError("INVALID_ID_TOKEN")
        acc = self.accounts[uid]
        return Account(localId=uid, email=acc["email"], displayName=acc["name"], emailVerified=False)

    async def delete_account(self, id_token: str) -> None:
        uid = self.tokens.pop(id_token)
        self.accounts.pop(uid, None)


class FakeStore:
    """Stand-in for SupabaseRestClient backed by a list of rows."""

    def __init__(self) -> None:
        self.rows: List[Dict[str, Any]] = []
        self.configured = True
        self.fail_insert: Optional[str] = None
        self._ids = itertools.count(1)

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError(
                "Missing Supabase configuration: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required"
            )

    async def select_one(self, table: str, **filters: Any) -> Optional[Dict[str, Any]]:
        for row in self.rows:
            if all(str(row.get(column)) == str(value) for column, value in filters.items()):
                return dict(row)
        return None

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.fail_insert:
            raise DataStoreError(self.fail_insert, upstream_status=409)
        if any(existing["firebase_uid"] == row["firebase_uid"] for existing in self.rows):
            raise DataStoreError(
                'duplicate key value violates unique constraint "users_firebase_uid_key"',
                upstream_status=409,
            )
        stored = {
            "id": next(self._ids),
            **row,
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
            "password_hash": "not-for-clients",
        }
        self.rows.append(stored)
        return dict(stored)


@pytest.fixture
def test_settings():
    """Settings with every required key present; ignores any local .env file."""
    return Settings(
        _env_file=None,
        SUPABASE_URL="https://project.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="service-role-key",
        FIREBASE_WEB_API_KEY="web-api-key",
    )


@pytest.fixture
def fake_identity():
    return FakeIdentityProvider()


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def pipeline(test_settings, fake_identity, fake_store):
    return MiddlewarePipeline(test_settings, fake_identity, fake_store)


@pytest.fixture
def client(pipeline):
    """FastAPI test client for an app wired to the fakes.

    Usage:
        def test_endpoint(client):
            response = client.get("/healthz")
            assert response.status_code == 200
    """
    return TestClient(create_app(pipeline))


@pytest.fixture
def registered_user(client):
    """Register a user through the API and return its credentials and body."""
    credentials = {"name": "Ada Lovelace", "email": "ada@example.com", "password": "secret123"}
    response = client.post("/register", json=credentials)
    assert response.status_code == 201
    return {**credentials, "user": response.json()["user"]}


@pytest.fixture
def auth_headers(client, registered_user):
    """Authorization header for ``registered_user`` obtained via /login."""
    response = client.post(
        "/login",
        json={"email": registered_user["email"], "password": registered_user["password"]},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['firebase_token']}"}


@pytest.fixture
def make_request():
    """Build a bare starlette Request for calling the pipeline directly."""

    def _make(
        method: str = "GET",
        path: str = "/",
        headers: Optional[Dict[str, str]] = None,
        query: Optional[Dict[str, str]] = None,
    ) -> Request:
        scope = {
            "type": "http",
            "method": method,
            "scheme": "http",
            "server": ("testserver", 80),
            "root_path": "",
            "path": path,
            "query_string": urlencode(query or {}).encode(),
            "headers": [
                (key.lower().encode(), value.encode())
                for key, value in (headers or {}).items()
            ],
        }
        return Request(scope)

    return _make
