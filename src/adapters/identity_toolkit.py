"""Async client for the Firebase Identity Toolkit REST API."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from src.models.account import Account, TokenBundle
from src.server.errors import (
    ConfigurationError,
    IdentityProviderError,
    UnauthenticatedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Provider answers a bad web API key with a 400 whose message starts with this.
INVALID_API_KEY_PREFIX = "API key not valid"


def _provider_message(response: httpx.Response, fallback: str) -> str:
    """Pull ``error.message`` out of a provider error body."""
    try:
        payload = response.json()
    except ValueError:
        return fallback
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return fallback


class IdentityToolkitClient:
    """Thin wrapper over the ``accounts:*`` endpoints.

    The underlying ``httpx.AsyncClient`` is owned by the application and
    shared across requests. Nothing is retried: a provider failure is raised
    to the caller as soon as the response arrives.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: Optional[str],
        base_url: str = "https://identitytoolkit.googleapis.com/v1",
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _require_key(self) -> str:
        if not self._api_key:
            raise ConfigurationError("Firebase Web API Key not configured")
        return self._api_key

    async def _post(self, operation: str, body: Dict[str, Any], fallback_message: str) -> Dict[str, Any]:
        url = f"{self._base_url}/accounts:{operation}"
        params = {"key": self._require_key()}

        try:
            response = await self._http.post(
                url,
                params=params,
                json=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.error("Identity provider request failed for accounts:%s: %s", operation, exc)
            raise IdentityProviderError("Identity provider request failed") from exc

        if not response.is_success:
            message = _provider_message(response, fallback_message)
            logger.warning(
                "Identity provider responded with status %s for accounts:%s: %s",
                response.status_code,
                operation,
                message,
            )
            if message.startswith(INVALID_API_KEY_PREFIX):
                raise ConfigurationError(message)
            raise IdentityProviderError(message, upstream_status=response.status_code)

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as exc:
            preview = response.text[:200]
            logger.error("Failed to decode identity provider response for accounts:%s: %s", operation, preview)
            raise IdentityProviderError("Invalid JSON response from identity provider") from exc

    async def verify_token(self, token: str) -> Account:
        """Resolve an ID token to the account it was issued for.

        Args:
            token: Firebase ID token (without the ``Bearer`` prefix)

        Returns:
            The single account the provider returns for a valid token

        Raises:
            ConfigurationError: The web API key is not configured
            UnauthenticatedError: The provider rejected the token or found no account
            IdentityProviderError: The provider was unreachable or failed server side
        """
        try:
            data = await self._post("lookup", {"idToken": token}, "Invalid or expired token")
        except IdentityProviderError as exc:
            if exc.upstream_status is not None and exc.upstream_status < 500:
                raise UnauthenticatedError(exc.message) from exc
            raise

        users = data.get("users") or []
        if not users:
            raise UnauthenticatedError("Invalid token: No user found")

        # accounts:lookup returns exactly one user for a valid ID token.
        return Account.model_validate(users[0])

    async def sign_in(self, email: str, password: str) -> TokenBundle:
        """Password sign-in.

        Raises:
            UnauthenticatedError: Wrong email/password or a disabled account
        """
        body = {"email": email, "password": password, "returnSecureToken": True}
        try:
            data = await self._post("signInWithPassword", body, "Invalid login credentials")
        except IdentityProviderError as exc:
            if exc.upstream_status is not None and exc.upstream_status < 500:
                raise UnauthenticatedError(exc.message) from exc
            raise
        return TokenBundle.model_validate(data)

    async def sign_up(self, email: str, password: str, display_name: str) -> TokenBundle:
        """Create a password account.

        Raises:
            ValidationError: The provider refused the input (e.g. ``EMAIL_EXISTS``)
        """
        body = {
            "email": email,
            "password": password,
            "displayName": display_name,
            "returnSecureToken": True,
        }
        try:
            data = await self._post("signUp", body, "Failed to create Firebase user")
        except IdentityProviderError as exc:
            if exc.upstream_status is not None and exc.upstream_status < 500:
                raise ValidationError(exc.message) from exc
            raise
        return TokenBundle.model_validate(data)

    async def delete_account(self, id_token: str) -> None:
        """Delete the account that ``id_token`` was issued for."""
        await self._post("delete", {"idToken": id_token}, "Failed to delete Firebase user")
        logger.info("Deleted identity provider account")
