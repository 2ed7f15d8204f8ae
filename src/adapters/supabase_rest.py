"""Async client helpers for the Supabase PostgREST interface."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from src.server.errors import ConfigurationError, DataStoreError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or f"status {response.status_code}"
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"status {response.status_code}"


class SupabaseRestClient:
    """Minimal PostgREST client: equality select and insert.

    Requests authenticate with the service role key, which bypasses row level
    security. The key must never reach a client.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        url: Optional[str],
        service_key: Optional[str],
    ) -> None:
        self._http = http_client
        self._url = url
        self._service_key = service_key

    @property
    def configured(self) -> bool:
        return bool(self._url and self._service_key)

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError(
                "Missing Supabase configuration: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required"
            )

    def _build_url(self, table: str) -> str:
        self.ensure_configured()
        base = self._url.rstrip("/")
        return f"{base}/rest/v1/{table}"

    def _build_headers(self, extra_headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
            "Accept": "application/json",
        }
        if extra_headers:
            headers.update(extra_headers)
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        url = self._build_url(table)
        headers = self._build_headers(extra_headers)

        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.error("Data store request failed for %s %s: %s", method, url, exc)
            raise DataStoreError("Data store request failed") from exc

        if not response.is_success:
            message = _error_message(response)
            logger.error(
                "Data store responded with status %s for %s %s: %s",
                response.status_code,
                method,
                url,
                message,
            )
            raise DataStoreError(message, upstream_status=response.status_code)

        if not response.content:
            return []

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Failed to decode data store response from %s: %s", url, response.text[:200])
            raise DataStoreError("Invalid JSON response from data store") from exc

        if isinstance(payload, dict):
            return [payload]
        return payload

    async def select_one(self, table: str, **filters: Any) -> Optional[Dict[str, Any]]:
        """Return the first row matching every ``column=value`` filter, or ``None``."""
        params = {column: f"eq.{value}" for column, value in filters.items()}
        params["select"] = "*"
        params["limit"] = "1"
        rows = await self._request("GET", table, params=params)
        return rows[0] if rows else None

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert ``row`` and return it as stored."""
        rows = await self._request(
            "POST",
            table,
            json_body=row,
            extra_headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise DataStoreError(f"Insert into {table} returned no row")
        return rows[0]
