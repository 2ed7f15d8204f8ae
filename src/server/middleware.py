"""Request pipeline shared by every endpoint.

Each endpoint registers a handler and calls ``MiddlewarePipeline.run``. The
pipeline runs, in order and stopping at the first step that answers or fails:

1. CORS preflight short-circuit
2. configuration check (opt-in)
3. request context construction
4. bearer token authentication (opt-in)
5. the handler itself

Any exception raised by a step or by the handler is caught once, logged, and
turned into an ``{"error": ...}`` response. Callers always get exactly one
well-formed response.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from fastapi import Request
from fastapi.responses import Response
from starlette.datastructures import URL, QueryParams

from src.adapters.identity_toolkit import IdentityToolkitClient
from src.adapters.supabase_rest import SupabaseRestClient
from src.models.account import Account
from src.repositories.user_repo import UserRepository
from src.server.errors import ConfigurationError, ValidationError, message_for, status_for
from src.server.responses import error_response, handle_cors_preflight
from src.server.security import authenticate_request
from src.server.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    """Per-request state handed to handlers. Never shared between requests.

    Attributes:
        url: Parsed request URL (path and query parameters)
        users: User repository bound to the data store
        identity: Identity provider client, for handlers that sign in/up
        account: Verified account; only set when authentication was required
    """

    url: URL
    users: UserRepository
    identity: IdentityToolkitClient
    account: Optional[Account] = None


Handler = Callable[[Request, RequestContext], Awaitable[Response]]


def validate_required_config(settings: Settings) -> None:
    """Fail if any required setting is missing, naming every missing key."""
    missing = settings.missing_required()
    if missing:
        raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")


def validate_required_fields(data: Dict[str, Any], required_fields: Iterable[str]) -> None:
    """Fail with the full list of fields that are absent or empty in ``data``."""
    missing_fields = [field for field in required_fields if not data.get(field)]
    if missing_fields:
        raise ValidationError(f"Missing required fields: {', '.join(missing_fields)}")


def get_required_query_param(url: URL, param_name: str) -> str:
    value = QueryParams(url.query).get(param_name)
    if not value:
        raise ValidationError(f"Missing required query parameter: {param_name}")
    return value


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Parse the request body as a JSON object."""
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


class MiddlewarePipeline:
    """Runs endpoint handlers with CORS, config, auth and error mapping.

    The service clients are created once per process and injected here;
    the pipeline itself holds no per-request state.
    """

    def __init__(
        self,
        settings: Settings,
        identity: IdentityToolkitClient,
        store: SupabaseRestClient,
    ) -> None:
        self.settings = settings
        self.identity = identity
        self.store = store

    def build_context(self, request: Request) -> RequestContext:
        self.store.ensure_configured()
        return RequestContext(
            url=request.url,
            users=UserRepository(self.store, table=self.settings.SUPABASE_USERS_TABLE),
            identity=self.identity,
        )

    async def run(
        self,
        request: Request,
        handler: Handler,
        *,
        require_auth: bool = False,
        validate_config: bool = False,
    ) -> Response:
        try:
            cors_response = handle_cors_preflight(request)
            if cors_response is not None:
                return cors_response

            if validate_config:
                validate_required_config(self.settings)

            context = self.build_context(request)

            if require_auth:
                context.account = await authenticate_request(request, self.identity)

            return await handler(request, context)

        except Exception as exc:
            status_code = status_for(exc)
            message = message_for(exc)
            if status_code >= 500:
                logger.error(
                    "Request %s %s failed: %s",
                    request.method,
                    request.url.path,
                    message,
                    exc_info=exc,
                )
            else:
                logger.warning(
                    "Request %s %s rejected with %s: %s",
                    request.method,
                    request.url.path,
                    status_code,
                    message,
                )
            return error_response(message, status_code)
