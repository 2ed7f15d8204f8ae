"""User endpoints: register, login, get-user and protected.

Every route accepts ``OPTIONS`` for CORS preflight and delegates to the
shared ``MiddlewarePipeline``. Handlers raise errors from
``src.server.errors``; the pipeline turns them into responses.
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from src.server.deps import get_pipeline
from src.server.errors import DataStoreError, ForbiddenError, NotFoundError, UpstreamError, ValidationError
from src.server.middleware import (
    MiddlewarePipeline,
    RequestContext,
    get_required_query_param,
    read_json_body,
    validate_required_fields,
)
from src.server.responses import success_response
from src.server.schemas import (
    AuthenticatedAs,
    ErrorResponse,
    GetUserResponse,
    LoginResponse,
    ProtectedResponse,
    RegisterResponse,
    UserPublic,
)

router = APIRouter(tags=["users"])
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

_ERROR_RESPONSES = {
    status_code: {"model": ErrorResponse}
    for status_code in (400, 401, 403, 404, 500)
}


async def _register(request: Request, context: RequestContext) -> Response:
    """Create the provider account, then the user row.

    If the row cannot be written the provider account is deleted again
    before the database error is reported.
    """
    body = await read_json_body(request)
    validate_required_fields(body, ["name", "email", "password"])

    name = body["name"]
    email = body["email"]
    password = body["password"]

    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    tokens = await context.identity.sign_up(email, password, name)

    try:
        user = await context.users.create(name=name, email=email, firebase_uid=tokens.local_id)
    except DataStoreError as exc:
        message = f"Database error: {exc.message}"
        try:
            await context.identity.delete_account(tokens.id_token)
        except Exception as cleanup_exc:
            logger.error(
                "Rollback of identity provider account %s failed: %s",
                tokens.local_id,
                cleanup_exc,
            )
            message = f"{message} (identity provider account rollback failed: {cleanup_exc})"
        raise UpstreamError(message, upstream_status=exc.upstream_status) from exc

    payload = RegisterResponse(user=UserPublic(**user.sanitize()))
    return success_response(payload.model_dump(mode="json"), 201)


async def _login(request: Request, context: RequestContext) -> Response:
    body = await read_json_body(request)
    validate_required_fields(body, ["email", "password"])

    tokens = await context.identity.sign_in(body["email"], body["password"])

    user = await context.users.get_by_firebase_uid(tokens.local_id)
    if user is None:
        raise NotFoundError("User not found in database")

    payload = LoginResponse(
        user=UserPublic(**user.sanitize()),
        firebase_token=tokens.id_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
    )
    return success_response(payload.model_dump(mode="json"))


async def _get_user(request: Request, context: RequestContext) -> Response:
    """Return a user row, but only to the account that owns it."""
    user_id = get_required_query_param(context.url, "id")

    user = await context.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")

    account = context.account
    if not user.is_owned_by(account.local_id):
        raise ForbiddenError("Forbidden: You can only access your own user data")

    payload = GetUserResponse(
        user=UserPublic(**user.sanitize()),
        authenticated_as=AuthenticatedAs(email=account.email, firebase_uid=account.local_id),
    )
    return success_response(payload.model_dump(mode="json"))


async def _protected(request: Request, context: RequestContext) -> Response:
    user = await context.users.get_by_firebase_uid(context.account.local_id)
    if user is None:
        raise NotFoundError("User not found")

    payload = ProtectedResponse(user=UserPublic(**user.sanitize()))
    return success_response(payload.model_dump(mode="json"))


@router.api_route("/register", methods=["POST", "OPTIONS"], responses=_ERROR_RESPONSES)
async def register(
    request: Request,
    pipeline: MiddlewarePipeline = Depends(get_pipeline),
) -> Response:
    """Register a user.

    Body: ``{"name": str, "email": str, "password": str}``. Returns 201 with
    the created user.
    """
    return await pipeline.run(request, _register, validate_config=True)


@router.api_route("/login", methods=["POST", "OPTIONS"], responses=_ERROR_RESPONSES)
async def login(
    request: Request,
    pipeline: MiddlewarePipeline = Depends(get_pipeline),
) -> Response:
    """Sign in with email and password.

    Returns the user together with the provider's ID token, refresh token
    and expiry.
    """
    return await pipeline.run(request, _login, validate_config=True)


@router.api_route("/get-user", methods=["GET", "OPTIONS"], responses=_ERROR_RESPONSES)
async def get_user(
    request: Request,
    pipeline: MiddlewarePipeline = Depends(get_pipeline),
) -> Response:
    """Fetch ``?id=<user id>`` for the bearer of the Authorization token."""
    return await pipeline.run(request, _get_user, require_auth=True, validate_config=True)


@router.api_route("/protected", methods=["GET", "OPTIONS"], responses=_ERROR_RESPONSES)
async def protected(
    request: Request,
    pipeline: MiddlewarePipeline = Depends(get_pipeline),
) -> Response:
    """Return the record linked to the bearer's own account."""
    return await pipeline.run(request, _protected, require_auth=True, validate_config=True)
