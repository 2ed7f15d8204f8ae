"""Bearer token extraction and verification against the identity provider."""
from __future__ import annotations

import logging

from fastapi import Request

from src.adapters.identity_toolkit import IdentityToolkitClient
from src.models.account import Account
from src.server.errors import UnauthenticatedError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(request: Request) -> str:
    """Return the token from ``Authorization: Bearer <token>``.

    Raises:
        UnauthenticatedError: Header missing, wrong scheme, or empty token
    """
    auth_header = request.headers.get("Authorization")

    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise UnauthenticatedError("Unauthorized: No valid Bearer token provided")

    token = auth_header[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthenticatedError("Unauthorized: Empty token provided")

    return token


async def authenticate_request(request: Request, identity: IdentityToolkitClient) -> Account:
    """Extract the bearer token from ``request`` and resolve it to an Account."""
    token = extract_bearer_token(request)
    account = await identity.verify_token(token)
    logger.debug("Authenticated request as account %s", account.local_id)
    return account
