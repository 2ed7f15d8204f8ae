"""Dependency injection for FastAPI routes.

The httpx client, the identity provider client and the data store client are
built once at startup (see ``main.lifespan``) and stored on ``app.state``.
Routes receive the pipeline through ``Depends(get_pipeline)``.
"""
from __future__ import annotations

import logging

import httpx
from fastapi import Request

from src.adapters.identity_toolkit import IdentityToolkitClient
from src.adapters.supabase_rest import SupabaseRestClient
from src.server.middleware import MiddlewarePipeline
from src.server.settings import Settings

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings, http_client: httpx.AsyncClient) -> MiddlewarePipeline:
    """Wire the service clients into a pipeline."""
    identity = IdentityToolkitClient(
        http_client,
        api_key=settings.FIREBASE_WEB_API_KEY,
        base_url=settings.IDENTITY_TOOLKIT_BASE_URL,
    )
    store = SupabaseRestClient(
        http_client,
        url=settings.SUPABASE_URL,
        service_key=settings.SUPABASE_SERVICE_ROLE_KEY,
    )

    missing = settings.missing_required()
    if missing:
        logger.warning("Starting with missing settings: %s", ", ".join(missing))

    return MiddlewarePipeline(settings, identity, store)


def get_pipeline(request: Request) -> MiddlewarePipeline:
    return request.app.state.pipeline
