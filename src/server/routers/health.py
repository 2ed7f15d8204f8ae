"""Health check endpoints."""
from fastapi import APIRouter, Request
from typing import Dict, Any
from src.server.settings import REQUIRED_SETTINGS

router = APIRouter()


@router.get("/healthz")
async def health_check() -> Dict[str, str]:
    """Basic health check endpoint.

    Returns:
        Simple status response
    """
    return {"status": "ok"}


@router.get("/readyz")
async def readiness_check(request: Request) -> Dict[str, Any]:
    """Readiness check endpoint.

    Reports which required settings the running pipeline has. Values are
    never echoed.

    Returns:
        Status response with readiness info
    """
    settings = request.app.state.pipeline.settings
    missing = set(settings.missing_required())
    checks = {key.lower(): key not in missing for key in REQUIRED_SETTINGS}

    ready = all(checks.values())

    return {
        "status": "ok" if ready else "not_ready",
        "checks": checks
    }
