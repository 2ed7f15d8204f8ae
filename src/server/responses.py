"""Response builders and CORS preflight handling.

All endpoints answer with the same JSON envelope and cross-origin headers:
``{"error": message}`` for failures and the bare payload for successes.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, Response

PREFLIGHT_METHOD = "OPTIONS"

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Content-Type": "application/json",
}


def _headers(additional_headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    return {**CORS_HEADERS, **(additional_headers or {})}


def error_response(
    message: str,
    status_code: int = 400,
    additional_headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build the standard ``{"error": message}`` response."""
    return JSONResponse(
        content={"error": message},
        status_code=status_code,
        headers=_headers(additional_headers),
    )


def success_response(
    data: Any,
    status_code: int = 200,
    additional_headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build a success response whose body is ``data`` as JSON."""
    return JSONResponse(
        content=data,
        status_code=status_code,
        headers=_headers(additional_headers),
    )


def handle_cors_preflight(request: Request) -> Optional[Response]:
    """Answer a CORS preflight request.

    Returns:
        A 200 response with body ``ok`` for ``OPTIONS`` requests, ``None``
        for every other method so the caller continues processing.
    """
    if request.method == PREFLIGHT_METHOD:
        return Response(content="ok", status_code=200, headers=dict(CORS_HEADERS))
    return None
