"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.server.deps import build_pipeline
from src.server.middleware import MiddlewarePipeline
from src.server.responses import error_response
from src.server.routers import health, users
from src.server.settings import settings

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared HTTP client and service clients; close them on shutdown."""
    if getattr(app.state, "pipeline", None) is not None:
        # Pipeline injected by create_app(); nothing to own.
        yield
        return

    logger.info("Starting application...")
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as http_client:
        app.state.pipeline = build_pipeline(settings, http_client)
        yield
        logger.info("Shutting down application...")
        app.state.pipeline = None


def create_app(pipeline: Optional[MiddlewarePipeline] = None) -> FastAPI:
    """Build the application.

    Args:
        pipeline: Pre-built pipeline to use instead of the one created at
            startup from ``settings``
    """
    app = FastAPI(
        title="Identity User Service",
        description="User registration, login and lookup backed by Firebase and Supabase",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Give framework errors (unknown path, wrong method) the standard envelope."""
        logger.warning(
            "Request %s %s rejected with %s: %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.detail,
        )
        return error_response(str(exc.detail), exc.status_code, additional_headers=exc.headers)

    # CORS is answered by the pipeline on each route, not by CORSMiddleware.
    app.include_router(health.router)
    app.include_router(users.router)

    @app.get("/")
    async def root():
        """Root endpoint.

        Returns:
            Welcome message with API info
        """
        return {
            "message": "Identity User Service API",
            "version": "1.0.0",
            "docs": "/docs"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "src.server.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=True
    )
