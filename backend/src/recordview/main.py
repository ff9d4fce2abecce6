"""Main module for the Record View API service."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from recordview.api.v1.api import api_router
from recordview.core.auth import decode_token
from recordview.core.config import Settings, get_settings
from recordview.services.data_access.factory import DataAccessFactory
from recordview.services.viewer_registry import ViewerRegistry

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services once at application startup."""
    logger.info("Initializing application services...")
    app.state.services_initialized = False
    try:
        logger.info(f"Creating data access service for provider: {settings.data_access_provider}")
        app.state.data_access_service = DataAccessFactory.create_service(settings)
        if app.state.data_access_service is None:
            logger.error(f"Failed to create data access service for provider: {settings.data_access_provider}")
        else:
            app.state.viewer_registry = ViewerRegistry(app.state.data_access_service, settings)
            app.state.services_initialized = True
            logger.info("All application services initialized successfully")
    except Exception as e:
        logger.error(f"Error initializing services: {str(e)}")

    yield

    registry = getattr(app.state, "viewer_registry", None)
    if registry is not None:
        registry.close_all()


app = FastAPI(
    title=settings.project_name,
    openapi_url=f"{settings.api_v1_str}/openapi.json",
    redirect_slashes=False,  # Disable automatic redirects for trailing slashes
    lifespan=lifespan,
)

# Configure CORS with specific settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    expose_headers=["Content-Length", "Content-Range"],
    max_age=600,  # Cache preflight requests for 10 minutes
)


# Authentication middleware
class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware to check authentication for protected routes."""

    async def dispatch(self, request: Request, call_next):
        """Check authentication for protected routes.

        Args:
            request: The FastAPI request object.
            call_next: The next middleware or endpoint handler.

        Returns:
            Response: The response from the next middleware or endpoint.
        """
        # Public paths that don't require authentication
        public_paths = [
            "/ping",
            "/docs",
            "/redoc",
            f"{settings.api_v1_str}/auth/login",
            f"{settings.api_v1_str}/openapi.json",
        ]

        if any(request.url.path.startswith(path) for path in public_paths):
            return await call_next(request)

        # Check for OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return Response(
                content='{"detail":"Not authenticated"}',
                status_code=403,
                media_type="application/json"
            )

        token = auth_header.replace("Bearer ", "")
        if decode_token(token) is None:
            return Response(
                content='{"detail":"Invalid or expired token"}',
                status_code=403,
                media_type="application/json"
            )

        return await call_next(request)


app.add_middleware(AuthMiddleware)

app.include_router(api_router, prefix=settings.api_v1_str)


@app.get("/ping")
async def pong(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Ping the API to check if it's running."""
    return {
        "ping": "pong!",
        "environment": settings.environment,
        "testing": settings.testing,
    }


def run() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run("recordview.main:app", host="0.0.0.0", port=8000)
