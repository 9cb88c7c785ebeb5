"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import settings
from ..matching import ColumnMatchingService
from .routes import router

logger = logging.getLogger(__name__)

# Global service instance
_service: Optional[ColumnMatchingService] = None


def get_service() -> ColumnMatchingService:
    """Get the global matching service instance."""
    global _service
    if _service is None:
        _service = ColumnMatchingService()
    return _service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    global _service
    service = get_service()
    logger.info(f"Available providers: {', '.join(service.list_available_providers())}")
    yield
    # Shutdown
    service.close()
    _service = None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="HeaderMatch",
        description="AI-assisted column header matching",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(router, prefix="/api")

    return app
