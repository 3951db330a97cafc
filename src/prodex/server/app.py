"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prodex import __version__
from prodex.server.dependencies import get_app_config
from prodex.server.dependencies import get_storage as shared_get_storage
from prodex.server.errors import register_exception_handlers
from prodex.server.models import HealthResponse
from prodex.server.routes import data_router, resources_router, sync_router
from prodex.storage.base import ProdexStorage
from prodex.storage.sqlite_store import SQLiteStorage
from prodex.utils.config import Config, get_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler: owns the storage handle."""
    config: Config = app.state.config
    storage = SQLiteStorage(config.database_path)
    await storage.initialize()
    app.state.storage = storage
    logger.info("Prodex storage ready at %s", config.database_path)
    yield
    await storage.close()


def create_app(
    config: Config | None = None,
    title: str = "Prodex",
    description: str = "Prodex sync backend for tasks, career goals, applications and skills",
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration to use (default: loaded from the environment)
        title: API title
        description: API description

    Returns:
        Configured FastAPI application
    """
    config = config or get_config()

    app = FastAPI(
        title=title,
        description=description,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.config = config

    cors_origins = list(config.cors_origins)
    is_wildcard = cors_origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=not is_wildcard,  # Don't allow creds with wildcard
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    async def get_storage() -> ProdexStorage:
        storage: ProdexStorage = app.state.storage
        return storage

    app.dependency_overrides[shared_get_storage] = get_storage
    app.dependency_overrides[get_app_config] = lambda: config

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(data_router)
    api_v1.include_router(sync_router)
    api_v1.include_router(resources_router)
    app.include_router(api_v1)

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(ok=True, message="Prodex backend running")

    return app
