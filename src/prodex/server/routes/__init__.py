"""API routes for the Prodex server."""

from prodex.server.routes.data import router as data_router
from prodex.server.routes.resources import router as resources_router
from prodex.server.routes.sync import router as sync_router

__all__ = [
    "data_router",
    "resources_router",
    "sync_router",
]
