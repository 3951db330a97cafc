"""Shared dependencies for API routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from prodex.server.sync_service import SyncService
from prodex.storage.base import ProdexStorage
from prodex.utils.config import Config, get_config


async def get_storage() -> ProdexStorage:
    """
    Dependency to get storage instance.

    This is overridden by the application at startup.
    """
    raise NotImplementedError("Storage not configured")


def get_app_config() -> Config:
    return get_config()


async def get_sync_service(
    storage: Annotated[ProdexStorage, Depends(get_storage)],
    config: Annotated[Config, Depends(get_app_config)],
) -> SyncService:
    """Sync service bound to the configured demo user."""
    return SyncService(storage, user_email=config.demo_email)
