"""Snapshot read route."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends

from prodex.server.dependencies import get_sync_service
from prodex.server.errors import ApiError
from prodex.server.models import ErrorResponse
from prodex.server.sync_service import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["data"])


@router.get(
    "/data",
    responses={500: {"model": ErrorResponse}},
    summary="Read the full snapshot",
    description="All five collections for the current user, creating the user on first access.",
)
async def get_data(
    service: Annotated[SyncService, Depends(get_sync_service)],
) -> dict[str, Any]:
    try:
        snapshot = await service.get_snapshot()
    except Exception as e:
        logger.exception("Failed to fetch data")
        raise ApiError(500, "Failed to fetch data") from e
    return {"data": snapshot.to_dict()}
