"""Push routes: task-only fast path and full multi-group sync."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from prodex.server.dependencies import get_sync_service
from prodex.server.errors import INVALID_PAYLOAD, INVALID_TASK_PAYLOAD, ApiError, parse_body
from prodex.server.models import ErrorResponse, SyncRequest, TaskSyncRequest
from prodex.server.sync_service import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sync"])


@router.post(
    "/tasks/sync",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Push the task collection",
    description="Upsert every task in one transaction and return the stored tasks.",
)
async def sync_tasks(
    request: Request,
    service: Annotated[SyncService, Depends(get_sync_service)],
) -> dict[str, Any]:
    payload = await parse_body(request, TaskSyncRequest, INVALID_TASK_PAYLOAD)
    try:
        tasks = await service.sync_tasks(payload)
    except Exception as e:
        logger.exception("Task sync failed")
        raise ApiError(500, "Failed to sync tasks", str(e)) from e
    return {"data": {"tasks": [t.to_dict() for t in tasks]}}


@router.post(
    "/sync",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Push all entity groups",
    description=(
        "Update settings, then upsert tasks, goals, applications and skills, each in "
        "its own transaction. Failed groups are listed in warnings."
    ),
)
async def full_sync(
    request: Request,
    service: Annotated[SyncService, Depends(get_sync_service)],
) -> dict[str, Any]:
    payload = await parse_body(request, SyncRequest, INVALID_PAYLOAD)
    try:
        result = await service.full_sync(payload)
    except Exception as e:
        logger.exception("Sync failed")
        raise ApiError(500, "Failed to sync data", str(e)) from e
    return result.to_dict()
