"""Learning resource catalog routes (plain reads)."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends

from prodex.server.dependencies import get_storage
from prodex.server.errors import ApiError
from prodex.server.models import ErrorResponse
from prodex.storage.base import ProdexStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("/categories", responses={500: {"model": ErrorResponse}})
async def list_categories(
    storage: Annotated[ProdexStorage, Depends(get_storage)],
) -> dict[str, Any]:
    try:
        categories = await storage.list_resource_categories()
    except Exception as e:
        logger.exception("Failed to fetch resource categories")
        raise ApiError(500, "Failed to fetch resource categories") from e
    return {"data": [c.to_dict() for c in categories]}


@router.get(
    "/categories/{slug}",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_category(
    slug: str,
    storage: Annotated[ProdexStorage, Depends(get_storage)],
) -> dict[str, Any]:
    """One category with its resources, newest first."""
    normalized = slug.strip().lower()
    if not normalized:
        raise ApiError(400, "Category slug is required")
    try:
        found = await storage.get_resource_category(normalized)
    except Exception as e:
        logger.exception("Failed to fetch resources by category")
        raise ApiError(500, "Failed to fetch resources for category") from e
    if found is None:
        raise ApiError(404, "Category not found")

    category, resources = found
    return {
        "data": {
            "category": category.to_dict(with_count=False),
            "resources": [r.to_dict() for r in resources],
        }
    }
