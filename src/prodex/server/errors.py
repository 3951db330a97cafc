"""API error types and their JSON exception handlers."""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

INVALID_TASK_PAYLOAD = "Invalid task payload"
INVALID_PAYLOAD = "Invalid payload"


class PayloadValidationError(Exception):
    """A request body failed schema validation.

    Answered with 400 and the short ``code`` only; the validation errors are
    logged, not returned.
    """

    def __init__(self, code: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(code)
        self.code = code
        self.errors = errors or []


class ApiError(Exception):
    """A request that failed as a whole."""

    def __init__(self, status_code: int, error: str, details: str | None = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


async def parse_body(request: Request, model: type[ModelT], code: str) -> ModelT:
    """Decode and validate a JSON request body.

    Raises:
        PayloadValidationError: If the body is not JSON or does not match ``model``
    """
    try:
        raw = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PayloadValidationError(code, [{"msg": str(e)}]) from e
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise PayloadValidationError(code, e.errors(include_url=False)) from e


async def _payload_error_handler(request: Request, exc: PayloadValidationError) -> JSONResponse:
    logger.warning(
        "Rejected %s %s: %s (%d errors) %s",
        request.method,
        request.url.path,
        exc.code,
        len(exc.errors),
        exc.errors[:3],
    )
    return JSONResponse(status_code=400, content={"error": exc.code})


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    content: dict[str, Any] = {"error": exc.error}
    if exc.details is not None:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PayloadValidationError, _payload_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ApiError, _api_error_handler)  # type: ignore[arg-type]
