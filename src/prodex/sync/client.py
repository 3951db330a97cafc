"""HTTP transport for the reconciliation engine."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from prodex.core.entities import Application, Goal, Skill, Snapshot, Task, UserSettings

logger = logging.getLogger(__name__)


class ProdexApiError(Exception):
    """Error from a Prodex API call: a non-2xx answer or a transport failure."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def extract_error_details(text: str) -> str:
    """Best human-readable detail from an error body.

    JSON bodies yield their ``details`` field, else ``error``; anything else is
    returned as is.
    """
    try:
        body = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return text
    if isinstance(body, dict):
        for key in ("details", "error"):
            value = body.get(key)
            if value:
                return str(value)
    return text


@dataclass(frozen=True)
class FullSyncResponse:
    """Answer of the full multi-group push."""

    snapshot: Snapshot
    warnings: list[str] = field(default_factory=list)


class ProdexClient:
    """
    aiohttp client for the Prodex sync API.

    Usage:
        async with ProdexClient("http://localhost:4000") as client:
            snapshot = await client.fetch_snapshot()
            await client.push_tasks(snapshot.tasks)
    """

    def __init__(self, api_url: str, *, timeout: float = 30.0) -> None:
        """
        Initialize the client.

        Args:
            api_url: Base URL of the Prodex server (e.g. "http://localhost:4000")
            timeout: Total request timeout in seconds
        """
        self._api_url = api_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    @property
    def api_url(self) -> str:
        return self._api_url

    async def connect(self) -> None:
        """Open the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
            )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> ProdexClient:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an HTTP request and decode the JSON answer.

        Raises:
            ProdexApiError: On a non-2xx status, a transport error or a timeout
        """
        if not self._session:
            await self.connect()

        assert self._session is not None

        url = f"{self._api_url}{path}"
        try:
            async with self._session.request(method, url, json=json_data) as response:
                if response.status >= 400:
                    text = await response.text()
                    raise ProdexApiError(extract_error_details(text), status_code=response.status)
                result: dict[str, Any] = await response.json()
                return result
        except aiohttp.ClientError as e:
            raise ProdexApiError(f"Connection error: {e}") from e
        except asyncio.TimeoutError as e:
            raise ProdexApiError(f"Request to {path} timed out") from e

    # ========== Endpoints ==========

    async def health(self) -> dict[str, Any]:
        return await self._request("GET", "/api/health")

    async def fetch_snapshot(self) -> Snapshot:
        """Read the full snapshot."""
        result = await self._request("GET", "/api/v1/data")
        return Snapshot.from_dict(result.get("data") or {})

    async def push_tasks(self, tasks: Sequence[Task]) -> list[Task]:
        """Push the whole task collection through the task-only endpoint."""
        result = await self._request(
            "POST",
            "/api/v1/tasks/sync",
            json_data={"tasks": [t.to_dict() for t in tasks]},
        )
        data = result.get("data") or {}
        return [Task.from_dict(t) for t in data.get("tasks") or []]

    async def full_sync(
        self,
        *,
        tasks: Sequence[Task] | None,
        goals: Sequence[Goal],
        applications: Sequence[Application],
        skills: Sequence[Skill],
        settings: UserSettings,
    ) -> FullSyncResponse:
        """Push all groups through the full sync endpoint.

        ``tasks=None`` leaves the server's task group untouched.
        """
        body: dict[str, Any] = {
            "goals": [g.to_dict() for g in goals],
            "applications": [a.to_dict() for a in applications],
            "skills": [s.to_dict() for s in skills],
            "settings": settings.to_dict(),
        }
        if tasks is not None:
            body["tasks"] = [t.to_dict() for t in tasks]
        result = await self._request("POST", "/api/v1/sync", json_data=body)
        return FullSyncResponse(
            snapshot=Snapshot.from_dict(result.get("data") or {}),
            warnings=list(result.get("warnings") or []),
        )
