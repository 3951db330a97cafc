"""Tests for the Prodex HTTP client."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from prodex.core.entities import Task, TaskStatus, UserSettings
from prodex.sync.client import ProdexApiError, ProdexClient, extract_error_details

# ── Helpers ───────────────────────────────────────────────────────


def _mock_response(
    status: int = 200, body: dict[str, Any] | None = None, text: str = ""
) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=body or {})
    mock_response.text = AsyncMock(return_value=text or json.dumps(body or {}))
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=False)
    return mock_response


def _client_with(response: Any) -> tuple[ProdexClient, AsyncMock]:
    client = ProdexClient("http://localhost:4000/")
    mock_session = AsyncMock()
    if isinstance(response, BaseException):
        mock_session.request = MagicMock(side_effect=response)
    else:
        mock_session.request = MagicMock(return_value=response)
    client._session = mock_session
    return client, mock_session


# ── Error details ─────────────────────────────────────────────────


class TestExtractErrorDetails:
    def test_prefers_details(self) -> None:
        text = json.dumps({"error": "Failed to sync data", "details": "disk full"})
        assert extract_error_details(text) == "disk full"

    def test_falls_back_to_error(self) -> None:
        assert extract_error_details(json.dumps({"error": "Invalid payload"})) == "Invalid payload"

    def test_raw_text(self) -> None:
        assert extract_error_details("Bad Gateway") == "Bad Gateway"

    def test_json_without_fields(self) -> None:
        assert extract_error_details("[1, 2]") == "[1, 2]"


# ── Requests ──────────────────────────────────────────────────────


class TestClientInit:
    def test_trailing_slash_stripped(self) -> None:
        assert ProdexClient("http://localhost:4000/").api_url == "http://localhost:4000"


class TestFetchSnapshot:
    async def test_decodes_snapshot(self) -> None:
        body = {
            "data": {
                "tasks": [{"id": "t1", "title": "Ship", "status": "in-progress"}],
                "goals": [],
                "applications": [],
                "skills": [],
                "settings": {"timezone": "EST", "weeklyCapacity": 30},
            }
        }
        client, session = _client_with(_mock_response(body=body))

        snapshot = await client.fetch_snapshot()

        session.request.assert_called_once_with(
            "GET", "http://localhost:4000/api/v1/data", json=None
        )
        assert snapshot.tasks[0].status == TaskStatus.IN_PROGRESS
        assert snapshot.settings.weekly_capacity == 30

    async def test_error_status(self) -> None:
        response = _mock_response(
            status=500, text=json.dumps({"error": "Failed to fetch data"})
        )
        client, _ = _client_with(response)

        with pytest.raises(ProdexApiError) as exc_info:
            await client.fetch_snapshot()

        assert exc_info.value.status_code == 500
        assert str(exc_info.value) == "Failed to fetch data"

    async def test_transport_error_has_no_status(self) -> None:
        client, _ = _client_with(aiohttp.ClientError("refused"))

        with pytest.raises(ProdexApiError, match="Connection error") as exc_info:
            await client.fetch_snapshot()

        assert exc_info.value.status_code is None

    async def test_timeout(self) -> None:
        client, _ = _client_with(asyncio.TimeoutError())

        with pytest.raises(ProdexApiError, match="timed out") as exc_info:
            await client.fetch_snapshot()

        assert exc_info.value.status_code is None


class TestPush:
    async def test_push_tasks(self) -> None:
        task = Task(id="t1", title="Ship", created_at="2026-02-20T09:00:00.000Z")
        client, session = _client_with(
            _mock_response(body={"data": {"tasks": [task.to_dict()]}})
        )

        stored = await client.push_tasks([task])

        method, url = session.request.call_args.args
        assert (method, url) == ("POST", "http://localhost:4000/api/v1/tasks/sync")
        assert session.request.call_args.kwargs["json"] == {"tasks": [task.to_dict()]}
        assert stored == [task]

    async def test_full_sync_omits_tasks(self) -> None:
        client, session = _client_with(
            _mock_response(body={"data": {}, "warnings": ["skills"]})
        )

        result = await client.full_sync(
            tasks=None, goals=[], applications=[], skills=[], settings=UserSettings()
        )

        sent = session.request.call_args.kwargs["json"]
        assert "tasks" not in sent
        assert sent["settings"]["weeklyCapacity"] == 40
        assert result.warnings == ["skills"]

    async def test_full_sync_includes_empty_tasks(self) -> None:
        client, session = _client_with(_mock_response(body={"data": {}, "warnings": []}))

        await client.full_sync(
            tasks=[], goals=[], applications=[], skills=[], settings=UserSettings()
        )

        assert session.request.call_args.kwargs["json"]["tasks"] == []


class TestLifecycle:
    async def test_context_manager_closes_session(self) -> None:
        async with ProdexClient("http://localhost:4000") as client:
            assert client._session is not None
            session = client._session

        assert client._session is None
        assert session.closed
