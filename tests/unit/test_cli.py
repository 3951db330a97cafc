"""Tests for the prodex CLI."""

from __future__ import annotations

import json
import pathlib
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from prodex.cli.main import app
from prodex.core.entities import EntityType, Snapshot, Task
from prodex.sync.client import ProdexApiError
from prodex.sync.tombstones import TombstoneFileStore, TombstoneTable
from prodex.utils.config import get_config

runner = CliRunner()


def _mock_client(snapshot: Snapshot | None = None, error: Exception | None = None) -> AsyncMock:
    client = AsyncMock()
    client.__aenter__.return_value = client
    client.fetch_snapshot.return_value = snapshot or Snapshot()
    if error is not None:
        client.fetch_snapshot.side_effect = error
    client.push_tasks.return_value = []
    return client


# ── seed ─────────────────────────────────────────────────────────


class TestSeed:
    def test_seed_json(self, tmp_path: pathlib.Path) -> None:
        db = tmp_path / "seed.db"

        result = runner.invoke(app, ["seed", "--db", str(db), "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "tasks": 3,
            "goals": 1,
            "applications": 2,
            "skills": 1,
            "resources": 7,
        }
        assert db.exists()

    def test_seed_is_repeatable(self, tmp_path: pathlib.Path) -> None:
        db = tmp_path / "seed.db"

        runner.invoke(app, ["seed", "--db", str(db)])
        result = runner.invoke(app, ["seed", "--db", str(db)])

        assert result.exit_code == 0, result.output
        assert "tasks: 3" in result.output


# ── tombstones ───────────────────────────────────────────────────


class TestTombstones:
    def test_json_empty(self) -> None:
        result = runner.invoke(app, ["tombstones", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["prodex_hidden_tasks"] == {}

    def test_clear(self) -> None:
        config = get_config()
        store = TombstoneFileStore(config.tombstone_file)
        table = TombstoneTable()
        table.add(EntityType.TASK, "t1")
        table.add(EntityType.GOAL, "g1")
        store.save(table)

        result = runner.invoke(app, ["tombstones", "--clear"])

        assert result.exit_code == 0, result.output
        assert "Cleared 2 tombstones" in result.output
        assert len(store.load()) == 0

    def test_table_output(self) -> None:
        store = TombstoneFileStore(get_config().tombstone_file)
        table = TombstoneTable()
        table.add(EntityType.SKILL, "s1")
        store.save(table)

        result = runner.invoke(app, ["tombstones"])

        assert result.exit_code == 0, result.output


# ── snapshot & sync ──────────────────────────────────────────────


class TestSnapshot:
    def test_json(self) -> None:
        snapshot = Snapshot(tasks=(Task(id="t1", title="Ship"),))
        with patch("prodex.sync.client.ProdexClient", return_value=_mock_client(snapshot)):
            result = runner.invoke(app, ["snapshot", "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["tasks"][0]["id"] == "t1"

    def test_rendered(self) -> None:
        snapshot = Snapshot(tasks=(Task(id="t1", title="Ship"),))
        with patch("prodex.sync.client.ProdexClient", return_value=_mock_client(snapshot)):
            result = runner.invoke(app, ["snapshot"])

        assert result.exit_code == 0, result.output

    def test_server_down(self) -> None:
        client = _mock_client(error=ProdexApiError("Connection error: refused"))
        with patch("prodex.sync.client.ProdexClient", return_value=client):
            result = runner.invoke(app, ["snapshot"])

        assert result.exit_code == 1


class TestSync:
    def test_success(self) -> None:
        client = _mock_client(Snapshot(tasks=(Task(id="t1", title="Ship"),)))
        client.full_sync.return_value.warnings = []
        client.full_sync.return_value.snapshot = Snapshot()
        with patch("prodex.sync.client.ProdexClient", return_value=client):
            result = runner.invoke(app, ["sync"])

        assert result.exit_code == 0, result.output
        assert "Synced" in result.output
        client.push_tasks.assert_awaited_once()

    def test_not_loaded(self) -> None:
        client = _mock_client(error=ProdexApiError("Connection error: refused"))
        with patch("prodex.sync.client.ProdexClient", return_value=client):
            result = runner.invoke(app, ["sync"])

        assert result.exit_code == 1
        client.push_tasks.assert_not_awaited()

    def test_group_warnings(self) -> None:
        client = _mock_client()
        client.full_sync.return_value.warnings = ["goals"]
        client.full_sync.return_value.snapshot = Snapshot()
        with patch("prodex.sync.client.ProdexClient", return_value=client):
            result = runner.invoke(app, ["sync"])

        assert result.exit_code == 2
        assert "goals" in result.output
