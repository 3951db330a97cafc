"""Tests for environment-driven configuration."""

from __future__ import annotations

import pathlib

import pytest

from prodex.utils.config import Config, get_config, get_prodex_dir, reset_config


class TestConfig:
    def test_defaults(self, tmp_path: pathlib.Path) -> None:
        config = Config.from_env()

        assert config.port == 4000
        assert config.demo_email == "demo@prodex.io"
        assert config.api_url == "http://localhost:4000"
        assert config.tombstone_gc_threshold == 3
        assert config.cors_origins == ["*"]
        assert config.database_path == tmp_path / "prodex-home" / "prodex.db"
        assert config.tombstone_file == tmp_path / "prodex-home" / "tombstones.json"

    def test_env_overrides(
        self, tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PRODEX_PORT", "9000")
        monkeypatch.setenv("PRODEX_DEBUG", "yes")
        monkeypatch.setenv("PRODEX_API_URL", "http://example.test/")
        monkeypatch.setenv("PRODEX_SQLITE_PATH", str(tmp_path / "custom.db"))
        monkeypatch.setenv("PRODEX_POLL_INTERVAL", "2.5")
        monkeypatch.setenv("PRODEX_CORS_ORIGINS", "http://a.test, http://b.test")

        config = Config.from_env()

        assert config.port == 9000
        assert config.debug is True
        assert config.api_url == "http://example.test"
        assert config.database_path == tmp_path / "custom.db"
        assert config.poll_interval == 2.5
        assert config.cors_origins == ["http://a.test", "http://b.test"]

    def test_invalid_numbers_fall_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRODEX_PORT", "not-a-port")
        monkeypatch.setenv("PRODEX_POLL_INTERVAL", "soon")

        config = Config.from_env()

        assert config.port == 4000
        assert config.poll_interval == 5.0

    def test_home_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PRODEX_DIR")

        assert get_prodex_dir() == pathlib.Path.home() / ".prodex"


class TestSingleton:
    def test_cached_until_reset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_config()
        monkeypatch.setenv("PRODEX_PORT", "9100")

        assert get_config() is first

        reset_config()
        assert get_config().port == 9100
