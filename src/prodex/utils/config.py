"""Configuration management for Prodex."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def get_prodex_dir() -> Path:
    """Get the Prodex data directory.

    Priority:
    1. PRODEX_DIR environment variable
    2. ~/.prodex/
    """
    env_dir = os.environ.get("PRODEX_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".prodex"


@dataclass
class Config:
    """
    Application configuration.

    Loaded from environment variables with sensible defaults.
    """

    # Server settings
    host: str = "127.0.0.1"
    port: int = 4000
    debug: bool = False

    # Storage settings
    data_dir: Path = field(default_factory=get_prodex_dir)
    sqlite_path: Path | None = None
    demo_email: str = "demo@prodex.io"

    # Client settings
    api_url: str = "http://localhost:4000"
    poll_interval: float = 5.0
    request_timeout: float = 30.0
    tombstone_path: Path | None = None
    tombstone_gc_threshold: int = 3

    # CORS settings
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def database_path(self) -> Path:
        """Resolved SQLite database path."""
        return self.sqlite_path or self.data_dir / "prodex.db"

    @property
    def tombstone_file(self) -> Path:
        """Resolved path of the client-side tombstone file."""
        return self.tombstone_path or self.data_dir / "tombstones.json"

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables."""

        def get_bool(key: str, default: bool) -> bool:
            value = os.getenv(key)
            if value is None:
                return default
            return value.lower() in ("true", "1", "yes")

        def get_int(key: str, default: int) -> int:
            value = os.getenv(key)
            if value is None:
                return default
            try:
                return int(value)
            except ValueError:
                return default

        def get_float(key: str, default: float) -> float:
            value = os.getenv(key)
            if value is None:
                return default
            try:
                return float(value)
            except ValueError:
                return default

        def get_path(key: str) -> Path | None:
            value = os.getenv(key)
            return Path(value) if value else None

        def get_list(key: str, default: list[str]) -> list[str]:
            value = os.getenv(key)
            if value is None:
                return default
            return [s.strip() for s in value.split(",") if s.strip()]

        return cls(
            host=os.getenv("PRODEX_HOST", "127.0.0.1"),
            port=get_int("PRODEX_PORT", 4000),
            debug=get_bool("PRODEX_DEBUG", False),
            data_dir=get_prodex_dir(),
            sqlite_path=get_path("PRODEX_SQLITE_PATH"),
            demo_email=os.getenv("PRODEX_DEMO_EMAIL", "demo@prodex.io"),
            api_url=os.getenv("PRODEX_API_URL", "http://localhost:4000").rstrip("/"),
            poll_interval=get_float("PRODEX_POLL_INTERVAL", 5.0),
            request_timeout=get_float("PRODEX_REQUEST_TIMEOUT", 30.0),
            tombstone_path=get_path("PRODEX_TOMBSTONE_PATH"),
            tombstone_gc_threshold=get_int("PRODEX_TOMBSTONE_GC_THRESHOLD", 3),
            cors_origins=get_list("PRODEX_CORS_ORIGINS", ["*"]),
        )


# Singleton config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
