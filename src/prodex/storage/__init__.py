"""Storage backends for Prodex."""

from prodex.storage.base import ProdexStorage, StorageError
from prodex.storage.seed import seed_demo_data
from prodex.storage.sqlite_store import SQLiteStorage

__all__ = [
    "ProdexStorage",
    "SQLiteStorage",
    "StorageError",
    "seed_demo_data",
]
