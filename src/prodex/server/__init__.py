"""FastAPI server for Prodex."""

from prodex.server.app import create_app

__all__ = ["create_app"]
