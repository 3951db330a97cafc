"""Prodex CLI.

Usage:
    prodex serve                Run the API server
    prodex seed                 Install demo data and the resource catalog
    prodex snapshot             Summarize the server snapshot
    prodex sync                 Push local state once
    prodex tombstones           Inspect local deletion tombstones
"""

from prodex.cli.main import app, main

__all__ = ["app", "main"]
