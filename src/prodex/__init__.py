"""Prodex - personal productivity tracker with client/server data sync."""

__version__ = "0.1.0"
