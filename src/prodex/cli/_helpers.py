"""Shared CLI helpers for logging, async execution and output formatting."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Coroutine
from typing import Any, TypeVar

import typer

logger = logging.getLogger(__name__)

T = TypeVar("T")


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr; DEBUG with ``--verbose``, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async CLI command.

    Yields once before the loop closes so pending aiosqlite and aiohttp
    callbacks are drained.
    """

    async def _with_drain() -> T:
        try:
            return await coro
        finally:
            await asyncio.sleep(0)

    return asyncio.run(_with_drain())


def output_result(data: dict[str, Any], as_json: bool = False) -> None:
    """Output a result as JSON or as ``key: value`` lines."""
    if as_json:
        typer.echo(json.dumps(data, indent=2, default=str))
        return
    if "error" in data:
        typer.secho(f"Error: {data['error']}", fg=typer.colors.RED, err=True)
        return
    for key, value in data.items():
        typer.echo(f"{key}: {value}")
