"""Prodex CLI main entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from prodex.cli._helpers import output_result, run_async, setup_logging
from prodex.utils.config import get_config

app = typer.Typer(
    name="prodex",
    help="Prodex - productivity tracker backend and sync client",
    no_args_is_help=True,
)


@app.callback()
def _main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log debug output to stderr")
    ] = False,
) -> None:
    setup_logging(verbose)


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", "-h", help="Host to bind to")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port to bind to")] = None,
    reload: Annotated[
        bool, typer.Option("--reload", "-r", help="Enable auto-reload for development")
    ] = False,
) -> None:
    """Run the Prodex API server.

    Examples:
        prodex serve                    # Run on localhost:4000
        prodex serve -p 9000            # Run on port 9000
        prodex serve --host 0.0.0.0     # Expose to network
    """
    import uvicorn

    config = get_config()
    host = host or config.host
    port = port or config.port

    typer.echo(f"Starting Prodex API server on http://{host}:{port}")
    typer.echo(f"  Data: {config.database_path}")
    typer.echo(f"  Docs: http://{host}:{port}/docs")

    uvicorn.run(
        "prodex.server.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def seed(
    db: Annotated[
        Path | None, typer.Option("--db", help="SQLite database path (default: from config)")
    ] = None,
    email: Annotated[str | None, typer.Option("--email", help="User to seed")] = None,
    keep: Annotated[
        bool, typer.Option("--keep", help="Keep the user's existing entities")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Install the demo data set and the resource catalog."""
    from prodex.storage.seed import seed_demo_data
    from prodex.storage.sqlite_store import SQLiteStorage

    config = get_config()

    async def _seed() -> dict[str, int]:
        storage = SQLiteStorage(db or config.database_path)
        await storage.initialize()
        try:
            return await seed_demo_data(storage, email or config.demo_email, reset=not keep)
        finally:
            await storage.close()

    counts = run_async(_seed())
    output_result(dict(counts), as_json=json_output)


@app.command()
def snapshot(
    api: Annotated[str | None, typer.Option("--api", help="Server URL")] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Fetch the server snapshot and summarize it."""
    from prodex.cli.tui import render_snapshot
    from prodex.core.entities import Snapshot
    from prodex.core.metrics import dashboard_metrics
    from prodex.sync.client import ProdexApiError, ProdexClient
    from prodex.utils.timeutils import utcnow

    config = get_config()

    async def _fetch() -> Snapshot:
        async with ProdexClient(api or config.api_url, timeout=config.request_timeout) as client:
            return await client.fetch_snapshot()

    try:
        data = run_async(_fetch())
    except ProdexApiError as e:
        output_result({"error": str(e)})
        raise typer.Exit(1) from e

    if json_output:
        output_result(data.to_dict(), as_json=True)
        return
    metrics = dashboard_metrics(
        data.tasks, data.goals, data.applications, data.settings, utcnow().date()
    )
    render_snapshot(data, metrics)


@app.command()
def sync(
    api: Annotated[str | None, typer.Option("--api", help="Server URL")] = None,
) -> None:
    """Load server state into a local store and push every group once."""
    from prodex.sync.client import ProdexClient
    from prodex.sync.store import DataStore
    from prodex.sync.tombstones import TombstoneFileStore

    config = get_config()

    async def _sync() -> tuple[bool, list[str]]:
        client = ProdexClient(api or config.api_url, timeout=config.request_timeout)
        store = DataStore(
            client,
            TombstoneFileStore(config.tombstone_file, config.tombstone_gc_threshold),
            poll_interval=config.poll_interval,
        )
        try:
            loaded = await store.hydrate()
            warnings = await store.push_all() if loaded else []
        finally:
            await store.close()
        return loaded, warnings

    loaded, warnings = run_async(_sync())
    if not loaded:
        output_result({"error": "Could not load data from the server"})
        raise typer.Exit(1)
    if warnings:
        typer.secho(f"Synced with failed groups: {', '.join(warnings)}", fg=typer.colors.YELLOW)
        raise typer.Exit(2)
    typer.secho("Synced", fg=typer.colors.GREEN)


@app.command()
def tombstones(
    clear: Annotated[bool, typer.Option("--clear", help="Remove every tombstone")] = False,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Inspect or clear the local deletion tombstones."""
    from prodex.cli.tui import render_tombstones
    from prodex.sync.tombstones import TombstoneFileStore

    config = get_config()
    store = TombstoneFileStore(config.tombstone_file, config.tombstone_gc_threshold)
    table = store.load()

    if clear:
        count = len(table)
        table.clear()
        if not store.save(table):
            output_result({"error": f"Could not write {store.path}"})
            raise typer.Exit(1)
        typer.echo(f"Cleared {count} tombstones")
        return

    if json_output:
        output_result(table.to_dict(), as_json=True)
        return
    render_tombstones(table)


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
