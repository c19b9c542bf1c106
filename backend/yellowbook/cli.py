"""Administration commands: serve, init-db, seed, reset.

The seed and reset commands are out-of-band tools; they talk to storage
through the same Database/YellowBookGateway pair as the API and are not
reachable over HTTP.
"""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from yellowbook.config import settings
from yellowbook.database import Database
from yellowbook.exceptions import SchemaViolationError, StorageError
from yellowbook.gateway import StoredRecord, YellowBookGateway
from yellowbook.main import setup_logging
from yellowbook.services.seed_service import load_seed_entries, seed_database

app = typer.Typer(no_args_is_help=True, help="Yellow Book API administration.")

_console = Console()

DatabaseUrlOption = typer.Option(
    None,
    "--database-url",
    help="Overrides DATABASE_URL for this command.",
)


def _database(database_url: Optional[str]) -> Database:
    """Build the command's Database; an unusable URL exits with code 1."""
    try:
        if database_url:
            return Database(database_url)
        return Database.from_settings(settings)
    except ValueError as exc:
        _console.print(f"[red]Invalid database URL:[/red] {exc}")
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default: API_HOST)."),
    port: Optional[int] = typer.Option(None, help="Bind port (default: API_PORT)."),
    reload: bool = typer.Option(False, help="Reload on code changes (development)."),
) -> None:
    """Run the API under uvicorn."""
    import uvicorn

    uvicorn.run(
        "yellowbook.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


async def _init_db(database: Database) -> None:
    try:
        await database.create_all()
    finally:
        await database.dispose()


@app.command("init-db")
def init_db(database_url: Optional[str] = DatabaseUrlOption) -> None:
    """Create missing tables."""
    setup_logging(settings.log_level)
    asyncio.run(_init_db(_database(database_url)))
    _console.print("[green]Tables created.[/green]")


async def _seed(database: Database, seed_file: Optional[str]) -> List[StoredRecord]:
    try:
        entries = await load_seed_entries(seed_file)
        await database.create_all()
        return await seed_database(YellowBookGateway(database), entries)
    finally:
        await database.dispose()


@app.command()
def seed(
    file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        help="JSON array of entries (default: SEED_FILE or the bundled seed data).",
    ),
    database_url: Optional[str] = DatabaseUrlOption,
) -> None:
    """Replace all entries with the seed data."""
    setup_logging(settings.log_level)
    seed_file = str(file) if file else settings.seed_file

    try:
        records = asyncio.run(_seed(_database(database_url), seed_file))
    except SchemaViolationError as exc:
        _console.print(f"[red]{exc.message}:[/red]")
        for violation in exc.violations:
            _console.print(f"  {violation['field']}: {violation['message']}")
        raise typer.Exit(code=1)
    except (OSError, ValueError, StorageError) as exc:
        _console.print(f"[red]Seeding failed:[/red] {exc}")
        raise typer.Exit(code=1)

    table = Table(title=f"Seeded {len(records)} yellow book entries")
    table.add_column("ID", style="bright_green", no_wrap=True)
    table.add_column("Business")
    table.add_column("Category", style="dim")
    for record in records:
        table.add_row(str(record["id"]), record["businessName"], record["category"])
    _console.print(table)


async def _reset(database: Database) -> None:
    try:
        await database.drop_all()
    finally:
        await database.dispose()


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    database_url: Optional[str] = DatabaseUrlOption,
) -> None:
    """Drop the yellow_books and alembic_version tables."""
    if not yes:
        typer.confirm("This drops every yellow book entry. Continue?", abort=True)

    setup_logging(settings.log_level)
    asyncio.run(_reset(_database(database_url)))
    _console.print("[green]Database tables dropped.[/green]")


if __name__ == "__main__":
    app()
