# ruff: noqa: I001
"""Typer CLI for the ``family_ledger`` package.

Every command loads ``.env`` from the current directory (without overriding
variables already set) and configures logging before doing any work.

Commands
--------
serve             run the LINE webhook under uvicorn
load-file         overwrite the ledger from a historical data file
load-interactive  paste historical data, preview, confirm, write
view              print the ledger as the chat view shows it
undo              restore the ledger from the backup slot
organize          print the categorized report for a month
"""

from __future__ import annotations

from pathlib import Path

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .config import Settings, SettingsError, load_settings
from .logging_setup import configure_logging, get_logger, resolve_level_name

_logger = get_logger("family_ledger.cli")


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Household expense ledger bot: LINE webhook server plus admin commands. "
        "Loads settings from the environment and a local .env."
    ),
)


def _settings() -> Settings:
    try:
        return load_settings()
    except SettingsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


def _require_database(settings: Settings) -> None:
    if not settings.database_url:
        typer.echo("Error: DATABASE_URL is not set in the environment.", err=True)
        raise typer.Exit(1)


# Module-level option object to satisfy ruff B008 (no calls in parameter defaults).
HISTORY_PATH_OPTION: OptionInfo = typer.Option(
    "historical-data.txt",
    "--path",
    help="Historical data file (M/D headers followed by 'name price' lines).",
    dir_okay=False,
    file_okay=True,
)


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("0.0.0.0", help="Interface to bind."),
    port: int | None = typer.Option(None, help="Port to bind (defaults to PORT or 8080)."),
) -> None:
    """Run the webhook app (routes ``/`` and ``/webhook``)."""

    import uvicorn

    from .api import build_app

    settings = _settings()
    _require_database(settings)
    bind_port = port or settings.port
    _logger.info("cli:serve host=%s port=%d timezone=%s", host, bind_port, settings.timezone)
    uvicorn.run(build_app(settings), host=host, port=bind_port, log_level=resolve_level_name())


@app.command("load-file")
def load_file_cmd(path: Path = HISTORY_PATH_OPTION) -> None:
    """Overwrite the ledger with the entries in a historical data file."""

    from .api import build_ledger
    from .workflows.load_history import load_history_file

    settings = _settings()
    _require_database(settings)
    try:
        summary = load_history_file(path, build_ledger(settings), on_progress=typer.echo)
    except FileNotFoundError as e:
        typer.echo(f"Error: File not found: {path}", err=True)
        raise typer.Exit(1) from e
    except Exception as e:
        typer.echo(f"Error: loading historical data failed: {e}", err=True)
        raise typer.Exit(1) from e
    if not summary.saved:
        raise typer.Exit(1)


@app.command("load-interactive")
def load_interactive_cmd() -> None:
    """Paste historical data, review the preview, then confirm the write."""

    from .api import build_ledger
    from .workflows.load_history import load_history_interactive

    settings = _settings()
    _require_database(settings)
    try:
        summary = load_history_interactive(build_ledger(settings), on_progress=typer.echo)
    except Exception as e:
        typer.echo(f"Error: loading historical data failed: {e}", err=True)
        raise typer.Exit(1) from e
    if summary is None or not summary.saved:
        raise typer.Exit(1)


@app.command("view")
def view_cmd(
    raw_dates: bool = typer.Option(False, help="Show stored dates instead of M/D."),
) -> None:
    """Print the whole ledger."""

    from .api import build_ledger
    from .ledger import format_aggregated_text

    settings = _settings()
    _require_database(settings)
    try:
        ledger = build_ledger(settings).get_aggregated_expenses()
    except Exception as e:
        typer.echo(f"Error: reading the ledger failed: {e}", err=True)
        raise typer.Exit(1) from e
    typer.echo(format_aggregated_text(ledger, display_dates=not raw_dates))


@app.command("undo")
def undo_cmd() -> None:
    """Restore the ledger to its state before the most recent add."""

    from .api import build_ledger

    settings = _settings()
    _require_database(settings)
    result = build_ledger(settings).undo_last_change()
    typer.echo(result.message)
    if not result.success:
        raise typer.Exit(1)


@app.command("organize")
def organize_cmd(
    year_month: str | None = typer.Argument(
        None, help="Month as YYYYMM (defaults to the current month)."
    ),
) -> None:
    """Print the categorized report for a month."""

    from .api import build_classifier, build_ledger
    from .categorize import CategorizationError, organize_expenses
    from .periods import now_in
    from .store import StoreError

    settings = _settings()
    _require_database(settings)
    try:
        ledger = build_ledger(settings).get_aggregated_expenses()
    except StoreError as e:
        typer.echo(f"Error: reading the ledger failed: {e}", err=True)
        raise typer.Exit(1) from e
    try:
        outcome = organize_expenses(
            ledger,
            year_month,
            classifier=build_classifier(settings),
            moment=now_in(settings.timezone),
        )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e
    except CategorizationError as e:
        typer.echo(f"Error: organize failed: {e}", err=True)
        raise typer.Exit(1) from e
    typer.echo(outcome.text)


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and set up logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover - exercised via the console script
    app()
