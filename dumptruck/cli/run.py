"""check, download and create command implementations."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from ..config import Mode, Settings, build_run_config
from ..errors import EXIT_UNEXPECTED, DumptruckError
from ..pipeline import Dispatcher

console = Console()
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobalOptions:
    """Options given before the subcommand."""

    url: Optional[str] = None
    file: Optional[Path] = None
    output: Optional[Path] = None
    query: str = ""
    ndownloads: Optional[int] = None
    config_path: Optional[Path] = None


def _run(ctx: typer.Context, mode: Mode, title: Optional[str] = None) -> None:
    options: GlobalOptions = ctx.obj or GlobalOptions()
    try:
        settings = Settings(options.config_path).settings
        run_config = build_run_config(
            mode=mode,
            url=options.url,
            file=options.file,
            output=options.output,
            query=options.query,
            ndownloads=options.ndownloads,
            settings=settings,
            title=title,
        )
        exit_code = Dispatcher(run_config, settings, console).run()
    except DumptruckError as e:
        console.print(f"[red]{type(e).__name__}: {escape(str(e))}[/red]")
        raise typer.Exit(e.exit_code)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(EXIT_UNEXPECTED)
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        console.print(f"[red]Run failed: {escape(str(e))}[/red]")
        raise typer.Exit(EXIT_UNEXPECTED)

    if exit_code:
        raise typer.Exit(exit_code)


def check_command(ctx: typer.Context) -> None:
    """List the items matching the query."""
    _run(ctx, Mode.CHECK)


def download_command(ctx: typer.Context) -> None:
    """Download the enclosures of matching items to the output folder."""
    _run(ctx, Mode.DOWNLOAD)


def create_command(
    ctx: typer.Context,
    title: Optional[str] = typer.Option(
        None,
        "--title",
        "-t",
        help="Name of the feed to create. Default: '<feed title>-<query>'",
    ),
) -> None:
    """Create a feed file holding only the matching items."""
    _run(ctx, Mode.CREATE, title=title)
