"""Main CLI application."""

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .. import __version__
from ..log import setup_logging
from .init import init_command
from .run import GlobalOptions, check_command, create_command, download_command

QUERY_HELP = (
    "Select items with one of: number, title, description, date, notexists, latest. "
    "Examples: 'number:[1-20]', 'number:{1, 5, [10-12]}', 'title:cheese delight', "
    "'title:{cheese, pepperoni}', 'description:cheese', 'date:[2021-01-01:2021-01-31]', "
    "'notexists', 'latest', 'latest:5'. Empty matches every item."
)

app = typer.Typer(
    name="dumptruck",
    help="Query an RSS feed, then check, download or re-publish the matching items.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"dumptruck {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(None, "--url", "-u", help="RSS feed URL"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="RSS feed file"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Download folder (check, download) or feed file to write (create)",
    ),
    query: str = typer.Option("", "--query", "-q", help=QUERY_HELP),
    ndownloads: Optional[int] = typer.Option(
        None,
        "--ndownloads",
        "-d",
        help="Maximum number of concurrent downloads. Default: 1 or the configured value",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Settings file. Default: $DUMPTRUCK_CONFIG or ~/.config/dumptruck/config.yaml",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Query an RSS feed, then check, download or re-publish the matching items."""
    setup_logging(verbose)
    ctx.obj = GlobalOptions(
        url=url,
        file=file,
        output=output,
        query=query,
        ndownloads=ndownloads,
        config_path=config_path,
    )


# Register commands
app.command("check")(check_command)
app.command("download")(download_command)
app.command("create")(create_command)
app.command("init")(init_command)


if __name__ == "__main__":
    app()
