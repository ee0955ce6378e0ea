"""Init command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import DownloadSettings, SettingsModel, default_config_path, save_settings

console = Console()


def init_command(
    config_path: Optional[Path] = typer.Option(
        None,
        "--path",
        "-p",
        help="Where to write the settings file. Default: $DUMPTRUCK_CONFIG or ~/.config/dumptruck/config.yaml",
    ),
    ndownloads: int = typer.Option(1, "--ndownloads", "-d", help="Default concurrent downloads", min=1),
    retries: int = typer.Option(3, "--retries", help="Extra attempts for a failed download", min=0),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing settings file"),
) -> None:
    """Write a settings file with the default download options."""
    if config_path is None:
        config_path = default_config_path()

    if config_path.exists() and not force:
        console.print(f"[red]{config_path} already exists. Use --force to overwrite it.[/red]")
        raise typer.Exit(1)

    settings = SettingsModel(download=DownloadSettings(ndownloads=ndownloads, retries=retries))

    try:
        save_settings(settings, config_path)
    except OSError as e:
        console.print(f"[red]❌ Failed to write settings: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ Created settings: {config_path}[/green]\n\n"
            f"Concurrent downloads: {ndownloads}\n"
            f"Retries: {retries}\n\n"
            f"Next step:\n"
            f"[bold]dumptruck --url <FEED_URL> --output <FOLDER> check[/bold]",
            style="green",
        )
    )
