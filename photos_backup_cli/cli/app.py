"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from photos_backup_cli import __version__
from photos_backup_cli.api.auth import OAuthTokenProvider
from photos_backup_cli.api.client import PhotosLibraryClient
from photos_backup_cli.core.backup_manager import BackupManager
from photos_backup_cli.exceptions import PhotosBackupError
from photos_backup_cli.models.config import BackupOptions
from photos_backup_cli.storage.config_manager import ConfigManager

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_summary_panel,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("photos_backup_cli")

app = typer.Typer(
    name="photos-backup",
    help=(
        "Resumable backup of a Google Photos library to local disk. Use"
        " 'photos-backup <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "photos-backup-cli"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _add_log_file(logfile: Path) -> None:
    """Mirrors all log records into a plain text file."""
    handler = logging.FileHandler(logfile, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logging.getLogger().addHandler(handler)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-v for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    logfile: Path | None = typer.Option(  # noqa: B008
        None, "--logfile", help="Also write log output to this file."
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration file."
    ),
):
    """Google Photos backup CLI"""
    if version:
        console.print(
            f"[bold]photos-backup-cli[/bold] version [cyan]{__version__}[/cyan]"
        )
        raise typer.Exit()

    if verbose >= 1:
        logging.getLogger("photos_backup_cli").setLevel("DEBUG")

    if logfile:
        _add_log_file(logfile)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]photos-backup init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        print_config(CONFIG_FILE, ConfigManager(CONFIG_FILE).get_config_as_dict())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    folder: Path = typer.Option(  # noqa: B008
        Path.cwd(), "--folder", help="Backup folder to mirror the library into."
    ),
    credentials_file: Path = typer.Option(  # noqa: B008
        Path("credentials.json"),
        "--credentials-file",
        help="OAuth client credentials.json downloaded from Google Cloud.",
    ),
    token_file: Path = typer.Option(  # noqa: B008
        Path("token.json"),
        "--token-file",
        help="Where the authorized OAuth token is stored.",
    ),
    use_file_name: bool = typer.Option(
        False,
        "--use-file-name/--legacy-names",
        help="Keep the original file names instead of day_id names.",
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Write a configuration file with default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {
        "backup_folder": str(folder.expanduser().resolve()),
        "credentials_file": str(credentials_file.expanduser().resolve()),
        "token_file": str(token_file.expanduser().resolve()),
        "use_file_name": use_file_name,
    }
    try:
        ConfigManager(CONFIG_FILE).save_new_config(settings)
    except PhotosBackupError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Ready to back up! Try: [cyan]photos-backup backup[/cyan]")


async def _run_backup(options: BackupOptions, loop_forever: bool) -> None:
    token_provider = OAuthTokenProvider(options.credentials_file, options.token_file)
    api_client = PhotosLibraryClient(token_provider)
    log.info("Connecting ...")
    try:
        while True:
            manager = BackupManager(options, api_client)
            start_time = time.monotonic()
            try:
                snapshot = await manager.run()
                print_summary_panel(snapshot, time.monotonic() - start_time)
            except PhotosBackupError as e:
                print_summary_panel(manager.stats.snapshot())
                if not loop_forever or options.fail_fast:
                    raise
                log.error(f"[red]Backup pass failed: {e}[/red]")
            finally:
                await manager.close()

            if not loop_forever:
                break
            await asyncio.sleep(options.page_delay)
    finally:
        await api_client.close()


@app.command(name="backup")
def backup_command(
    folder: Path | None = typer.Option(  # noqa: B008
        None, "--folder", help="Backup folder (overrides config)."
    ),
    album: str | None = typer.Option(
        None, "--album", help="Download only from this album (Google album ID)."
    ),
    max_items: int | None = typer.Option(
        None, "--max", help="Maximum number of items to process."
    ),
    page_size: int | None = typer.Option(
        None, "--pagesize", help="Number of items to request per API call."
    ),
    throttle: float | None = typer.Option(
        None, "--throttle", help="Seconds to wait between API calls."
    ),
    folder_format: str | None = typer.Option(
        None,
        "--folder-format",
        help="strftime pattern for dated folders, e.g. '%Y/%m'.",
    ),
    use_file_name: bool | None = typer.Option(
        None,
        "--use-file-name/--legacy-names",
        help="Keep the original file names instead of day_id names.",
    ),
    include_exif: bool | None = typer.Option(
        None,
        "--include-exif/--no-exif",
        help="Retain EXIF metadata on photos (location is never included).",
    ),
    download_throttle: float | None = typer.Option(
        None,
        "--download-throttle",
        help="Total download rate limit in KB/sec (0 for unlimited).",
    ),
    concurrent_downloads: int | None = typer.Option(
        None,
        "-w",
        "--concurrent-downloads",
        help="Number of concurrent item downloads.",
    ),
    strict: bool | None = typer.Option(
        None,
        "--strict/--lenient",
        help="Abort on the first item error, or log it and keep going.",
    ),
    loop: bool = typer.Option(
        False, "--loop", help="Repeat the backup forever (use as a daemon)."
    ),
):
    """Back up the library (or one album) into the backup folder."""
    cli_options = {
        key: value
        for key, value in {
            "backup_folder": str(folder) if folder else None,
            "album_id": album,
            "max_items": max_items,
            "page_size": page_size,
            "page_delay": throttle,
            "folder_format": folder_format,
            "use_file_name": use_file_name,
            "include_exif": include_exif,
            "download_throttle": download_throttle,
            "concurrent_downloads": concurrent_downloads,
            "fail_fast": strict,
        }.items()
        if value is not None
    }

    try:
        options = ConfigManager(CONFIG_FILE).load_config(cli_options)
        asyncio.run(_run_backup(options, loop))
    except PhotosBackupError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    except OSError as e:
        console.print(format_error_with_suggestions(e))
        log.debug("Full traceback:", exc_info=True)
        raise typer.Exit(code=1) from e


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        options = ConfigManager(CONFIG_FILE).load_config()
        print_validation_table(options)
    except PhotosBackupError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
