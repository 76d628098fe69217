"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from photos_backup_cli.models.config import BackupOptions
from photos_backup_cli.models.stats import StatsSnapshot
from photos_backup_cli.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "AuthenticationError": [
            "• Check that the token file exists and belongs to this account.",
            "• The refresh token may have been revoked. Authorize the tool again.",
            "• Make sure the Photos Library API is enabled for your project.",
        ],
        "ApiError": [
            "• The Photos Library API might be temporarily unavailable.",
            "• Increase `--throttle` if you are hitting the API quota.",
            "• Check that the album ID is correct.",
        ],
        "ConfigurationError": [
            "• Run `photos-backup validate` to see the effective settings.",
            "• Run `photos-backup init --force` to write a fresh config file.",
        ],
        "SidecarCorruptError": [
            "• A metadata sidecar could not be read. Inspect or remove it.",
            "• Removing a sidecar makes the item be named again on the next run.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• Please try again in a few minutes.",
        ],
        "TimeoutError": [
            "• A download timed out, which may indicate network throttling.",
            "• Try reducing `--concurrent-downloads`.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -v for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the raw configuration file contents."""
    console = Console()
    content = "\n".join(f"{key} = {value}" for key, value in config_data.items())
    console.print(
        Panel(
            content,
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(options: BackupOptions):
    """Displays a summary of the effective settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    naming = "Original file names" if options.use_file_name else "Legacy (day_id)"
    throttle = (
        f"{options.download_throttle:g} KB/s"
        if options.download_throttle > 0
        else "Unlimited"
    )

    table.add_row("Backup Folder:", options.backup_folder)
    table.add_row("Folder Format:", options.folder_format)
    table.add_row("Naming:", naming)
    table.add_row("Include EXIF:", "Yes" if options.include_exif else "No")
    table.add_row("Album:", options.album_id or "[dim]Whole library[/dim]")
    table.add_row("Page Size:", str(options.page_size))
    table.add_row("Page Delay:", f"{options.page_delay:g}s")
    table.add_row("Concurrent Downloads:", str(options.concurrent_downloads))
    table.add_row("Download Throttle:", throttle)
    table.add_row("On Item Error:", "Abort" if options.fail_fast else "Continue")
    table.add_row("Token File:", options.token_file)

    console.print(
        Panel(
            table,
            title="[bold green]✓ Configuration is valid[/bold green]",
            border_style="green",
            expand=False,
        )
    )


def print_summary_panel(snapshot: StatsSnapshot, duration: float | None = None):
    """Prints the end-of-run summary."""
    console = Console()
    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(justify="right")

    table.add_row("Processed", str(snapshot.total))
    table.add_row("[green]Downloaded[/green]", str(snapshot.downloaded))
    table.add_row("[yellow]Skipped[/yellow]", str(snapshot.skipped))
    table.add_row("[red]Errors[/red]", str(snapshot.errors))
    table.add_row("Total Size", format_size(snapshot.total_size))

    elapsed = snapshot.elapsed if duration is None else duration
    table.add_row("Duration", format_duration(elapsed))
    if elapsed > 0 and snapshot.total_size:
        table.add_row("Average Speed", f"{format_size(snapshot.total_size / elapsed)}/s")

    border = "red" if snapshot.errors else "green"
    console.print(
        Panel(table, title="[bold]Backup Summary[/bold]", border_style=border, expand=False)
    )
