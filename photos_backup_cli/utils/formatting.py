"""
Helper functions for formatting data into human-readable strings.
"""

from photos_backup_cli.models.stats import StatsSnapshot


def format_size(bytes_size: float) -> str:
    """Formats bytes with decimal units (e.g., '145 MB', '1.2 GB')."""
    if bytes_size < 10:
        return f"{int(bytes_size)} B"
    units = ["B", "kB", "MB", "GB", "TB", "PB"]
    i = 0
    while bytes_size >= 1000 and i < len(units) - 1:
        bytes_size /= 1000
        i += 1
    if i == 0:
        return f"{int(bytes_size)} B"
    precision = 1 if bytes_size < 10 else 0
    return f"{bytes_size:.{precision}f} {units[i]}"


def format_duration(seconds: float) -> str:
    """
    Formats a duration in seconds into a human-readable string (e.g., '2h 34m 12s').
    """
    s = int(seconds)
    hours, remainder = divmod(s, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_progress(snapshot: StatsSnapshot, label: str = "Processed") -> str:
    """One-line run summary used at page boundaries and at the end of a run."""
    return (
        f"{label}: {snapshot.total}, Downloaded: {snapshot.downloaded}, "
        f"Skipped: {snapshot.skipped}, Errors: {snapshot.errors}, "
        f"Total Size: {format_size(snapshot.total_size)}"
    )
