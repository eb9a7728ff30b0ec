"""Rich console output helpers for balfolk-dj."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

# Custom theme for balfolk-dj
THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "track.dance": "bold magenta",
        "track.artist": "bold",
        "track.title": "italic",
        "marker": "bold yellow",
        "weight": "green",
        "disabled": "dim",
    }
)

# Global console instances
console = Console(theme=THEME, stderr=False)
error_console = Console(theme=THEME, stderr=True)


def set_color(enabled: bool) -> None:
    """Enable or disable color on both console instances."""
    console.no_color = not enabled
    error_console.no_color = not enabled


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/info]")


def warning(message: str) -> None:
    """Print a warning message to stderr."""
    error_console.print(f"[warning]Warning:[/warning] {message}")


def error(message: str, hint: str | None = None) -> None:
    """Print an error message to stderr.

    Args:
        message: The error message.
        hint: Optional hint for resolution.
    """
    error_console.print(f"[error]Error:[/error] {message}")
    if hint:
        error_console.print(f"  [info]Hint:[/info] {hint}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/success]")


def create_table(title: str | None = None, **kwargs: Any) -> Table:
    """Create a styled table.

    Args:
        title: Optional table title.
        **kwargs: Additional Table arguments.

    Returns:
        Rich Table instance.
    """
    return Table(title=title, **kwargs)


def print_track(
    dance: str | None,
    artist: str | None,
    title: str | None,
    *,
    prefix: str = "",
) -> None:
    """Print a formatted track line.

    Args:
        dance: Dance the track is tagged with.
        artist: Track artist.
        title: Track title.
        prefix: Optional prefix (e.g., "[1/10]").
    """
    dance_str = dance or "Unknown Dance"
    artist_str = artist or "Unknown Artist"
    title_str = title or "Unknown Title"

    line = (
        f"[track.dance]{dance_str}[/track.dance]  "
        f"[track.artist]{artist_str}[/track.artist] - [track.title]{title_str}[/track.title]"
    )
    if prefix:
        console.print(f"{prefix} {line}")
    else:
        console.print(line)
