"""Command-line interface for balfolk-dj."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import click
from rich.logging import RichHandler

from balfolk_dj import __version__
from balfolk_dj.config import Config, load_config
from balfolk_dj.utils.output import (
    error,
    error_console,
    set_color,
    warning,
)


class Context:
    """Shared context for all commands."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False


pass_context = click.make_pass_decorator(Context, ensure=True)


def setup_logging(*, verbose: bool = False, debug: bool = False) -> None:
    """Route standard logging through rich on stderr."""
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    root = logging.getLogger()
    root.handlers = [
        RichHandler(console=error_console, show_path=debug, rich_tracebacks=debug, markup=False)
    ]
    root.setLevel(level)
    # Notifications are already printed by the console sink.
    logging.getLogger("balfolk_dj.notifications").setLevel(
        logging.DEBUG if debug else logging.CRITICAL
    )


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    help="Path to config file (default: ~/.config/balfolk-dj/config.toml)",
)
@click.option(
    "--music-dir",
    "-m",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    help="Directory with the dance tracks (overrides config)",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug output (implies --verbose)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Suppress non-error output",
)
@click.version_option(version=__version__, prog_name="balfolk-dj")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    music_dir: Path | None,
    no_color: bool,
    verbose: bool,
    debug: bool,
    quiet: bool,
) -> None:
    """balfolk-dj: Weighted dance suggestions and queue playback for balfolk DJs.

    Tracks are read from a music directory whose files are named
    "Dance - Artist - Title.mp3". A weighted dance tree decides how often
    each dance is suggested.

    Configuration is loaded from ~/.config/balfolk-dj/config.toml by default.
    Use --config to specify an alternative configuration file.

    Examples:

        # Show the dance tree with selection chances
        balfolk-dj tree show --probabilities

        # Suggest five tracks without repeats
        balfolk-dj suggest -n 5 --no-duplicates
    """
    ctx.ensure_object(Context)
    app_ctx = ctx.obj
    app_ctx.verbose = verbose or debug
    app_ctx.debug = debug
    app_ctx.quiet = quiet

    setup_logging(verbose=verbose, debug=debug)

    # Configure color output: disabled by --no-color, NO_COLOR env, or config
    disable_color = no_color or os.environ.get("NO_COLOR") is not None

    if disable_color:
        set_color(False)

    try:
        loaded_config, warnings = load_config(config)
        app_ctx.config = loaded_config

        if music_dir is not None:
            loaded_config.music_dir = music_dir.expanduser().resolve()

        if not disable_color and not loaded_config.colored_output:
            set_color(False)

        if not quiet:
            for warn in warnings:
                warning(warn)

    except Exception as e:
        error(str(e))
        ctx.exit(1)


@cli.command("help")
@click.argument("command", required=False, nargs=-1)
@click.pass_context
def help_cmd(ctx: click.Context, command: tuple[str, ...]) -> None:
    """Show help for a command."""
    group = cli
    for name in command:
        cmd = group.get_command(ctx, name)
        if cmd is None:
            error(f"Unknown command: {name}")
            ctx.exit(1)
            return
        if isinstance(cmd, click.Group):
            group = cmd
        else:
            click.echo(cmd.get_help(ctx))
            return
    click.echo(group.get_help(ctx))


def register_commands() -> None:
    """Register all commands from the commands package."""
    from balfolk_dj.commands import discover_commands

    for command in discover_commands():
        cli.add_command(command)


# Register commands on import
register_commands()
