"""Initialize configuration file for balfolk-dj."""

from __future__ import annotations

from importlib import resources
from pathlib import Path

import click

from balfolk_dj.cli import Context, pass_context
from balfolk_dj.commands import EXIT_ERROR
from balfolk_dj.config import get_default_config_path
from balfolk_dj.utils.output import error, info, success


def _load_example_config() -> str:
    """Load the example configuration from package data."""
    return resources.files("balfolk_dj").joinpath("config.example.toml").read_text()


@click.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    default=False,
    help="Overwrite existing config file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for config file (default: ~/.config/balfolk-dj/config.toml)",
)
@pass_context
def cli(ctx: Context, force: bool, output: Path | None) -> None:
    """Create a new configuration file with default settings.

    Examples:

    \b
      # Create config at default location
      balfolk-dj init-config

    \b
      # Overwrite existing config
      balfolk-dj init-config --force
    """
    config_path = output if output is not None else get_default_config_path()
    config_path = config_path.expanduser().resolve()

    if config_path.exists() and not force:
        error(
            f"Config file already exists: {config_path}",
            hint="Use --force to overwrite",
        )
        raise SystemExit(EXIT_ERROR)

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(_load_example_config())
    except OSError as e:
        error(f"Failed to write config file: {e}")
        raise SystemExit(EXIT_ERROR)

    success(f"Created config file: {config_path}")
    info("Set paths.music_dir to your dance collection, then run 'balfolk-dj scan'.")
