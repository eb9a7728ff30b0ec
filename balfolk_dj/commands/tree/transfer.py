"""Tree import, export and reset commands."""

from __future__ import annotations

from pathlib import Path

import click

from balfolk_dj.cli import Context, pass_context
from balfolk_dj.commands._common import open_tree, require_config
from balfolk_dj.commands.tree import EXIT_TREE_ERROR, cli
from balfolk_dj.exceptions import BalfolkDJError, TreeImportError
from balfolk_dj.tree.store import TreeStore
from balfolk_dj.utils.output import error, success


@cli.command("import")
@click.argument("file", type=click.Path(path_type=Path))
@pass_context
def import_tree(ctx: Context, file: Path) -> None:
    """Replace the dance tree with the contents of FILE.

    The file is validated strictly: unknown fields, empty names and
    negative weights are rejected and the current tree is kept.
    """
    config = require_config(ctx)
    store = TreeStore(config.tree_path)
    try:
        count = store.import_file(file)
    except TreeImportError as e:
        error(str(e))
        raise SystemExit(EXIT_TREE_ERROR)
    success(f"Imported {count} categories from {file}")


@cli.command("export")
@click.argument("file", type=click.Path(path_type=Path))
@pass_context
def export_tree(ctx: Context, file: Path) -> None:
    """Write the dance tree to FILE."""
    store = open_tree(ctx)
    try:
        store.export_file(file)
    except OSError as e:
        error(f"Failed to export dance tree: {e}")
        raise SystemExit(EXIT_TREE_ERROR)
    success(f"Exported dance tree to {file}")


@cli.command("reset")
@click.option("--yes", "-y", is_flag=True, default=False, help="Don't ask for confirmation")
@pass_context
def reset(ctx: Context, yes: bool) -> None:
    """Replace the dance tree with the bundled default."""
    config = require_config(ctx)
    if not yes:
        click.confirm("Discard the current dance tree?", abort=True)
    store = TreeStore(config.tree_path)
    try:
        store.reset_to_default()
    except (OSError, BalfolkDJError) as e:
        error(f"Failed to reset dance tree: {e}")
        raise SystemExit(EXIT_TREE_ERROR)
    success(f"Restored the default dance tree at {config.tree_path}")
