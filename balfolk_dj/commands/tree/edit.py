"""Tree editing commands: add, remove, rename and reweight nodes."""

from __future__ import annotations

import click

from balfolk_dj.cli import Context, pass_context
from balfolk_dj.commands._common import open_tree
from balfolk_dj.commands.tree import EXIT_TREE_ERROR, cli
from balfolk_dj.exceptions import NodeNotFoundError
from balfolk_dj.history import Command
from balfolk_dj.tree import editing
from balfolk_dj.tree.models import ROOT
from balfolk_dj.tree.store import TreeStore
from balfolk_dj.utils.output import error, success


def _resolve(store: TreeStore, path: str) -> int:
    try:
        return store.tree.find(path)
    except NodeNotFoundError as e:
        error(str(e), hint="Use 'balfolk-dj tree show' to list the node paths")
        raise SystemExit(EXIT_TREE_ERROR)


def _resolve_category(store: TreeStore, path: str) -> int:
    handle = _resolve(store, path)
    if store.tree.is_leaf(handle):
        error(f"'{path}' is a dance, not a category")
        raise SystemExit(EXIT_TREE_ERROR)
    return handle


def _require_name(name: str) -> str:
    name = name.strip()
    if not name:
        error("Name must not be empty")
        raise SystemExit(EXIT_TREE_ERROR)
    return name


def _apply(store: TreeStore, command: Command) -> None:
    store.history.execute(command)
    try:
        store.save()
    except OSError as e:
        error(f"Failed to save dance tree: {e}")
        raise SystemExit(EXIT_TREE_ERROR)
    success(command.description)


@cli.command("set-weight")
@click.argument("path")
@click.argument("weight", type=click.IntRange(min=0))
@pass_context
def set_weight(ctx: Context, path: str, weight: int) -> None:
    """Set the weight of the node at PATH (0 disables it)."""
    store = open_tree(ctx)
    handle = _resolve(store, path)
    if handle == ROOT:
        error("The root weight is fixed")
        raise SystemExit(EXIT_TREE_ERROR)
    _apply(store, editing.set_weight(store.tree, handle, weight))


@cli.command("add-dance")
@click.argument("parent")
@click.argument("name")
@click.option("--weight", "-w", type=click.IntRange(min=0), default=1, show_default=True)
@pass_context
def add_dance(ctx: Context, parent: str, name: str, weight: int) -> None:
    """Add a dance NAME to the category at PARENT."""
    store = open_tree(ctx)
    handle = _resolve_category(store, parent)
    _apply(store, editing.add_dance(store.tree, handle, _require_name(name), weight))


@cli.command("add-category")
@click.argument("parent")
@click.argument("name")
@click.option("--weight", "-w", type=click.IntRange(min=0), default=1, show_default=True)
@pass_context
def add_category(ctx: Context, parent: str, name: str, weight: int) -> None:
    """Add a category NAME below PARENT ("" for the top level)."""
    store = open_tree(ctx)
    handle = _resolve_category(store, parent)
    _apply(store, editing.add_category(store.tree, handle, _require_name(name), weight))


@cli.command("rename")
@click.argument("path")
@click.argument("new_name")
@pass_context
def rename(ctx: Context, path: str, new_name: str) -> None:
    """Rename the node at PATH."""
    store = open_tree(ctx)
    handle = _resolve(store, path)
    if handle == ROOT:
        error("The root cannot be renamed")
        raise SystemExit(EXIT_TREE_ERROR)
    _apply(store, editing.rename_node(store.tree, handle, _require_name(new_name)))


@cli.command("remove")
@click.argument("path")
@click.option("--yes", "-y", is_flag=True, default=False, help="Don't ask for confirmation")
@pass_context
def remove(ctx: Context, path: str, yes: bool) -> None:
    """Remove the dance or category (with everything below it) at PATH."""
    store = open_tree(ctx)
    handle = _resolve(store, path)
    if handle == ROOT:
        error("The root node cannot be removed")
        raise SystemExit(EXIT_TREE_ERROR)
    if not yes and not store.tree.is_leaf(handle):
        click.confirm(f"Remove category '{store.tree.path_of(handle)}' and all its dances?", abort=True)
    _apply(store, editing.delete_node(store.tree, handle))
