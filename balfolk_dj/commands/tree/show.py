"""Tree show command: renders the dance tree with weights and track counts."""

from __future__ import annotations

import click
from rich.tree import Tree

from balfolk_dj.cli import Context, pass_context
from balfolk_dj.commands._common import open_library, open_tree, require_config
from balfolk_dj.commands.tree import EXIT_TREE_ERROR, cli
from balfolk_dj.exceptions import NodeNotFoundError
from balfolk_dj.selection.weighted import WeightedSelector
from balfolk_dj.tree.models import ROOT, ROOT_NAME, DanceTree
from balfolk_dj.utils.output import console, error, info


def _label(
    tree: DanceTree,
    handle: int,
    probabilities: dict[int, float] | None,
    with_tracks: bool,
) -> str:
    node = tree.node(handle)
    parts = [f"[bold]{node.name}[/bold]" if not tree.is_leaf(handle) else node.name]
    parts.append(f"[weight]w={node.weight}[/weight]")
    if with_tracks:
        parts.append(f"({tree.track_count(handle)} tracks)")
    if probabilities is not None and tree.is_leaf(handle) and handle in probabilities:
        parts.append(f"{probabilities[handle]:6.1%}")
    label = "  ".join(parts)
    if with_tracks and tree.is_effectively_disabled(handle):
        return f"[disabled]{label}[/disabled]"
    return label


def _render(
    tree: DanceTree,
    handle: int,
    branch: Tree,
    probabilities: dict[int, float] | None,
    with_tracks: bool,
) -> None:
    for child in tree.children_of(handle):
        sub = branch.add(_label(tree, child, probabilities, with_tracks))
        _render(tree, child, sub, probabilities, with_tracks)
    for leaf in tree.leaves_of(handle):
        branch.add(_label(tree, leaf, probabilities, with_tracks))


@cli.command("show")
@click.argument("path", required=False, default="")
@click.option(
    "--probabilities",
    "-p",
    is_flag=True,
    default=False,
    help="Show the chance of each dance being suggested (needs the music directory)",
)
@pass_context
def show(ctx: Context, path: str, probabilities: bool) -> None:
    """Show the dance tree, or the branch at PATH.

    PATH is a slash-separated list of names, e.g. "Couple/Mazurka".
    Track counts are shown when a music directory is configured.

    Examples:

    \b
      balfolk-dj tree show
      balfolk-dj tree show Couple --probabilities
    """
    config = require_config(ctx)
    with_tracks = config.music_dir is not None
    if probabilities and not with_tracks:
        error(
            "Selection chances need the scanned tracks",
            hint="Set paths.music_dir in the config or pass --music-dir",
        )
        raise SystemExit(EXIT_TREE_ERROR)

    store = open_library(ctx).store if with_tracks else open_tree(ctx)
    tree = store.tree

    try:
        handle = tree.find(path)
    except NodeNotFoundError as e:
        error(str(e))
        raise SystemExit(EXIT_TREE_ERROR)

    chances = WeightedSelector(tree).selection_probabilities(handle=ROOT) if probabilities else None

    if tree.is_leaf(handle):
        console.print(_label(tree, handle, chances, with_tracks))
        return

    title = ROOT_NAME if handle == ROOT else _label(tree, handle, chances, with_tracks)
    root = Tree(title)
    _render(tree, handle, root, chances, with_tracks)
    console.print(root)

    if chances is not None and not chances:
        info("No dance can currently be suggested")
