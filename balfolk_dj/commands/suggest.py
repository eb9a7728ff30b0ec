"""Suggest command: prints weighted random track suggestions."""

from __future__ import annotations

import random

import click

from balfolk_dj.cli import Context, pass_context
from balfolk_dj.commands import EXIT_ERROR
from balfolk_dj.commands._common import open_library
from balfolk_dj.exceptions import NodeNotFoundError
from balfolk_dj.library.models import TrackRef
from balfolk_dj.notifications import Notifier, console_sink
from balfolk_dj.selection.weighted import MSG_NO_TRACKS, WeightedSelector
from balfolk_dj.tree.models import ROOT
from balfolk_dj.utils.output import error, print_track


@click.command("suggest")
@click.option("--count", "-n", type=click.IntRange(min=1), default=1, show_default=True)
@click.option(
    "--from",
    "branch",
    default="",
    metavar="PATH",
    help="Only suggest from the category or dance at PATH",
)
@click.option(
    "--no-duplicates",
    is_flag=True,
    default=False,
    help="Never suggest the same track twice",
)
@click.option("--seed", type=int, default=None, help="Seed for repeatable suggestions")
@pass_context
def cli(ctx: Context, count: int, branch: str, no_duplicates: bool, seed: int | None) -> None:
    """Suggest tracks by weighted random selection over the dance tree.

    Examples:

    \b
      balfolk-dj suggest -n 5 --no-duplicates
      balfolk-dj suggest --from Couple/Mazurka
    """
    library = open_library(ctx)
    tree = library.store.tree
    notifier = Notifier(sink=console_sink)
    selector = WeightedSelector(tree, notifier=notifier, rng=random.Random(seed))

    try:
        handle = tree.find(branch)
    except NodeNotFoundError as e:
        error(str(e))
        raise SystemExit(EXIT_ERROR)

    picked: set[TrackRef] = set()

    def exclude(track: TrackRef) -> bool:
        return no_duplicates and track in picked

    for i in range(1, count + 1):
        if handle == ROOT:
            track = selector.select_from_root(exclude)
        else:
            track = selector.select_track(handle, exclude)
            if track is None:
                notifier.warning(MSG_NO_TRACKS)
        if track is None:
            break
        picked.add(track)
        print_track(
            track.dance,
            track.artist,
            track.title,
            prefix=f"[{i}/{count}] {track.duration_formatted:>6}",
        )
