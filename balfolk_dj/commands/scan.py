"""Scan command: reads the music directory and reports dance assignment."""

from __future__ import annotations

import click

from balfolk_dj.cli import Context, pass_context
from balfolk_dj.commands._common import open_library
from balfolk_dj.library.models import format_duration
from balfolk_dj.utils.output import console, create_table, info, print_track, success, warning


@click.command("scan")
@click.option(
    "--unassigned",
    "-u",
    is_flag=True,
    default=False,
    help="List tracks whose dance is not in the tree",
)
@click.option(
    "--by-dance",
    is_flag=True,
    default=False,
    help="Show a table of track counts per dance",
)
@pass_context
def cli(ctx: Context, unassigned: bool, by_dance: bool) -> None:
    """Scan the music directory and assign tracks to dances.

    Files must be named "Dance - Artist - Title.mp3". The dance name is
    matched against the tree and the synonym table, ignoring case and
    accents.

    Examples:

    \b
      balfolk-dj scan
      balfolk-dj -m ~/Music/balfolk scan --unassigned
    """
    library = open_library(ctx)
    result = library.assignment
    total_duration = sum(t.duration for t in library.tracks)

    if not library.tracks:
        warning("No tracks found in the music directory")
        return

    success(
        f"Found {result.total} tracks ({format_duration(total_duration)}): "
        f"{result.assigned} assigned, {result.unassigned} unassigned"
    )

    if by_dance:
        tree = library.store.tree
        table = create_table(title="Tracks per dance")
        table.add_column("Dance", style="track.dance")
        table.add_column("Weight", justify="right", style="weight")
        table.add_column("Tracks", justify="right")
        for handle in tree.iter_leaves():
            leaf = tree.leaf(handle)
            style = "disabled" if leaf.is_effectively_disabled else None
            table.add_row(tree.path_of(handle), str(leaf.weight), str(leaf.track_count), style=style)
        console.print(table)

    if unassigned and result.unassigned_tracks:
        info("Unassigned tracks:")
        for track in result.unassigned_tracks:
            print_track(track.dance, track.artist, track.title, prefix="  -")
