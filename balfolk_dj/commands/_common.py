"""Helpers shared by the command modules."""

from __future__ import annotations

from dataclasses import dataclass

from balfolk_dj.cli import Context
from balfolk_dj.commands import EXIT_ERROR
from balfolk_dj.config import Config
from balfolk_dj.exceptions import BalfolkDJError
from balfolk_dj.library.assignment import AssignmentResult, TrackAssignmentIndex
from balfolk_dj.library.models import TrackRef
from balfolk_dj.library.scanner import scan_directory
from balfolk_dj.library.synonyms import SynonymTable
from balfolk_dj.tree.store import TreeStore
from balfolk_dj.utils.output import error


def require_config(ctx: Context) -> Config:
    if ctx.config is None:
        error("Configuration not loaded")
        raise SystemExit(EXIT_ERROR)
    return ctx.config


def open_tree(ctx: Context) -> TreeStore:
    """Load the dance tree, exiting with an error message on failure."""
    config = require_config(ctx)
    store = TreeStore(config.tree_path)
    try:
        store.load()
    except BalfolkDJError as e:
        error(str(e), hint="Run 'balfolk-dj tree reset' to restore the default tree")
        raise SystemExit(EXIT_ERROR)
    return store


def open_synonyms(ctx: Context) -> SynonymTable:
    config = require_config(ctx)
    table = SynonymTable(config.synonyms_path)
    try:
        table.load()
    except BalfolkDJError as e:
        error(str(e))
        raise SystemExit(EXIT_ERROR)
    return table


@dataclass
class Library:
    """A loaded tree with the scanned tracks assigned to it."""

    store: TreeStore
    synonyms: SynonymTable
    tracks: list[TrackRef]
    assignment: AssignmentResult


def open_library(ctx: Context) -> Library:
    """Load tree and synonyms, scan the music directory and assign tracks."""
    config = require_config(ctx)
    store = open_tree(ctx)
    synonyms = open_synonyms(ctx)
    try:
        tracks = scan_directory(config.music_dir)
    except BalfolkDJError as e:
        error(str(e), hint="Set paths.music_dir in the config or pass --music-dir")
        raise SystemExit(EXIT_ERROR)

    index = TrackAssignmentIndex(store.tree, synonyms.entries)
    result = index.assign(tracks)
    return Library(store=store, synonyms=synonyms, tracks=tracks, assignment=result)
