"""Dance synonym commands."""

from __future__ import annotations

from pathlib import Path

import click

from balfolk_dj.cli import Context, pass_context
from balfolk_dj.commands import EXIT_ERROR
from balfolk_dj.commands._common import open_synonyms, require_config
from balfolk_dj.exceptions import SynonymImportError
from balfolk_dj.library import synonyms as syn
from balfolk_dj.utils.output import console, create_table, error, info, success, warning


@click.group("synonyms")
def cli() -> None:
    """Manage alternative spellings of dance names.

    A track tagged "Scottish" is assigned to the "Schottisch" dance when
    both names are listed in the same synonym entry.
    """
    pass


@cli.command("show")
@pass_context
def show(ctx: Context) -> None:
    """List all synonym entries."""
    table = open_synonyms(ctx)
    if not table.entries:
        info("No synonym entries defined")
        return

    out = create_table(title="Dance synonyms")
    out.add_column("Dance", style="track.dance")
    out.add_column("Synonyms")
    for entry in table.entries:
        out.add_row(entry.name, ", ".join(entry.synonyms))
    console.print(out)


@cli.command("add")
@click.argument("name")
@click.argument("synonyms", nargs=-1)
@pass_context
def add(ctx: Context, name: str, synonyms: tuple[str, ...]) -> None:
    """Add SYNONYMS to the entry NAME, creating the entry if needed.

    Examples:

    \b
      balfolk-dj synonyms add Polka "Polka piquée"
    """
    table = open_synonyms(ctx)
    name = name.strip()
    if not name:
        error("Name must not be empty")
        raise SystemExit(EXIT_ERROR)

    entry = table.find(name)
    if entry is None:
        if table.is_duplicate(name):
            error(f"'{name}' is already used as a synonym")
            raise SystemExit(EXIT_ERROR)
        table.history.execute(syn.add_entry(table, name))
        entry = table.entries[-1]
        success(f"Added entry '{name}'")

    for value in (s.strip() for s in synonyms):
        if not value:
            continue
        if table.is_duplicate(value):
            warning(f"Skipping '{value}': already used by another entry")
            continue
        table.history.execute(syn.add_synonym(entry, value))
        success(f"Added synonym '{value}' to '{entry.name}'")


@cli.command("remove")
@click.argument("name")
@click.argument("synonyms", nargs=-1)
@pass_context
def remove(ctx: Context, name: str, synonyms: tuple[str, ...]) -> None:
    """Remove SYNONYMS from NAME, or the whole entry when none are given."""
    table = open_synonyms(ctx)
    entry = table.find(name)
    if entry is None:
        error(f"No synonym entry named '{name}'")
        raise SystemExit(EXIT_ERROR)

    if not synonyms:
        table.history.execute(syn.remove_entry(table, table.entries.index(entry)))
        success(f"Removed entry '{entry.name}'")
        return

    for value in synonyms:
        if value not in entry.synonyms:
            warning(f"'{value}' is not a synonym of '{entry.name}'")
            continue
        table.history.execute(syn.remove_synonym(entry, value))
        success(f"Removed synonym '{value}' from '{entry.name}'")


@cli.command("import")
@click.argument("file", type=click.Path(path_type=Path))
@pass_context
def import_synonyms(ctx: Context, file: Path) -> None:
    """Replace all synonym entries with the contents of FILE."""
    config = require_config(ctx)
    table = syn.SynonymTable(config.synonyms_path)
    try:
        count = table.import_file(file)
    except SynonymImportError as e:
        error(str(e))
        raise SystemExit(EXIT_ERROR)
    success(f"Imported {count} synonym entries from {file}")


@cli.command("export")
@click.argument("file", type=click.Path(path_type=Path))
@pass_context
def export_synonyms(ctx: Context, file: Path) -> None:
    """Write the synonym entries to FILE."""
    table = open_synonyms(ctx)
    try:
        table.export_file(file)
    except OSError as e:
        error(f"Failed to export synonyms: {e}")
        raise SystemExit(EXIT_ERROR)
    success(f"Exported {len(table.entries)} synonym entries to {file}")
