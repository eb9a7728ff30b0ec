"""Dance synonym table.

Tracks are often tagged with a local spelling of a dance ("Schottisch",
"Scottish", "Chotis"). The synonym table groups such spellings under one
name so the assignment index can map them to the same tree leaf.

Edits go through ``Command`` objects and are saved after every change.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

from balfolk_dj.events import Signal
from balfolk_dj.exceptions import SynonymError, SynonymImportError
from balfolk_dj.history import Command, CommandHistory
from balfolk_dj.utils.fileops import atomic_write_text
from balfolk_dj.utils.matching import dance_names_equal, normalize_dance_name

logger = logging.getLogger(__name__)

DEFAULT_SYNONYMS_RESOURCE = "dancesynonyms.json"

_ENTRY_FIELDS = {"name", "synonyms"}


@dataclass
class DanceSynonym:
    name: str
    synonyms: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "synonyms": list(self.synonyms)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DanceSynonym:
        return cls(
            name=str(data.get("name", "")),
            synonyms=[str(s) for s in data.get("synonyms") or []],
        )


def validate_synonym_data(data: Any) -> list[dict[str, Any]]:
    """Strict validation used on import.

    Raises:
        ValueError: Describing the first problem found.
    """
    if not isinstance(data, list):
        raise ValueError("root element must be a list of entries")
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError("entries must be objects")
        unknown = set(entry) - _ENTRY_FIELDS
        if unknown:
            raise ValueError(f"unknown field(s): {', '.join(sorted(unknown))}")
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("every entry needs a non-empty name")
        synonyms = entry.get("synonyms", [])
        if not isinstance(synonyms, list) or not all(isinstance(s, str) for s in synonyms):
            raise ValueError(f"synonyms of '{name}' must be a list of strings")
    return data


class SynonymTable:
    """Loads, saves and edits the synonym file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.entries: list[DanceSynonym] = []
        self.changed = Signal("synonyms.changed")
        self.history = CommandHistory(on_change=self._edited)

    def load(self) -> list[DanceSynonym]:
        """Load the synonym file, extracting the bundled default first.

        Raises:
            SynonymError: If the stored file can't be read or parsed.
        """
        if not self.path.exists():
            logger.info("Dance synonyms file not found, extracting default")
            atomic_write_text(
                self.path,
                resources.files("balfolk_dj.data")
                .joinpath(DEFAULT_SYNONYMS_RESOURCE)
                .read_text(encoding="utf-8"),
            )

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("Failed to load dance synonyms from %s: %s", self.path, e)
            raise SynonymError(f"Failed to load dance synonyms: {e}") from e
        if not isinstance(data, list):
            raise SynonymError("Failed to load dance synonyms: root element must be a list")

        self.entries = [DanceSynonym.from_dict(e) for e in data if isinstance(e, dict)]
        logger.info("Loaded %d dance synonym entries", len(self.entries))
        self.changed.emit()
        return self.entries

    def save(self) -> None:
        atomic_write_text(self.path, self._dumps())
        logger.debug("Dance synonyms saved to %s", self.path)

    def import_file(self, path: Path) -> int:
        """Replace all entries with a strictly validated file.

        Raises:
            SynonymImportError: If the file is missing or invalid.
        """
        if not path.exists():
            raise SynonymImportError(path, "file not found")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            validate_synonym_data(data)
        except json.JSONDecodeError as e:
            raise SynonymImportError(path, "Invalid JSON format") from e
        except (OSError, UnicodeDecodeError, ValueError) as e:
            raise SynonymImportError(path, str(e)) from e

        entries = [DanceSynonym.from_dict(e) for e in data]
        try:
            atomic_write_text(self.path, self._dumps(entries))
        except OSError as e:
            logger.error("Failed to save imported synonyms to %s: %s", self.path, e)
            raise SynonymImportError(path, f"cannot save synonyms: {e}") from e

        self.entries = entries
        self.history.clear()
        logger.info("Imported %d synonym entries", len(self.entries))
        self.changed.emit()
        return len(self.entries)

    def export_file(self, path: Path) -> None:
        path.write_text(self._dumps(), encoding="utf-8")
        logger.info("Exported %d synonym entries to %s", len(self.entries), path)

    def is_duplicate(
        self,
        value: str,
        exclude_entry: int | None = None,
        exclude_synonym: str | None = None,
    ) -> bool:
        """Whether ``value`` already appears as a name or synonym.

        ``exclude_entry`` skips that entry's name (when renaming it), and
        together with ``exclude_synonym`` skips one synonym of that entry.
        """
        wanted = normalize_dance_name(value)
        if not wanted:
            return False
        for index, entry in enumerate(self.entries):
            if index != exclude_entry or exclude_synonym is not None:
                if normalize_dance_name(entry.name) == wanted:
                    return True
            for synonym in entry.synonyms:
                if index == exclude_entry and synonym == exclude_synonym:
                    continue
                if normalize_dance_name(synonym) == wanted:
                    return True
        return False

    def find(self, name: str) -> DanceSynonym | None:
        return next((e for e in self.entries if dance_names_equal(e.name, name)), None)

    def _dumps(self, entries: list[DanceSynonym] | None = None) -> str:
        entries = self.entries if entries is None else entries
        return json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False) + "\n"

    def _edited(self) -> None:
        self.save()
        self.changed.emit()


# ---------------------------------------------------------------------------
# Edit commands
# ---------------------------------------------------------------------------


def add_entry(table: SynonymTable, name: str) -> Command:
    entry = DanceSynonym(name)

    def execute() -> None:
        table.entries.append(entry)

    def undo() -> None:
        table.entries.remove(entry)

    return Command(f"Add entry '{name}'", execute, undo)


def remove_entry(table: SynonymTable, index: int) -> Command:
    entry = table.entries[index]

    def execute() -> None:
        table.entries.remove(entry)

    def undo() -> None:
        table.entries.insert(min(index, len(table.entries)), entry)

    return Command(f"Remove entry '{entry.name}'", execute, undo)


def rename_entry(entry: DanceSynonym, new_name: str) -> Command:
    old_name = entry.name

    def execute() -> None:
        entry.name = new_name

    def undo() -> None:
        entry.name = old_name

    return Command(f"Rename '{old_name}' to '{new_name}'", execute, undo)


def add_synonym(entry: DanceSynonym, synonym: str) -> Command:
    def execute() -> None:
        entry.synonyms.append(synonym)

    def undo() -> None:
        entry.synonyms.remove(synonym)

    return Command(f"Add synonym '{synonym}' to '{entry.name}'", execute, undo)


def remove_synonym(entry: DanceSynonym, synonym: str) -> Command:
    index = entry.synonyms.index(synonym)

    def execute() -> None:
        entry.synonyms.remove(synonym)

    def undo() -> None:
        entry.synonyms.insert(index, synonym)

    return Command(f"Remove synonym '{synonym}' from '{entry.name}'", execute, undo)
