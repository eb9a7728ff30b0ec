"""Persistence for the dance tree.

The store owns the single ``DanceTree`` instance of a session. Loading and
importing rebuild that instance in place so the selector, the assignment
index and the editors keep working on the same object.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from balfolk_dj.exceptions import TreeImportError, TreeLoadError
from balfolk_dj.history import CommandHistory
from balfolk_dj.tree.models import DanceTree
from balfolk_dj.utils.fileops import atomic_write_text

logger = logging.getLogger(__name__)

DEFAULT_TREE_RESOURCE = "dancetree.json"

_CATEGORY_FIELDS = {"name", "weight", "recurring", "dances", "children"}
_DANCE_FIELDS = {"name", "weight"}


def load_default_tree_text() -> str:
    """Return the bundled default dance tree as JSON text."""
    return resources.files("balfolk_dj.data").joinpath(DEFAULT_TREE_RESOURCE).read_text(
        encoding="utf-8"
    )


def dumps_tree(entries: list[dict[str, Any]]) -> str:
    return json.dumps(entries, indent=2, ensure_ascii=False) + "\n"


def validate_tree_data(data: Any) -> list[dict[str, Any]]:
    """Strictly validate persisted tree data.

    Unknown fields are rejected, every category and dance needs a non-empty
    name and weights must be non-negative integers.

    Raises:
        ValueError: Describing the first problem found.
    """
    if not isinstance(data, list):
        raise ValueError("root element must be a list of categories")
    for category in data:
        _validate_category(category)
    return data


def _validate_weight(value: Any, owner: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"weight of '{owner}' must be an integer")
    if value < 0:
        raise ValueError(f"weight of '{owner}' must be >= 0")


def _validate_category(category: Any) -> None:
    if not isinstance(category, dict):
        raise ValueError("category entries must be objects")
    unknown = set(category) - _CATEGORY_FIELDS
    if unknown:
        raise ValueError(f"unknown category field(s): {', '.join(sorted(unknown))}")
    name = category.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Category must have a non-empty name")
    _validate_weight(category.get("weight", 0), name)
    recurring = category.get("recurring")
    if recurring is not None and not isinstance(recurring, bool):
        raise ValueError(f"recurring of '{name}' must be true or false")

    dances = category.get("dances")
    if dances is not None:
        if not isinstance(dances, list):
            raise ValueError(f"dances of '{name}' must be a list")
        for dance in dances:
            if not isinstance(dance, dict):
                raise ValueError(f"dances of '{name}' must be objects")
            unknown = set(dance) - _DANCE_FIELDS
            if unknown:
                raise ValueError(f"unknown dance field(s): {', '.join(sorted(unknown))}")
            dance_name = dance.get("name")
            if not isinstance(dance_name, str) or not dance_name.strip():
                raise ValueError(f"Dance in category '{name}' must have a non-empty name")
            _validate_weight(dance.get("weight", 0), dance_name)

    children = category.get("children")
    if children is not None:
        if not isinstance(children, list):
            raise ValueError(f"children of '{name}' must be a list")
        for child in children:
            _validate_category(child)


class TreeStore:
    """Loads, saves, imports and exports the dance tree file."""

    def __init__(self, path: Path, tree: DanceTree | None = None) -> None:
        self.path = path
        self.tree = tree if tree is not None else DanceTree()
        self.history = CommandHistory()

    def load(self) -> DanceTree:
        """Load the tree from disk, extracting the bundled default first.

        Loading is tolerant: unknown fields are ignored.

        Raises:
            TreeLoadError: If the file cannot be read or parsed. The
                in-memory tree is left unchanged.
        """
        if not self.path.exists():
            logger.info("Dance tree file not found, extracting default")
            self._extract_default()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("Failed to load dance tree from %s: %s", self.path, e)
            raise TreeLoadError(self.path, str(e)) from e

        if not isinstance(data, list):
            raise TreeLoadError(self.path, "root element must be a list of categories")

        try:
            self.tree.reset(data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.error("Malformed dance tree in %s: %s", self.path, e)
            raise TreeLoadError(self.path, f"malformed entry: {e}") from e

        logger.info("Loaded dance tree with %d top-level categories", len(data))
        return self.tree

    def save(self) -> None:
        """Write the tree atomically; the previous file survives a failure."""
        atomic_write_text(self.path, dumps_tree(self.tree.to_dicts()))
        logger.info("Dance tree saved to %s", self.path)

    def import_file(self, path: Path) -> int:
        """Replace the tree with a strictly validated file and save it.

        Returns:
            Number of imported top-level categories.

        Raises:
            TreeImportError: If the file is missing, not JSON or invalid.
        """
        if not path.exists():
            raise TreeImportError(path, "file not found")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise TreeImportError(path, str(e)) from e
        except json.JSONDecodeError as e:
            raise TreeImportError(path, f"Invalid JSON structure - {e}") from e

        try:
            validate_tree_data(data)
        except ValueError as e:
            raise TreeImportError(path, str(e)) from e

        staged = DanceTree.from_dicts(data)
        try:
            atomic_write_text(self.path, dumps_tree(staged.to_dicts()))
        except OSError as e:
            logger.error("Failed to save imported dance tree to %s: %s", self.path, e)
            raise TreeImportError(path, f"cannot save dance tree: {e}") from e

        self.tree.reset(data)
        self.history.clear()
        logger.info("Imported dance tree with %d top-level categories", len(data))
        return len(data)

    def export_file(self, path: Path) -> None:
        path.write_text(dumps_tree(self.tree.to_dicts()), encoding="utf-8")
        logger.info("Exported dance tree to %s", path)

    def reset_to_default(self) -> DanceTree:
        """Overwrite the stored tree with the bundled default and load it."""
        self._extract_default()
        self.history.clear()
        return self.load()

    def _extract_default(self) -> None:
        atomic_write_text(self.path, load_default_tree_text())
        logger.info("Default dance tree extracted to %s", self.path)
