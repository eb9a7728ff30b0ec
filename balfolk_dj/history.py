"""Undo/redo history for editing commands.

Edits to the dance tree and the synonym table are expressed as
``Command`` objects whose ``execute`` and ``undo`` closures capture the
before and after state. Executing a new command clears the redo stack.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from balfolk_dj.events import Signal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    description: str
    execute: Callable[[], None]
    undo: Callable[[], None]


class CommandHistory:
    """Undo and redo stacks for one editor."""

    def __init__(self, on_change: Callable[[], None] | None = None) -> None:
        self._undo: list[Command] = []
        self._redo: list[Command] = []
        self._on_change = on_change
        self.changed = Signal("history.changed")

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_description(self) -> str | None:
        return self._undo[-1].description if self._undo else None

    @property
    def redo_description(self) -> str | None:
        return self._redo[-1].description if self._redo else None

    def execute(self, command: Command) -> None:
        command.execute()
        self._undo.append(command)
        self._redo.clear()
        logger.debug("Executed '%s'", command.description)
        self._notify()

    def undo(self) -> bool:
        if not self._undo:
            return False
        command = self._undo.pop()
        command.undo()
        self._redo.append(command)
        logger.debug("Undid '%s'", command.description)
        self._notify()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        command = self._redo.pop()
        command.execute()
        self._undo.append(command)
        logger.debug("Redid '%s'", command.description)
        self._notify()
        return True

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
        self.changed.emit()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
        self.changed.emit()
