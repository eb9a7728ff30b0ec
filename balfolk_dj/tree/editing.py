"""Undoable edit commands for the dance tree.

Each factory returns a ``Command`` to hand to ``TreeStore.history``.
Deleted nodes are only detached from their parent, so undo can re-link
the same handle at its old position.
"""

from __future__ import annotations

from collections.abc import Callable

from balfolk_dj.history import Command
from balfolk_dj.tree.models import DanceTree


def _noop() -> None:
    pass


def _add_node(
    tree: DanceTree,
    parent: int,
    create: Callable[[], int],
    description: str,
    on_changed: Callable[[], None],
) -> Command:
    state: dict[str, int] = {}

    def execute() -> None:
        if "handle" not in state:
            state["handle"] = create()
        else:
            tree.insert_node(state["handle"], parent, -1)
        on_changed()

    def undo() -> None:
        tree.detach(state["handle"])
        on_changed()

    return Command(description, execute, undo)


def add_category(
    tree: DanceTree,
    parent: int,
    name: str,
    weight: int,
    on_changed: Callable[[], None] = _noop,
) -> Command:
    return _add_node(
        tree,
        parent,
        lambda: tree.add_category(parent, name, weight),
        f"Add category '{name}'",
        on_changed,
    )


def add_dance(
    tree: DanceTree,
    parent: int,
    name: str,
    weight: int,
    on_changed: Callable[[], None] = _noop,
) -> Command:
    return _add_node(
        tree,
        parent,
        lambda: tree.add_leaf(parent, name, weight),
        f"Add dance '{name}'",
        on_changed,
    )


def delete_node(
    tree: DanceTree, handle: int, on_changed: Callable[[], None] = _noop
) -> Command:
    """Remove a category (with its subtree) or a dance."""
    kind = "dance" if tree.is_leaf(handle) else "category"
    name = tree.node(handle).name
    position: dict[str, tuple[int, int]] = {}

    def execute() -> None:
        position["at"] = tree.detach(handle)
        on_changed()

    def undo() -> None:
        parent, index = position["at"]
        tree.insert_node(handle, parent, index)
        on_changed()

    return Command(f"Delete {kind} '{name}'", execute, undo)


def rename_node(
    tree: DanceTree, handle: int, new_name: str, on_changed: Callable[[], None] = _noop
) -> Command:
    old_name = tree.node(handle).name

    def execute() -> None:
        tree.rename(handle, new_name)
        on_changed()

    def undo() -> None:
        tree.rename(handle, old_name)
        on_changed()

    return Command(f"Rename '{old_name}' to '{new_name}'", execute, undo)


def set_weight(
    tree: DanceTree, handle: int, new_weight: int, on_changed: Callable[[], None] = _noop
) -> Command:
    node = tree.node(handle)
    old_weight = node.weight

    def execute() -> None:
        tree.set_weight(handle, new_weight)
        on_changed()

    def undo() -> None:
        tree.set_weight(handle, old_weight)
        on_changed()

    return Command(f"Change weight of '{node.name}' to {new_weight}", execute, undo)
