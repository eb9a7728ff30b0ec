"""Dance tree data model.

The tree is stored as an arena: every category and leaf lives in a flat
list and is addressed by its integer handle. Handle ``ROOT`` (0) is a
synthetic category whose children are the persisted top-level categories.
Removing a node tombstones its slot, so handles held elsewhere (undo
commands, selection results) stay valid for the life of the tree.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from balfolk_dj.exceptions import NodeNotFoundError

if TYPE_CHECKING:
    from balfolk_dj.library.models import TrackRef

logger = logging.getLogger(__name__)

ROOT = 0
ROOT_NAME = "Dance"
PATH_SEPARATOR = "/"


@dataclass
class DanceLeaf:
    """A single dance type, holding the tracks tagged with it."""

    name: str
    weight: int = 0
    assigned_tracks: list[TrackRef] = field(default_factory=list, compare=False, repr=False)

    @property
    def track_count(self) -> int:
        return len(self.assigned_tracks)

    @property
    def is_effectively_disabled(self) -> bool:
        return self.weight == 0 or not self.assigned_tracks

    @property
    def display_name(self) -> str:
        return f"{self.name}  Weight: {self.weight} ({self.track_count} tracks)"


@dataclass
class DanceCategory:
    """A grouping node; children and leaves are handles into the arena."""

    name: str
    weight: int = 0
    recurring: bool | None = None
    children: list[int] = field(default_factory=list)
    leaves: list[int] = field(default_factory=list)
    is_root: bool = False


Node = DanceCategory | DanceLeaf


class DanceTree:
    """Arena of dance categories and leaves."""

    def __init__(self) -> None:
        self._nodes: list[Node | None] = []
        self._parents: dict[int, int] = {}
        self.reset([])

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def reset(self, entries: list[dict[str, Any]]) -> None:
        """Rebuild the arena in place from persisted dicts.

        Existing handles become invalid; the tree object itself is kept so
        every holder sees the new content. The entries are built into a
        staging tree first, so a malformed entry leaves this tree unchanged.
        """
        staging = DanceTree.__new__(DanceTree)
        staging._nodes = [DanceCategory(name=ROOT_NAME, weight=1, is_root=True)]
        staging._parents = {}
        for entry in entries:
            staging._add_category_dict(ROOT, entry)
        self._nodes = staging._nodes
        self._parents = staging._parents

    @classmethod
    def from_dicts(cls, entries: list[dict[str, Any]]) -> DanceTree:
        tree = cls()
        tree.reset(entries)
        return tree

    def _add_category_dict(self, parent: int, entry: dict[str, Any]) -> int:
        handle = self.add_category(
            parent,
            str(entry.get("name", "")),
            int(entry.get("weight", 0)),
            recurring=entry.get("recurring"),
        )
        for dance in entry.get("dances") or []:
            self.add_leaf(handle, str(dance.get("name", "")), int(dance.get("weight", 0)))
        for child in entry.get("children") or []:
            self._add_category_dict(handle, child)
        return handle

    def to_dicts(self) -> list[dict[str, Any]]:
        """Serialize the persisted part of the tree (no root, no tracks)."""
        return [self._category_to_dict(h) for h in self.children_of(ROOT)]

    def _category_to_dict(self, handle: int) -> dict[str, Any]:
        category = self.category(handle)
        data: dict[str, Any] = {"name": category.name, "weight": category.weight}
        if category.recurring is not None:
            data["recurring"] = category.recurring
        if category.leaves:
            data["dances"] = [
                {"name": self.leaf(h).name, "weight": self.leaf(h).weight}
                for h in category.leaves
            ]
        if category.children:
            data["children"] = [self._category_to_dict(h) for h in category.children]
        return data

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def root(self) -> DanceCategory:
        return self.category(ROOT)

    def is_empty(self) -> bool:
        return not self.root.children and not self.root.leaves

    def node(self, handle: int) -> Node:
        if handle < 0 or handle >= len(self._nodes) or self._nodes[handle] is None:
            raise KeyError(f"No dance tree node with handle {handle}")
        return self._nodes[handle]  # type: ignore[return-value]

    def category(self, handle: int) -> DanceCategory:
        node = self.node(handle)
        if not isinstance(node, DanceCategory):
            raise TypeError(f"Node {handle} is a dance, not a category")
        return node

    def leaf(self, handle: int) -> DanceLeaf:
        node = self.node(handle)
        if not isinstance(node, DanceLeaf):
            raise TypeError(f"Node {handle} is a category, not a dance")
        return node

    def is_leaf(self, handle: int) -> bool:
        return isinstance(self.node(handle), DanceLeaf)

    def children_of(self, handle: int) -> list[int]:
        return list(self.category(handle).children)

    def leaves_of(self, handle: int) -> list[int]:
        return list(self.category(handle).leaves)

    def parent_of(self, handle: int) -> int | None:
        return self._parents.get(handle)

    def iter_leaves(self, handle: int = ROOT) -> Iterator[int]:
        """Yield leaf handles below ``handle``: own leaves, then children's."""
        category = self.category(handle)
        yield from category.leaves
        for child in category.children:
            yield from self.iter_leaves(child)

    def iter_categories(self, handle: int = ROOT) -> Iterator[int]:
        """Yield category handles below ``handle`` depth first (excluding it)."""
        for child in self.category(handle).children:
            yield child
            yield from self.iter_categories(child)

    def track_count(self, handle: int = ROOT) -> int:
        node = self.node(handle)
        if isinstance(node, DanceLeaf):
            return node.track_count
        return sum(self.leaf(h).track_count for h in self.iter_leaves(handle))

    def is_effectively_disabled(self, handle: int) -> bool:
        node = self.node(handle)
        if isinstance(node, DanceLeaf):
            return node.is_effectively_disabled
        return node.weight == 0 or self.track_count(handle) == 0

    def path_of(self, handle: int) -> str:
        names: list[str] = []
        current: int | None = handle
        while current is not None and current != ROOT:
            names.append(self.node(current).name)
            current = self.parent_of(current)
        return PATH_SEPARATOR.join(reversed(names))

    def find(self, path: str) -> int:
        """Resolve a slash-separated name path (e.g. ``"Couple/Mazurka"``).

        Names match case-insensitively. At each level categories are
        searched before leaves.

        Raises:
            NodeNotFoundError: If any path segment has no match.
        """
        segments = [s.strip() for s in path.strip(PATH_SEPARATOR).split(PATH_SEPARATOR)]
        if segments == [""]:
            return ROOT
        current = ROOT
        for segment in segments:
            if self.is_leaf(current):
                raise NodeNotFoundError(path)
            category = self.category(current)
            wanted = segment.casefold()
            match = next(
                (h for h in category.children if self.node(h).name.casefold() == wanted),
                None,
            )
            if match is None:
                match = next(
                    (h for h in category.leaves if self.node(h).name.casefold() == wanted),
                    None,
                )
            if match is None:
                raise NodeNotFoundError(path)
            current = match
        return current

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _append(self, node: Node, parent: int) -> int:
        handle = len(self._nodes)
        self._nodes.append(node)
        self._parents[handle] = parent
        return handle

    def add_category(
        self, parent: int, name: str, weight: int, *, recurring: bool | None = None
    ) -> int:
        parent_category = self.category(parent)
        handle = self._append(DanceCategory(name=name, weight=weight, recurring=recurring), parent)
        parent_category.children.append(handle)
        return handle

    def add_leaf(self, parent: int, name: str, weight: int) -> int:
        parent_category = self.category(parent)
        handle = self._append(DanceLeaf(name=name, weight=weight), parent)
        parent_category.leaves.append(handle)
        return handle

    def detach(self, handle: int) -> tuple[int, int]:
        """Unlink a node from its parent, keeping it in the arena.

        Returns:
            ``(parent, index)`` so the node can be re-inserted by undo.
        """
        if handle == ROOT:
            raise ValueError("The root node cannot be removed")
        parent = self._parents[handle]
        siblings = self._sibling_list(parent, handle)
        index = siblings.index(handle)
        siblings.pop(index)
        return parent, index

    def insert_node(self, handle: int, parent: int, index: int) -> None:
        """Re-link a detached node under ``parent`` at ``index``."""
        self._parents[handle] = parent
        siblings = self._sibling_list(parent, handle)
        if 0 <= index <= len(siblings):
            siblings.insert(index, handle)
        else:
            siblings.append(handle)

    def _sibling_list(self, parent: int, handle: int) -> list[int]:
        category = self.category(parent)
        return category.leaves if self.is_leaf(handle) else category.children

    def remove(self, handle: int) -> None:
        """Detach and tombstone a node and its whole subtree."""
        self.detach(handle)
        self._tombstone(handle)

    def _tombstone(self, handle: int) -> None:
        node = self.node(handle)
        if isinstance(node, DanceCategory):
            for child in node.children + node.leaves:
                self._tombstone(child)
        self._nodes[handle] = None
        self._parents.pop(handle, None)

    def set_weight(self, handle: int, weight: int) -> None:
        if weight < 0:
            raise ValueError(f"Weight must be >= 0, got {weight}")
        if handle == ROOT:
            raise ValueError("The root weight is fixed")
        self.node(handle).weight = weight

    def rename(self, handle: int, name: str) -> None:
        if handle == ROOT:
            raise ValueError("The root cannot be renamed")
        self.node(handle).name = name

    def clear_assignments(self) -> None:
        for handle in self.iter_leaves(ROOT):
            self.leaf(handle).assigned_tracks.clear()

    def __len__(self) -> int:
        """Number of live nodes, root excluded."""
        return sum(1 for n in self._nodes[1:] if n is not None)
