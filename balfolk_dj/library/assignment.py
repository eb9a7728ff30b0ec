"""Assignment of scanned tracks to dance tree leaves.

Assignment is always derived from scratch: every call to ``assign`` clears
the leaves and rebuilds the name lookup, so it must be re-run whenever the
track library, the tree or the synonym table changes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from balfolk_dj.library.models import TrackRef
from balfolk_dj.library.synonyms import DanceSynonym
from balfolk_dj.tree.models import ROOT, DanceTree
from balfolk_dj.utils.matching import normalize_dance_name

logger = logging.getLogger(__name__)


@dataclass
class AssignmentResult:
    assigned: int = 0
    unassigned: int = 0
    unassigned_tracks: list[TrackRef] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.assigned + self.unassigned


class TrackAssignmentIndex:
    """Maps normalized dance names (and their synonyms) to leaf handles."""

    def __init__(self, tree: DanceTree, synonyms: Iterable[DanceSynonym] = ()) -> None:
        self.tree = tree
        self.synonyms = list(synonyms)
        self._lookup: dict[str, int] = {}

    def set_synonyms(self, synonyms: Iterable[DanceSynonym]) -> None:
        self.synonyms = list(synonyms)

    def _find_synonym_group(self, normalized: str) -> DanceSynonym | None:
        for entry in self.synonyms:
            if normalize_dance_name(entry.name) == normalized:
                return entry
            if any(normalize_dance_name(s) == normalized for s in entry.synonyms):
                return entry
        return None

    def _register(self, key: str, handle: int) -> None:
        if not key:
            return
        existing = self._lookup.get(key)
        if existing is None:
            self._lookup[key] = handle
        elif existing != handle:
            logger.debug(
                "Dance name '%s' already maps to '%s', ignoring '%s'",
                key,
                self.tree.path_of(existing),
                self.tree.path_of(handle),
            )

    def build_lookup(self) -> dict[str, int]:
        """Rebuild the name lookup from the tree and the synonym table.

        The first leaf to claim a key keeps it.
        """
        self._lookup = {}
        leaves = list(self.tree.iter_leaves(ROOT))
        for handle in leaves:
            normalized = normalize_dance_name(self.tree.leaf(handle).name)
            self._register(normalized, handle)
            group = self._find_synonym_group(normalized) if normalized else None
            if group is not None:
                for synonym in group.synonyms:
                    self._register(normalize_dance_name(synonym), handle)
        logger.debug(
            "Built dance lookup with %d entries for %d dances", len(self._lookup), len(leaves)
        )
        return dict(self._lookup)

    def lookup(self, dance_name: str | None) -> int | None:
        """Return the leaf handle for a track's dance name, if any."""
        key = normalize_dance_name(dance_name)
        if not key:
            return None
        return self._lookup.get(key)

    def assign(self, tracks: Iterable[TrackRef]) -> AssignmentResult:
        """Clear all leaves and assign ``tracks`` to them.

        Tracks with an unknown dance stay unassigned; they can still be
        queued by hand but are never picked at random.
        """
        result = AssignmentResult()
        if self.tree.is_empty():
            logger.warning("Cannot assign tracks: dance tree not loaded")
            tracks = list(tracks)
            result.unassigned = len(tracks)
            result.unassigned_tracks = tracks
            return result

        self.tree.clear_assignments()
        self.build_lookup()

        for track in tracks:
            handle = self.lookup(track.dance)
            if handle is None:
                result.unassigned += 1
                result.unassigned_tracks.append(track)
                continue
            self.tree.leaf(handle).assigned_tracks.append(track)
            result.assigned += 1

        logger.info(
            "Track assignment complete: %d assigned, %d unassigned",
            result.assigned,
            result.unassigned,
        )
        if result.unassigned:
            logger.debug("%d tracks did not match any dance in the tree", result.unassigned)
        return result
