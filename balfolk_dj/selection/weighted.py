"""Weighted random track selection over the dance tree.

At every category the selector draws among the eligible child categories
and dances in proportion to their weights, descends into the winner and
finally picks a track uniformly among the winning dance's tracks. Weights
steer which *dance* is played, never which recording of it.

A node with weight 0 is skipped together with everything below it.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable

from balfolk_dj.library.models import TrackRef
from balfolk_dj.notifications import Notifier
from balfolk_dj.tree.models import ROOT, DanceTree

logger = logging.getLogger(__name__)

ExcludePredicate = Callable[[TrackRef], bool]

MSG_TREE_NOT_LOADED = "Dance tree not loaded"
MSG_NO_TRACKS = "No tracks available for random selection"


def _include_all(track: TrackRef) -> bool:
    return False


class WeightedSelector:
    """Samples tracks from a ``DanceTree``.

    Args:
        tree: The shared dance tree.
        notifier: Receives "no tracks available" style warnings.
        rng: Random source; pass a seeded ``random.Random`` for repeatable draws.
    """

    def __init__(
        self,
        tree: DanceTree,
        notifier: Notifier | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.tree = tree
        self.notifier = notifier if notifier is not None else Notifier()
        self.rng = rng if rng is not None else random.Random()

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    def leaf_has_eligible_tracks(self, handle: int, exclude: ExcludePredicate | None = None) -> bool:
        exclude = exclude or _include_all
        return any(not exclude(t) for t in self.tree.leaf(handle).assigned_tracks)

    def has_eligible_tracks(self, handle: int, exclude: ExcludePredicate | None = None) -> bool:
        """Whether a non-excluded track exists below a node.

        Direct dances count regardless of their weight; child categories
        only when their weight is positive.
        """
        exclude = exclude or _include_all
        if self.tree.is_leaf(handle):
            return self.leaf_has_eligible_tracks(handle, exclude)
        category = self.tree.category(handle)
        if any(self.leaf_has_eligible_tracks(h, exclude) for h in category.leaves):
            return True
        return any(
            self.tree.category(h).weight > 0 and self.has_eligible_tracks(h, exclude)
            for h in category.children
        )

    def eligible_options(
        self, handle: int, exclude: ExcludePredicate | None = None
    ) -> list[tuple[int, int]]:
        """``(handle, weight)`` pairs eligible at one level, categories first."""
        exclude = exclude or _include_all
        category = self.tree.category(handle)
        options: list[tuple[int, int]] = []
        for child in category.children:
            weight = self.tree.category(child).weight
            if weight > 0 and self.has_eligible_tracks(child, exclude):
                options.append((child, weight))
        for leaf in category.leaves:
            weight = self.tree.leaf(leaf).weight
            if weight > 0 and self.leaf_has_eligible_tracks(leaf, exclude):
                options.append((leaf, weight))
        return options

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_leaf(self, handle: int, exclude: ExcludePredicate | None = None) -> int | None:
        """Draw a dance below ``handle``; None when nothing is eligible."""
        exclude = exclude or _include_all
        current = handle
        while True:
            options = self.eligible_options(current, exclude)
            total = sum(weight for _, weight in options)
            if total == 0:
                return None
            r = self.rng.randrange(total)
            cumulative = 0
            chosen: int | None = None
            for option, weight in options:
                cumulative += weight
                if r < cumulative:
                    chosen = option
                    break
            if chosen is None:
                return None
            if self.tree.is_leaf(chosen):
                return chosen
            current = chosen

    def select_track(
        self, handle: int = ROOT, exclude: ExcludePredicate | None = None
    ) -> TrackRef | None:
        exclude = exclude or _include_all
        leaf = self.select_leaf(handle, exclude)
        if leaf is None:
            return None
        available = [t for t in self.tree.leaf(leaf).assigned_tracks if not exclude(t)]
        if not available:
            return None
        track = self.rng.choice(available)
        logger.debug("Selected '%s' from %s", track.display_name, self.tree.path_of(leaf))
        return track

    def select_from_root(self, exclude: ExcludePredicate | None = None) -> TrackRef | None:
        """Select from the whole tree, notifying the user when nothing fits."""
        if self.tree.is_empty():
            self.notifier.warning(MSG_TREE_NOT_LOADED)
            return None
        track = self.select_track(ROOT, exclude)
        if track is None:
            self.notifier.warning(MSG_NO_TRACKS)
        return track

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def selection_probabilities(
        self, exclude: ExcludePredicate | None = None, handle: int = ROOT
    ) -> dict[int, float]:
        """Exact chance of each dance being drawn from ``handle``.

        Dances that can't be drawn are omitted. The values can sum to less
        than one when a category counts as eligible through a zero-weight
        dance, since drawing that category then yields nothing.
        """
        exclude = exclude or _include_all
        result: dict[int, float] = {}
        self._accumulate(handle, 1.0, exclude, result)
        return result

    def _accumulate(
        self,
        handle: int,
        mass: float,
        exclude: ExcludePredicate,
        result: dict[int, float],
    ) -> None:
        options = self.eligible_options(handle, exclude)
        total = sum(weight for _, weight in options)
        if total == 0:
            return
        for option, weight in options:
            share = mass * weight / total
            if self.tree.is_leaf(option):
                result[option] = result.get(option, 0.0) + share
            else:
                self._accumulate(option, share, exclude, result)
