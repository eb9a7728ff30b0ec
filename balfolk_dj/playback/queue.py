"""The playback queue.

Holds the upcoming items in order. Manual edits always purge the
auto-queued suggestion first, so there is at most one suggestion and it
is always the last item.

Signals:
    changed(): after every mutation.
    first_item_changed(item | None): when the front of the queue changes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime, timedelta

from balfolk_dj.config import (
    DEFAULT_DELAY_SECONDS,
    DEFAULT_MAX_QUEUE_ITEMS,
    MAX_DELAY_SECONDS,
    MIN_DELAY_SECONDS,
)
from balfolk_dj.events import Signal
from balfolk_dj.library.models import TrackRef
from balfolk_dj.library.session import SessionHistory
from balfolk_dj.notifications import Notifier
from balfolk_dj.playback.items import (
    AutoQueuedTrack,
    DelayMarker,
    MessageMarker,
    QueueItem,
    StopMarker,
    describe,
    is_hard_stop,
    track_of,
)

logger = logging.getLogger(__name__)

FINISH_UNKNOWN = "queue finishes at: --:--"


def clamp_delay(seconds: int) -> int:
    return max(MIN_DELAY_SECONDS, min(MAX_DELAY_SECONDS, seconds))


class PlaybackQueue:
    """Bounded, ordered queue of tracks and markers."""

    def __init__(
        self,
        *,
        max_items: int = DEFAULT_MAX_QUEUE_ITEMS,
        delay_seconds: int = DEFAULT_DELAY_SECONDS,
        allow_duplicates: bool = True,
        history: SessionHistory | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.max_items = max_items
        self.delay_seconds = clamp_delay(delay_seconds)
        self.allow_duplicates = allow_duplicates
        self.history = history if history is not None else SessionHistory()
        self.notifier = notifier if notifier is not None else Notifier()
        self.currently_playing: TrackRef | None = None
        self.current_remaining: float = 0.0
        self._items: list[QueueItem] = []
        self.changed = Signal("queue.changed")
        self.first_item_changed = Signal("queue.first_item_changed")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[QueueItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[QueueItem]:
        return iter(list(self._items))

    def __bool__(self) -> bool:
        return bool(self._items)

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self.max_items

    @property
    def has_manual_items(self) -> bool:
        return any(not isinstance(i, AutoQueuedTrack) for i in self._items)

    @property
    def auto_item(self) -> AutoQueuedTrack | None:
        return next((i for i in self._items if isinstance(i, AutoQueuedTrack)), None)

    def peek_front(self) -> QueueItem | None:
        return self._items[0] if self._items else None

    def contains_track(self, track: TrackRef) -> bool:
        return any(track_of(i) == track for i in self._items)

    def is_duplicate(self, track: TrackRef) -> bool:
        """Queued (manual or auto), playing, or, with duplicates off, already played."""
        if self.contains_track(track):
            return True
        if self.currently_playing is not None and self.currently_playing == track:
            return True
        return not self.allow_duplicates and self.history.has_been_played(track)

    # ------------------------------------------------------------------
    # Manual mutation
    # ------------------------------------------------------------------

    def add_manual(self, item: QueueItem) -> bool:
        """Append a user-chosen item.

        Returns:
            False if the queue is full or the track is a rejected duplicate.
        """
        if isinstance(item, AutoQueuedTrack):
            raise TypeError("Suggestions must be added with add_auto()")

        self.remove_all_auto()

        if self.is_full:
            self.notifier.warning(f"Queue is full (max {self.max_items} items)")
            return False

        track = track_of(item)
        if track is not None and not self.allow_duplicates and self.is_duplicate(track):
            self.notifier.warning("Track has already been played or is in the queue")
            return False

        was_empty = not self._items
        self._items.append(item)
        logger.debug("Added to queue: %s", describe(item))
        if was_empty:
            self.first_item_changed.emit(item)
        self.changed.emit()
        return True

    def add_track(self, track: TrackRef) -> bool:
        return self.add_manual(track)

    def add_stop_marker(self) -> bool:
        return self.add_manual(StopMarker())

    def add_delay_marker(self, seconds: int | None = None) -> bool:
        delay = self.delay_seconds if seconds is None else clamp_delay(seconds)
        return self.add_manual(DelayMarker(delay))

    def add_message_marker(self, message: str, delay_seconds: int | None = None) -> bool:
        delay = None if delay_seconds is None else clamp_delay(delay_seconds)
        return self.add_manual(MessageMarker(message, delay))

    def remove(self, item: QueueItem) -> bool:
        """Remove one item (matched by identity)."""
        for index, queued in enumerate(self._items):
            if queued is item:
                del self._items[index]
                logger.debug("Removed from queue: %s", describe(item))
                if index == 0:
                    self.first_item_changed.emit(self.peek_front())
                self.changed.emit()
                return True
        return False

    def clear(self) -> None:
        had_items = bool(self._items)
        self._items.clear()
        logger.debug("Queue cleared")
        if had_items:
            self.first_item_changed.emit(None)
        self.changed.emit()

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def add_auto(self, track: TrackRef) -> bool:
        """Append a suggestion; fails silently when the queue is full."""
        if self.is_full:
            logger.debug("Queue full, not auto-queueing %s", track.display_name)
            return False
        was_empty = not self._items
        item = AutoQueuedTrack(track)
        self._items.append(item)
        logger.debug("Auto-queued: %s", track.display_name)
        if was_empty:
            self.first_item_changed.emit(item)
        self.changed.emit()
        return True

    def remove_all_auto(self) -> int:
        before = len(self._items)
        self._items = [i for i in self._items if not isinstance(i, AutoQueuedTrack)]
        removed = before - len(self._items)
        if removed:
            logger.debug("Removed %d auto-queued item(s)", removed)
            self.first_item_changed.emit(self.peek_front())
            self.changed.emit()
        return removed

    def pin(self, auto: AutoQueuedTrack) -> TrackRef | None:
        """Turn a suggestion into a manual entry at the same position."""
        index = self._index_of(auto)
        if index is None:
            return None
        self._items[index] = auto.track
        logger.debug("Pinned auto-queued track: %s", auto.track.display_name)
        if index == 0:
            self.first_item_changed.emit(auto.track)
        self.changed.emit()
        return auto.track

    def replace_auto(self, old: AutoQueuedTrack, new_track: TrackRef) -> AutoQueuedTrack | None:
        index = self._index_of(old)
        if index is None:
            return None
        replacement = AutoQueuedTrack(new_track)
        self._items[index] = replacement
        logger.debug(
            "Auto-queued track replaced: %s -> %s", old.track.title, new_track.title
        )
        if index == 0:
            self.first_item_changed.emit(replacement)
        self.changed.emit()
        return replacement

    def _index_of(self, item: QueueItem) -> int | None:
        return next((i for i, queued in enumerate(self._items) if queued is item), None)

    # ------------------------------------------------------------------
    # Playback side
    # ------------------------------------------------------------------

    def dequeue_front(self) -> QueueItem | None:
        if not self._items:
            return None
        item = self._items.pop(0)
        logger.debug("Dequeued: %s", describe(item))
        self.first_item_changed.emit(self.peek_front())
        self.changed.emit()
        return item

    def set_currently_playing(self, track: TrackRef | None) -> None:
        self.currently_playing = track
        if track is None:
            self.current_remaining = 0.0

    def update_current_remaining(self, seconds: float) -> None:
        self.current_remaining = max(0.0, seconds)

    # ------------------------------------------------------------------
    # Finish estimate
    # ------------------------------------------------------------------

    def duration_until_stop(self) -> tuple[float, bool]:
        """Seconds until the first hard stop (or the end), and whether one exists."""
        total = 0.0
        for item in self._items:
            if is_hard_stop(item):
                return total, True
            total += item.duration
        return total, False

    def finish_estimate(self, now: datetime | None = None) -> str:
        seconds, hit_stop = self.duration_until_stop()
        seconds += self.current_remaining
        if seconds <= 0:
            return FINISH_UNKNOWN
        finish = (now or datetime.now()) + timedelta(seconds=seconds)
        label = "next stop at" if hit_stop else "queue finishes at"
        return f"{label}: {finish:%H:%M}"
