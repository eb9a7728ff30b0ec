"""Two-slot accessibility check for the current and next track.

This is not an audio buffer. Preloading only opens the file to prove the
player will be able to read it; the verified paths are remembered so the
orchestrator can tell whether the next track was checked.
"""

from __future__ import annotations

import logging
import threading

from balfolk_dj.library.models import TrackRef

logger = logging.getLogger(__name__)


class PreloadCache:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: str | None = None
        self._next: str | None = None

    def preload(self, track: TrackRef) -> bool:
        """Verify that ``track`` is readable and remember it as the next slot.

        Safe to call from a worker thread.
        """
        if not track.file_path:
            logger.warning("Attempted to preload track with empty path")
            return False
        try:
            with open(track.file_path, "rb") as f:
                f.read(1)
        except OSError as e:
            logger.error("Failed to verify track %s: %s", track.file_path, e)
            return False

        with self._lock:
            self._next = track.file_path
        logger.debug("Track verified: %s", track.display_name)
        return True

    def is_cached(self, track: TrackRef) -> bool:
        if not track.file_path:
            return False
        with self._lock:
            return track.file_path in (self._current, self._next)

    def promote_next_to_current(self) -> None:
        with self._lock:
            self._current = self._next
            self._next = None
        logger.debug("Promoted next track to current")

    def clear(self) -> None:
        with self._lock:
            self._current = None
            self._next = None
        logger.debug("Cleared preload cache")
