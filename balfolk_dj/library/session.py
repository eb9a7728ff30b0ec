"""Tracks played during the current session."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from balfolk_dj.events import Signal
from balfolk_dj.library.models import TrackRef, format_duration
from balfolk_dj.utils.fileops import atomic_write_text

logger = logging.getLogger(__name__)


class SessionHistory:
    """Ordered record of played tracks with path-based membership."""

    def __init__(self) -> None:
        self._tracks: list[TrackRef] = []
        self._paths: set[str] = set()
        self.changed = Signal("session.changed")

    def add_played_track(self, track: TrackRef) -> None:
        self._tracks.append(track)
        self._paths.add(track.file_path)
        logger.debug("Track added to session history: %s", track.display_name)
        self.changed.emit()

    def has_been_played(self, track: TrackRef) -> bool:
        return track.file_path in self._paths

    def clear(self) -> None:
        count = len(self._tracks)
        self._tracks.clear()
        self._paths.clear()
        logger.debug("Session history cleared: %d tracks removed", count)
        self.changed.emit()

    @property
    def tracks(self) -> list[TrackRef]:
        return list(self._tracks)

    @property
    def total_duration(self) -> float:
        return sum(t.duration for t in self._tracks)

    @property
    def total_duration_formatted(self) -> str:
        return format_duration(self.total_duration)

    def __len__(self) -> int:
        return len(self._tracks)

    def to_dict(self) -> dict:
        return {
            "tracks": [
                {
                    "dance": t.dance,
                    "artist": t.artist,
                    "title": t.title,
                    "lengthSeconds": int(t.duration),
                }
                for t in self._tracks
            ],
            "totalLengthSeconds": int(self.total_duration),
        }

    def export_json(self, path: Path) -> None:
        atomic_write_text(path, json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n")
        logger.info("History exported to: %s", path)
