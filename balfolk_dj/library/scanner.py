"""Music directory scanner.

Tracks are identified by their file name, which must follow the pattern
``Dance - Artist - Title.mp3``. Files that don't match are skipped.
Durations come from the audio header via mutagen.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from mutagen import File as MutagenFile
from mutagen import MutagenError

from balfolk_dj.exceptions import MusicDirectoryError
from balfolk_dj.library.models import TrackRef

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = frozenset({".mp3"})
FIELD_SEPARATOR = " - "


def parse_track_filename(path: Path) -> tuple[str, str, str] | None:
    """Split a file name into ``(dance, artist, title)``.

    Returns None unless the stem has exactly three non-blank parts.
    """
    parts = path.stem.split(FIELD_SEPARATOR)
    if len(parts) != 3:
        return None
    dance, artist, title = (p.strip() for p in parts)
    if not dance or not artist or not title:
        return None
    return dance, artist, title


def read_duration(path: Path) -> float:
    """Return the audio duration in seconds, or 0.0 if it can't be read."""
    try:
        audio = MutagenFile(path)
    except (MutagenError, OSError) as e:
        logger.warning("Failed to read duration for %s: %s", path.name, e)
        return 0.0
    if audio is None or not hasattr(audio, "info"):
        logger.warning("Unrecognised audio format: %s", path.name)
        return 0.0
    return float(getattr(audio.info, "length", 0.0) or 0.0)


def track_from_path(
    path: Path, duration_reader: Callable[[Path], float] = read_duration
) -> TrackRef | None:
    parsed = parse_track_filename(path)
    if parsed is None:
        return None
    dance, artist, title = parsed
    return TrackRef(
        dance=dance,
        artist=artist,
        title=title,
        duration=duration_reader(path),
        file_path=str(path),
    )


def scan_directory(
    directory: Path | None,
    *,
    duration_reader: Callable[[Path], float] = read_duration,
) -> list[TrackRef]:
    """Recursively scan ``directory`` for tracks.

    Args:
        directory: Root of the music collection.
        duration_reader: Reads a file's duration; replaceable in tests.

    Returns:
        Tracks sorted by file path.

    Raises:
        MusicDirectoryError: If no directory is configured or it doesn't exist.
    """
    if directory is None:
        raise MusicDirectoryError(None)
    if not directory.is_dir():
        logger.warning("Music directory does not exist: %s", directory)
        raise MusicDirectoryError(directory)

    logger.info("Scanning music directory: %s", directory)
    tracks: list[TrackRef] = []
    skipped = 0
    for path in sorted(directory.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in AUDIO_EXTENSIONS:
            continue
        track = track_from_path(path, duration_reader)
        if track is None:
            skipped += 1
            logger.debug("Skipping file with unexpected name: %s", path.name)
            continue
        tracks.append(track)

    logger.info("Scan complete: %d tracks found, %d files skipped", len(tracks), skipped)
    return tracks
