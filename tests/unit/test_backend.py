"""Unit tests for the subprocess playback backend."""

from __future__ import annotations

import sys
import threading
from pathlib import Path

import pytest

from balfolk_dj.exceptions import PlaybackError
from balfolk_dj.library.models import TrackRef
from balfolk_dj.playback.backend import SubprocessPlaybackBackend, player_available

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell commands")


@pytest.fixture
def audio_file(temp_dir: Path) -> TrackRef:
    path = temp_dir / "Mazurka - Band - Tune.mp3"
    path.write_bytes(b"\x00" * 16)
    return TrackRef("Mazurka", "Band", "Tune", 180.0, str(path))


def test_player_available() -> None:
    assert player_available([sys.executable])
    assert not player_available(["definitely-not-a-player-binary"])
    assert not player_available([])


def test_empty_command_rejected() -> None:
    with pytest.raises(ValueError):
        SubprocessPlaybackBackend([])


def test_missing_file_raises(temp_dir: Path) -> None:
    backend = SubprocessPlaybackBackend(["true"])
    track = TrackRef("Mazurka", "Band", "Gone", 180.0, str(temp_dir / "gone.mp3"))
    with pytest.raises(PlaybackError, match="file not found"):
        backend.play(track)
    assert backend.current_track is None


def test_unstartable_player_raises(audio_file: TrackRef) -> None:
    backend = SubprocessPlaybackBackend(["definitely-not-a-player-binary"])
    with pytest.raises(PlaybackError):
        backend.play(audio_file)


@posix_only
def test_end_reached_when_player_exits(audio_file: TrackRef) -> None:
    backend = SubprocessPlaybackBackend(["true"])
    ended = threading.Event()
    events: list[tuple[TrackRef, bool]] = []

    def on_end(track: TrackRef, ok: bool) -> None:
        events.append((track, ok))
        ended.set()

    backend.end_reached.connect(on_end)

    backend.play(audio_file)

    assert ended.wait(5)
    assert events == [(audio_file, True)]
    assert backend.current_track is audio_file
    assert not backend.is_playing


@posix_only
def test_failing_player_reports_error(audio_file: TrackRef, caplog) -> None:
    backend = SubprocessPlaybackBackend(["false"])
    ended = threading.Event()
    events: list[tuple[TrackRef, bool]] = []

    def on_end(track: TrackRef, ok: bool) -> None:
        events.append((track, ok))
        ended.set()

    backend.end_reached.connect(on_end)

    with caplog.at_level("WARNING", logger="balfolk_dj.playback.backend"):
        backend.play(audio_file)
        assert ended.wait(5)

    assert events == [(audio_file, False)]
    assert audio_file.file_path in caplog.text


@posix_only
def test_stop_suppresses_end_reached(audio_file: TrackRef) -> None:
    backend = SubprocessPlaybackBackend(["sh", "-c", "sleep 30", "player"])
    ended = threading.Event()
    playing: list[bool] = []
    backend.end_reached.connect(lambda track, ok: ended.set())
    backend.playing_changed.connect(playing.append)

    backend.play(audio_file)
    assert backend.is_playing

    backend.stop()

    assert not backend.is_playing
    assert not ended.wait(0.5)
    assert playing == [True, False]


@posix_only
def test_clear_forgets_current_track(audio_file: TrackRef) -> None:
    backend = SubprocessPlaybackBackend(["sh", "-c", "sleep 30", "player"])
    backend.play(audio_file)
    backend.clear()
    assert backend.current_track is None
    assert backend.position() == 0.0
