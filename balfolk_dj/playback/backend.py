"""Audio playback backends.

The orchestrator talks to a ``PlaybackBackend``. ``play`` reports failure
by raising ``PlaybackError`` when the player cannot start; a player
that starts and then fails is reported through ``end_reached`` with
``ok=False``. The two signals may fire on a backend thread;
listeners must hand the work to the dispatcher.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
import time
from pathlib import Path
from typing import Protocol

from balfolk_dj.events import Signal
from balfolk_dj.exceptions import PlaybackError
from balfolk_dj.library.models import TrackRef

logger = logging.getLogger(__name__)

STOP_TIMEOUT_SECONDS = 3.0


class PlaybackBackend(Protocol):
    end_reached: Signal
    playing_changed: Signal

    @property
    def current_track(self) -> TrackRef | None: ...

    @property
    def is_playing(self) -> bool: ...

    def play(self, track: TrackRef) -> None: ...

    def stop(self) -> None: ...

    def clear(self) -> None: ...

    def position(self) -> float: ...


def player_available(command: list[str]) -> bool:
    """Whether the player executable in ``command`` is on PATH."""
    return bool(command) and shutil.which(command[0]) is not None


class SubprocessPlaybackBackend:
    """Plays each track by running an external player command.

    The file path is appended to ``command``. A watcher thread waits for
    the player to exit and fires ``end_reached(track, ok)`` when it finishes
    on its own; ``ok`` is false when the player exited with an error. All
    process control is serialised by one lock.

    Args:
        command: Player argv prefix, e.g. ``["ffplay", "-nodisp", "-autoexit"]``.
        clock: Time source used for the playback position.
    """

    def __init__(self, command: list[str], clock=time.monotonic) -> None:
        if not command:
            raise ValueError("Player command must not be empty")
        self.command = list(command)
        self.clock = clock
        self.end_reached = Signal("backend.end_reached")
        self.playing_changed = Signal("backend.playing_changed")
        self._lock = threading.Lock()
        self._proc: subprocess.Popen[bytes] | None = None
        self._generation = 0
        self._current: TrackRef | None = None
        self._started_at = 0.0

    @property
    def current_track(self) -> TrackRef | None:
        return self._current

    @property
    def is_playing(self) -> bool:
        proc = self._proc
        return proc is not None and proc.poll() is None

    def position(self) -> float:
        if self._proc is None:
            return 0.0
        return max(0.0, self.clock() - self._started_at)

    def play(self, track: TrackRef) -> None:
        with self._lock:
            self._terminate_locked()
            if not Path(track.file_path).is_file():
                raise PlaybackError(track.file_path, "file not found")
            try:
                proc = subprocess.Popen(
                    [*self.command, track.file_path],
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as e:
                raise PlaybackError(track.file_path, str(e)) from e

            self._generation += 1
            self._proc = proc
            self._current = track
            self._started_at = self.clock()
            generation = self._generation

        logger.info("Playing %s", track.file_path)
        watcher = threading.Thread(
            target=self._watch, args=(proc, generation), daemon=True, name="player-watch"
        )
        watcher.start()
        self.playing_changed.emit(True)

    def stop(self) -> None:
        with self._lock:
            was_playing = self._terminate_locked()
        if was_playing:
            self.playing_changed.emit(False)

    def clear(self) -> None:
        self.stop()
        with self._lock:
            self._current = None

    def _terminate_locked(self) -> bool:
        proc = self._proc
        self._proc = None
        self._generation += 1
        if proc is None or proc.poll() is not None:
            return False
        proc.terminate()
        try:
            proc.wait(timeout=STOP_TIMEOUT_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("Player did not stop, killing pid %d", proc.pid)
            proc.kill()
            proc.wait()
        return True

    def _watch(self, proc: subprocess.Popen[bytes], generation: int) -> None:
        returncode = proc.wait()
        with self._lock:
            if generation != self._generation:
                return
            self._proc = None
            track = self._current
        if returncode != 0:
            logger.warning("Player exited with status %d for %s", returncode, track.file_path)
        self.playing_changed.emit(False)
        self.end_reached.emit(track, returncode == 0)
