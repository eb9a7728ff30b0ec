"""Queue orchestration state machine.

``QueueOrchestrator.advance`` takes the next item off the queue and acts
on it: tracks go to the playback backend, markers stop playback and may
start a countdown that advances again when it runs out. While a track
plays with no manual items queued, the orchestrator keeps one suggestion
from the weighted selector at the end of the queue.

Everything here runs on the dispatcher thread. Backend events and
background preload results arrive through ``Dispatcher.post``.
"""

from __future__ import annotations

import enum
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, replace

from balfolk_dj.events import Signal
from balfolk_dj.exceptions import PlaybackError
from balfolk_dj.library.models import TrackRef
from balfolk_dj.library.session import SessionHistory
from balfolk_dj.notifications import Notifier
from balfolk_dj.playback.backend import PlaybackBackend
from balfolk_dj.playback.countdown import Countdown
from balfolk_dj.playback.dispatcher import Dispatcher, run_in_background
from balfolk_dj.playback.items import (
    AutoQueuedTrack,
    DelayMarker,
    MessageMarker,
    QueueItem,
    StopMarker,
    track_of,
)
from balfolk_dj.playback.preload import PreloadCache
from balfolk_dj.playback.queue import PlaybackQueue
from balfolk_dj.selection.weighted import (
    MSG_NO_TRACKS,
    MSG_TREE_NOT_LOADED,
    ExcludePredicate,
    WeightedSelector,
)
from balfolk_dj.tree.models import ROOT

logger = logging.getLogger(__name__)

MSG_LOAD_FAILED = "Failed to load track"
MSG_NO_OTHER_TRACKS = "No other tracks available for random selection"


class PlayerState(enum.Enum):
    IDLE = "idle"
    PLAYING = "playing"
    STOPPED_AT_MARKER = "stopped"
    IN_DELAY = "delay"
    IN_MESSAGE = "message"


@dataclass(frozen=True)
class PlaybackDisplay:
    """What a player view shows right now."""

    state: PlayerState = PlayerState.IDLE
    title: str = ""
    track: TrackRef | None = None
    message: str | None = None
    elapsed: float = 0.0
    total: float = 0.0

    @property
    def remaining(self) -> float:
        return max(0.0, self.total - self.elapsed)


class QueueOrchestrator:
    """Drives a ``PlaybackQueue`` through a ``PlaybackBackend``.

    Signals:
        state_changed(PlayerState)
        display_changed(PlaybackDisplay)
    """

    def __init__(
        self,
        queue: PlaybackQueue,
        selector: WeightedSelector,
        backend: PlaybackBackend,
        dispatcher: Dispatcher,
        *,
        preload: PreloadCache | None = None,
        history: SessionHistory | None = None,
        notifier: Notifier | None = None,
        executor: Executor | None = None,
        auto_queue: bool = False,
    ) -> None:
        self.queue = queue
        self.selector = selector
        self.backend = backend
        self.dispatcher = dispatcher
        self.preload = preload if preload is not None else PreloadCache()
        self.history = history if history is not None else queue.history
        self.notifier = notifier if notifier is not None else queue.notifier
        self.executor = executor if executor is not None else ThreadPoolExecutor(max_workers=1)
        self.auto_queue = auto_queue
        self.countdown = Countdown(dispatcher)

        self.state = PlayerState.IDLE
        self.display = PlaybackDisplay()
        self.state_changed = Signal("orchestrator.state_changed")
        self.display_changed = Signal("orchestrator.display_changed")

        self.queue.changed.connect(self._on_queue_changed)
        self.queue.first_item_changed.connect(self._on_first_item_changed)
        self.countdown.tick.connect(self._on_countdown_tick)
        self.backend.end_reached.connect(self._on_backend_end_reached)

    @property
    def current_track(self) -> TrackRef | None:
        return self.queue.currently_playing

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def play(self) -> None:
        """Start from the queue unless a track is already playing."""
        if self.state is PlayerState.PLAYING:
            return
        self.advance()

    def skip(self) -> None:
        """User skip: interrupts a countdown or track and moves on."""
        logger.debug("Skip requested in state %s", self.state.name)
        self.advance()

    def advance(self) -> None:
        """Dequeue and execute items until one takes effect.

        A track that fails to start consumes its queue entry, so a queue
        of broken files runs dry and ends in IDLE.
        """
        self.countdown.cancel()
        while True:
            item = self.queue.dequeue_front()
            if item is None:
                self._enter_idle()
                return
            if isinstance(item, StopMarker):
                self._enter_stop()
                return
            if isinstance(item, DelayMarker):
                self._enter_delay(item)
                return
            if isinstance(item, MessageMarker):
                self._enter_message(item)
                return
            track = track_of(item)
            if track is not None and self._start_track(track):
                return

    def clear_current(self) -> None:
        """Stop whatever is playing or counting down and go idle."""
        self.countdown.cancel()
        self.backend.clear()
        self.queue.set_currently_playing(None)
        self._set_state(PlayerState.IDLE, PlaybackDisplay())

    def handle_end_reached(self, finished: TrackRef | None = None, ok: bool = True) -> None:
        """The backend finished a track on its own.

        With ``ok`` false the player failed part way: the track is reported
        and skipped without entering the session history.
        """
        if self.state is not PlayerState.PLAYING:
            return
        current = self.current_track
        if current is None or (finished is not None and finished is not current):
            logger.debug("Ignoring stale end-of-track event")
            return
        if ok:
            self.history.add_played_track(current)
        else:
            logger.error("Player failed on track %s", current.file_path)
            self.notifier.error(f"{MSG_LOAD_FAILED}: {current.display_name}")
            self.queue.set_currently_playing(None)
        self.advance()

    def update_progress(self) -> None:
        """Refresh remaining time from the backend position."""
        track = self.current_track
        if self.state is not PlayerState.PLAYING or track is None:
            return
        position = self.backend.position()
        self.queue.update_current_remaining(track.duration - position)
        self._set_display(replace(self.display, elapsed=min(position, track.duration)))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _enter_idle(self) -> None:
        self.backend.clear()
        self.preload.clear()
        self.queue.remove_all_auto()
        self.queue.set_currently_playing(None)
        logger.info("Queue empty, playback idle")
        self._set_state(PlayerState.IDLE, PlaybackDisplay())

    def _enter_stop(self) -> None:
        self.backend.stop()
        self.preload.clear()
        self.queue.remove_all_auto()
        self.queue.set_currently_playing(None)
        logger.info("Stopped at stop marker")
        self._set_state(
            PlayerState.STOPPED_AT_MARKER,
            PlaybackDisplay(PlayerState.STOPPED_AT_MARKER, title="Stop"),
        )

    def _enter_delay(self, marker: DelayMarker) -> None:
        self.backend.stop()
        logger.info("Delay for %d s", marker.seconds)
        self._set_state(
            PlayerState.IN_DELAY,
            PlaybackDisplay(PlayerState.IN_DELAY, title="Delay", total=marker.duration),
        )
        self.countdown.start(marker.duration, self.advance)

    def _enter_message(self, marker: MessageMarker) -> None:
        self.backend.stop()
        self.queue.set_currently_playing(None)
        display = PlaybackDisplay(
            PlayerState.IN_MESSAGE,
            title=marker.message,
            message=marker.message,
            total=marker.duration,
        )
        if marker.delay_seconds is None:
            self.preload.clear()
            self.queue.remove_all_auto()
            logger.info("Message '%s', waiting for DJ", marker.message)
            self._set_state(PlayerState.IN_MESSAGE, display)
            return
        logger.info("Message '%s' for %d s", marker.message, marker.delay_seconds)
        self._set_state(PlayerState.IN_MESSAGE, display)
        self.countdown.start(marker.duration, self.advance)

    def _start_track(self, track: TrackRef) -> bool:
        self.queue.set_currently_playing(track)
        try:
            self.backend.play(track)
        except (PlaybackError, OSError) as e:
            logger.error("Failed to play track %s: %s", track.file_path, e)
            self.notifier.error(f"{MSG_LOAD_FAILED}: {track.display_name}")
            self.queue.set_currently_playing(None)
            return False

        self.preload.promote_next_to_current()
        self.queue.update_current_remaining(track.duration)
        self._set_state(
            PlayerState.PLAYING,
            PlaybackDisplay(PlayerState.PLAYING, title=track.title, track=track, total=track.duration),
        )
        self.try_auto_fill()
        self._preload_front()
        return True

    def _set_state(self, state: PlayerState, display: PlaybackDisplay) -> None:
        changed = state is not self.state
        self.state = state
        self._set_display(display)
        if changed:
            self.state_changed.emit(state)

    def _set_display(self, display: PlaybackDisplay) -> None:
        self.display = display
        self.display_changed.emit(display)

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def _duplicate_filter(self) -> ExcludePredicate | None:
        if self.queue.allow_duplicates:
            return None
        return self.queue.is_duplicate

    def try_auto_fill(self) -> AutoQueuedTrack | None:
        """Queue a suggestion if auto-queue is on and nothing manual is queued."""
        if not self.auto_queue or self.queue.has_manual_items or self.queue.auto_item is not None:
            return None
        track = self.selector.select_from_root(self._duplicate_filter())
        if track is None:
            return None
        if not self.queue.add_auto(track):
            return None
        return self.queue.auto_item

    def refresh_auto(self, auto: AutoQueuedTrack | None = None) -> AutoQueuedTrack | None:
        """Replace the suggestion with a different one."""
        auto = auto if auto is not None else self.queue.auto_item
        if auto is None:
            return None

        def exclude(track: TrackRef) -> bool:
            if track == auto.track:
                return True
            return not self.queue.allow_duplicates and self.queue.is_duplicate(track)

        track = self.selector.select_track(ROOT, exclude)
        if track is None:
            self.notifier.warning(MSG_NO_OTHER_TRACKS)
            return None
        return self.queue.replace_auto(auto, track)

    def pin_auto(self, auto: AutoQueuedTrack | None = None) -> TrackRef | None:
        auto = auto if auto is not None else self.queue.auto_item
        if auto is None:
            return None
        return self.queue.pin(auto)

    def shuffle(self, handle: int = ROOT) -> TrackRef | None:
        """Add a weighted random pick from one branch as a manual entry."""
        if self.selector.tree.is_empty():
            self.notifier.warning(MSG_TREE_NOT_LOADED)
            return None
        track = self.selector.select_track(handle, self._duplicate_filter())
        if track is None:
            self.notifier.warning(MSG_NO_TRACKS)
            return None
        return track if self.queue.add_manual(track) else None

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_auto_queue(self, enabled: bool) -> None:
        self.auto_queue = enabled
        if not enabled:
            self.queue.remove_all_auto()
        elif self.state is PlayerState.PLAYING and not self.queue.has_manual_items:
            self.try_auto_fill()

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_queue_changed(self) -> None:
        # Runs inside the queue's own notification; defer the mutation.
        if self.state is PlayerState.PLAYING and not self.queue.has_manual_items:
            self.dispatcher.post(self._deferred_auto_fill)

    def _deferred_auto_fill(self) -> None:
        # The state may have moved on since the change was posted.
        if self.state is PlayerState.PLAYING:
            self.try_auto_fill()

    def _on_first_item_changed(self, item: QueueItem | None) -> None:
        track = track_of(item)
        if track is not None and not self.preload.is_cached(track):
            self._preload(track)

    def _preload_front(self) -> None:
        track = track_of(self.queue.peek_front())
        if track is not None and not self.preload.is_cached(track):
            self._preload(track)

    def _preload(self, track: TrackRef) -> None:
        def _report(ok: bool) -> None:
            if not ok:
                logger.warning("Failed to preload next track: %s", track.display_name)

        run_in_background(self.executor, self.dispatcher, lambda: self.preload.preload(track), _report)

    def _on_countdown_tick(self, elapsed: float, total: float) -> None:
        self._set_display(replace(self.display, elapsed=elapsed, total=total))

    def _on_backend_end_reached(self, finished: TrackRef | None, ok: bool = True) -> None:
        self.dispatcher.post(lambda: self.handle_end_reached(finished, ok))

    def close(self) -> None:
        self.countdown.cancel()
        self.queue.changed.disconnect(self._on_queue_changed)
        self.queue.first_item_changed.disconnect(self._on_first_item_changed)
        self.countdown.tick.disconnect(self._on_countdown_tick)
        self.backend.end_reached.disconnect(self._on_backend_end_reached)
        self.executor.shutdown(wait=False)
