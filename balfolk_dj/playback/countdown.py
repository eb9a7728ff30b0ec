"""Cancellable countdown for delay and message markers.

Only one countdown is live at a time. Starting a new one or calling
``cancel`` bumps a generation counter; ticks scheduled by an older
generation notice the mismatch and stop without firing anything.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from balfolk_dj.events import Signal
from balfolk_dj.playback.dispatcher import Dispatcher, TimerHandle

logger = logging.getLogger(__name__)

TICK_SECONDS = 0.25


class Countdown:
    """Signals:
    tick(elapsed, total): every tick, including the first one at 0.
    """

    def __init__(self, dispatcher: Dispatcher, tick_seconds: float = TICK_SECONDS) -> None:
        self.dispatcher = dispatcher
        self.tick_seconds = tick_seconds
        self.tick = Signal("countdown.tick")
        self.elapsed: float = 0.0
        self.total: float = 0.0
        self._generation = 0
        self._active = False
        self._started_at = 0.0
        self._timer: TimerHandle | None = None
        self._on_complete: Callable[[], None] | None = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def remaining(self) -> float:
        return max(0.0, self.total - self.elapsed)

    def start(self, seconds: float, on_complete: Callable[[], None]) -> None:
        """Start counting down, superseding any running countdown."""
        self.cancel()
        self._generation += 1
        self._active = True
        self._on_complete = on_complete
        self.total = float(seconds)
        self.elapsed = 0.0
        self._started_at = self.dispatcher.clock()
        logger.debug("Countdown started: %.0f s", self.total)
        self.tick.emit(self.elapsed, self.total)
        self._schedule(self._generation)

    def cancel(self) -> None:
        if not self._active:
            return
        self._generation += 1
        self._active = False
        self._on_complete = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        logger.debug("Countdown cancelled at %.2f/%.0f s", self.elapsed, self.total)

    def _schedule(self, generation: int) -> None:
        self._timer = self.dispatcher.call_later(
            self.tick_seconds, lambda: self._on_tick(generation)
        )

    def _on_tick(self, generation: int) -> None:
        if generation != self._generation or not self._active:
            return
        self.elapsed = min(self.total, self.dispatcher.clock() - self._started_at)
        self.tick.emit(self.elapsed, self.total)
        if self.elapsed < self.total:
            self._schedule(generation)
            return

        on_complete = self._on_complete
        self._active = False
        self._on_complete = None
        self._timer = None
        logger.debug("Countdown finished")
        if on_complete is not None:
            on_complete()
