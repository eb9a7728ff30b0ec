"""Single-threaded message loop for the playback services.

All queue, tree and orchestrator state is touched only from the thread that
drains the dispatcher. Worker threads (the player watcher, preload jobs)
hand their results back with ``post``; timers created with ``call_later``
fire from ``run_pending`` once their deadline has passed.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(order=True)
class TimerHandle:
    """A scheduled callback; ``cancel`` prevents it from running."""

    deadline: float
    sequence: int
    callback: Callable[[], Any] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class Dispatcher:
    """FIFO of callables plus a timer heap.

    Args:
        clock: Monotonic time source in seconds. Tests pass a fake clock
            and advance it by hand.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self.clock = clock
        self._queue: deque[Callable[[], Any]] = deque()
        self._timers: list[TimerHandle] = []
        self._sequence = itertools.count()
        self._lock = threading.Lock()
        self._wakeup = threading.Event()

    def post(self, callback: Callable[[], Any]) -> None:
        """Schedule ``callback`` for the next turn. Safe from any thread."""
        with self._lock:
            self._queue.append(callback)
        self._wakeup.set()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        """Run ``callback`` once ``delay`` seconds have elapsed on the clock."""
        with self._lock:
            handle = TimerHandle(self.clock() + max(0.0, delay), next(self._sequence), callback)
            heapq.heappush(self._timers, handle)
        self._wakeup.set()
        return handle

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._queue) + sum(1 for t in self._timers if not t.cancelled)

    def next_deadline(self) -> float | None:
        with self._lock:
            live = [t.deadline for t in self._timers if not t.cancelled]
        return min(live) if live else None

    def _pop_due(self) -> list[Callable[[], Any]]:
        now = self.clock()
        due: list[Callable[[], Any]] = []
        with self._lock:
            while self._timers and self._timers[0].deadline <= now:
                handle = heapq.heappop(self._timers)
                if not handle.cancelled:
                    due.append(handle.callback)
            due.extend(self._queue)
            self._queue.clear()
        return due

    def run_pending(self) -> int:
        """Run everything that is due, including work posted while running.

        Returns:
            Number of callbacks executed.
        """
        count = 0
        while True:
            batch = self._pop_due()
            if not batch:
                return count
            for callback in batch:
                callback()
                count += 1

    def wait(self, timeout: float | None = None) -> None:
        """Block until new work is posted or the next timer is due."""
        deadline = self.next_deadline()
        if deadline is not None:
            until_due = max(0.0, deadline - self.clock())
            timeout = until_due if timeout is None else min(timeout, until_due)
        self._wakeup.wait(timeout)
        self._wakeup.clear()

    def run_until(self, predicate: Callable[[], bool], poll: float = 0.1) -> None:
        """Drain the loop until ``predicate`` returns True."""
        while not predicate():
            self.run_pending()
            if predicate():
                return
            self.wait(poll)


def run_in_background(
    executor: Executor,
    dispatcher: Dispatcher,
    work: Callable[[], Any],
    on_done: Callable[[Any], None] | None = None,
) -> Future:
    """Run ``work`` on ``executor`` and deliver its result through the dispatcher.

    Exceptions raised by ``work`` are logged; ``on_done`` only sees results.
    """

    def _deliver(future: Future) -> None:
        try:
            result = future.result()
        except Exception:
            logger.exception("Background task failed")
            return
        if on_done is not None:
            dispatcher.post(lambda: on_done(result))

    future = executor.submit(work)
    future.add_done_callback(_deliver)
    return future
