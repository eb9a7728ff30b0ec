"""Items that can sit in the playback queue.

A plain ``TrackRef`` is a track the DJ queued by hand. Everything else is
wrapped: ``AutoQueuedTrack`` for suggestions and the three markers that
steer playback. Markers and suggestions compare by identity, so the same
marker type can appear several times in a queue.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from balfolk_dj.library.models import TrackRef, format_duration

MAX_MESSAGE_LENGTH = 60


@dataclass(frozen=True, eq=False)
class AutoQueuedTrack:
    """A track suggested by the selector; dropped on any manual queue edit."""

    track: TrackRef

    @property
    def duration(self) -> float:
        return self.track.duration

    @property
    def duration_formatted(self) -> str:
        return self.track.length_formatted

    @property
    def title(self) -> str:
        return self.track.title


@dataclass(frozen=True, eq=False)
class StopMarker:
    """Stop playback and wait for the DJ."""

    @property
    def duration(self) -> float:
        return 0.0

    @property
    def duration_formatted(self) -> str:
        return "stop"

    @property
    def title(self) -> str:
        return "Stop"


@dataclass(frozen=True, eq=False)
class DelayMarker:
    """Pause for ``seconds`` and then continue with the next item."""

    seconds: int

    @property
    def duration(self) -> float:
        return float(self.seconds)

    @property
    def duration_formatted(self) -> str:
        return format_duration(self.seconds)

    @property
    def title(self) -> str:
        return "Delay"


@dataclass(frozen=True, eq=False)
class MessageMarker:
    """Show a message; without a delay it waits for the DJ like a stop."""

    message: str
    delay_seconds: int | None = field(default=None)

    def __post_init__(self) -> None:
        if len(self.message) > MAX_MESSAGE_LENGTH:
            object.__setattr__(self, "message", self.message[:MAX_MESSAGE_LENGTH])

    @property
    def has_delay(self) -> bool:
        return self.delay_seconds is not None

    @property
    def duration(self) -> float:
        return float(self.delay_seconds) if self.delay_seconds is not None else 0.0

    @property
    def duration_formatted(self) -> str:
        if self.delay_seconds is None:
            return "stop"
        return format_duration(self.delay_seconds)

    @property
    def title(self) -> str:
        return self.message


QueueItem = TrackRef | AutoQueuedTrack | StopMarker | DelayMarker | MessageMarker


def track_of(item: QueueItem | None) -> TrackRef | None:
    """The track behind a queue item, or None for markers."""
    if isinstance(item, TrackRef):
        return item
    if isinstance(item, AutoQueuedTrack):
        return item.track
    return None


def is_hard_stop(item: QueueItem) -> bool:
    """Whether playback halts at ``item`` until the DJ continues."""
    return isinstance(item, StopMarker) or (
        isinstance(item, MessageMarker) and not item.has_delay
    )


def describe(item: QueueItem) -> str:
    if isinstance(item, TrackRef):
        return f"{item.dance}: {item.display_name}"
    if isinstance(item, AutoQueuedTrack):
        return f"{item.track.dance}: {item.track.display_name} (auto)"
    if isinstance(item, DelayMarker):
        return f"Delay {item.duration_formatted}"
    if isinstance(item, MessageMarker):
        return f"Message '{item.message}' ({item.duration_formatted})"
    return "Stop"
