"""Playback queue, markers and the orchestration state machine."""

from balfolk_dj.playback.backend import PlaybackBackend, SubprocessPlaybackBackend
from balfolk_dj.playback.dispatcher import Dispatcher
from balfolk_dj.playback.items import (
    AutoQueuedTrack,
    DelayMarker,
    MessageMarker,
    QueueItem,
    StopMarker,
)
from balfolk_dj.playback.orchestrator import PlaybackDisplay, PlayerState, QueueOrchestrator
from balfolk_dj.playback.preload import PreloadCache
from balfolk_dj.playback.queue import PlaybackQueue

__all__ = [
    "AutoQueuedTrack",
    "DelayMarker",
    "Dispatcher",
    "MessageMarker",
    "PlaybackBackend",
    "PlaybackDisplay",
    "PlaybackQueue",
    "PlayerState",
    "PreloadCache",
    "QueueItem",
    "QueueOrchestrator",
    "StopMarker",
    "SubprocessPlaybackBackend",
]
