"""Unit tests for the queue orchestration state machine."""

from __future__ import annotations

import random

import pytest

from balfolk_dj.library.assignment import TrackAssignmentIndex
from balfolk_dj.library.models import TrackRef
from balfolk_dj.library.session import SessionHistory
from balfolk_dj.notifications import Notifier
from balfolk_dj.playback.dispatcher import Dispatcher
from balfolk_dj.playback.items import AutoQueuedTrack
from balfolk_dj.playback.orchestrator import (
    MSG_NO_OTHER_TRACKS,
    PlayerState,
    QueueOrchestrator,
)
from balfolk_dj.playback.queue import PlaybackQueue
from balfolk_dj.selection.weighted import MSG_TREE_NOT_LOADED, WeightedSelector
from balfolk_dj.tree.models import DanceTree


def make_track(dance: str, title: str, duration: float = 180.0) -> TrackRef:
    return TrackRef(dance, "Band", title, duration, f"/music/{dance} - Band - {title}.mp3")


STOCK = [
    make_track("Mazurka", "M1"),
    make_track("Mazurka", "M2"),
    make_track("Valse", "V1"),
    make_track("Bourrée", "B1"),
]


@pytest.fixture
def dispatcher(clock) -> Dispatcher:
    return Dispatcher(clock)


@pytest.fixture
def stocked_tree(sample_tree: DanceTree) -> DanceTree:
    TrackAssignmentIndex(sample_tree).assign(STOCK)
    return sample_tree


@pytest.fixture
def queue(notifier: Notifier) -> PlaybackQueue:
    return PlaybackQueue(
        max_items=4, delay_seconds=10, history=SessionHistory(), notifier=notifier
    )


@pytest.fixture
def make_orchestrator(stocked_tree, queue, backend, dispatcher, inline_executor):
    def _make(tree: DanceTree | None = None, **kwargs) -> QueueOrchestrator:
        selector = WeightedSelector(
            tree if tree is not None else stocked_tree, rng=random.Random(5)
        )
        return QueueOrchestrator(
            queue, selector, backend, dispatcher, executor=inline_executor, **kwargs
        )

    return _make


@pytest.fixture
def orchestrator(make_orchestrator) -> QueueOrchestrator:
    return make_orchestrator()


def _finish(backend, dispatcher: Dispatcher) -> None:
    backend.finish()
    dispatcher.run_pending()


class TestTrackFlow:
    def test_play_empty_queue_goes_idle(self, orchestrator, backend) -> None:
        orchestrator.play()
        assert orchestrator.state is PlayerState.IDLE
        assert backend.clears == 1

    def test_plays_queue_in_order(self, orchestrator, queue, backend, dispatcher) -> None:
        a, b = make_track("Mazurka", "A"), make_track("Valse", "B")
        queue.add_track(a)
        queue.add_track(b)
        states: list[PlayerState] = []
        orchestrator.state_changed.connect(states.append)

        orchestrator.play()
        assert orchestrator.state is PlayerState.PLAYING
        assert orchestrator.current_track is a
        assert queue.items == [b]
        assert orchestrator.display.title == "A"

        _finish(backend, dispatcher)
        assert orchestrator.current_track is b
        assert queue.history.tracks == [a]

        _finish(backend, dispatcher)
        assert orchestrator.state is PlayerState.IDLE
        assert queue.history.tracks == [a, b]
        assert backend.played == [a, b]
        assert states == [PlayerState.PLAYING, PlayerState.IDLE]

    def test_play_while_playing_is_ignored(self, orchestrator, queue, backend) -> None:
        queue.add_track(make_track("Mazurka", "A"))
        queue.add_track(make_track("Mazurka", "B"))
        orchestrator.play()
        orchestrator.play()
        assert len(backend.played) == 1

    def test_skip_does_not_record_history(self, orchestrator, queue, backend) -> None:
        a, b = make_track("Mazurka", "A"), make_track("Valse", "B")
        queue.add_track(a)
        queue.add_track(b)
        orchestrator.play()

        orchestrator.skip()

        assert orchestrator.current_track is b
        assert len(queue.history) == 0

    def test_stale_end_event_is_ignored(self, orchestrator, queue) -> None:
        a = make_track("Mazurka", "A")
        queue.add_track(a)
        orchestrator.play()

        orchestrator.handle_end_reached(make_track("Mazurka", "Other"))

        assert orchestrator.state is PlayerState.PLAYING
        assert len(queue.history) == 0

    def test_late_end_event_for_previous_track_is_ignored(
        self, orchestrator, queue, backend, dispatcher
    ) -> None:
        a, b = make_track("Mazurka", "A"), make_track("Valse", "B")
        queue.add_track(a)
        queue.add_track(b)
        orchestrator.play()

        orchestrator.skip()
        backend.end_reached.emit(a, True)
        dispatcher.run_pending()

        assert orchestrator.current_track is b
        assert orchestrator.state is PlayerState.PLAYING
        assert len(queue.history) == 0

    def test_end_event_outside_playing_is_ignored(self, orchestrator, queue) -> None:
        orchestrator.handle_end_reached()
        assert orchestrator.state is PlayerState.IDLE
        assert len(queue.history) == 0

    def test_update_progress(self, orchestrator, queue, backend) -> None:
        queue.add_track(make_track("Mazurka", "A", duration=200))
        orchestrator.play()
        backend.current_position = 30.0

        orchestrator.update_progress()

        assert orchestrator.display.elapsed == 30.0
        assert orchestrator.display.remaining == 170.0
        assert queue.current_remaining == 170.0

    def test_clear_current(self, orchestrator, queue) -> None:
        queue.add_track(make_track("Mazurka", "A"))
        orchestrator.play()
        orchestrator.clear_current()
        assert orchestrator.state is PlayerState.IDLE
        assert orchestrator.current_track is None


class TestFailures:
    def test_failed_track_is_consumed(self, orchestrator, queue, backend, notifier) -> None:
        broken, good = make_track("Mazurka", "Broken"), make_track("Valse", "Good")
        backend.failing.add(broken.file_path)
        queue.add_track(broken)
        queue.add_track(good)

        orchestrator.play()

        assert notifier.messages() == ["Failed to load track: Band - Broken"]
        assert orchestrator.current_track is good
        assert not queue

    def test_only_broken_tracks_end_idle(self, orchestrator, queue, backend) -> None:
        for title in ("X", "Y"):
            track = make_track("Mazurka", title)
            backend.failing.add(track.file_path)
            queue.add_track(track)

        orchestrator.play()

        assert orchestrator.state is PlayerState.IDLE
        assert orchestrator.current_track is None
        assert not queue

    def test_player_failing_mid_track_skips_without_history(
        self, orchestrator, queue, backend, dispatcher, notifier
    ) -> None:
        broken, good = make_track("Mazurka", "Broken"), make_track("Valse", "Good")
        queue.add_track(broken)
        queue.add_track(good)
        orchestrator.play()

        backend.finish(ok=False)
        dispatcher.run_pending()

        assert notifier.messages() == ["Failed to load track: Band - Broken"]
        assert not queue.history.has_been_played(broken)
        assert orchestrator.current_track is good

    def test_player_failing_on_last_track_ends_idle(
        self, orchestrator, queue, backend, dispatcher
    ) -> None:
        queue.add_track(make_track("Mazurka", "Broken"))
        orchestrator.play()

        backend.finish(ok=False)
        dispatcher.run_pending()

        assert orchestrator.state is PlayerState.IDLE
        assert len(queue.history) == 0


class TestMarkers:
    def test_stop_marker(self, orchestrator, queue, backend, dispatcher) -> None:
        queue.add_track(make_track("Mazurka", "A"))
        queue.add_stop_marker()
        queue.add_track(make_track("Valse", "B"))
        orchestrator.play()

        _finish(backend, dispatcher)

        assert orchestrator.state is PlayerState.STOPPED_AT_MARKER
        assert orchestrator.current_track is None
        assert backend.stops == 1
        assert [t.title for t in queue.items] == ["B"]

        orchestrator.play()
        assert orchestrator.current_track.title == "B"

    def test_delay_marker_counts_down_then_continues(
        self, orchestrator, queue, backend, dispatcher, clock
    ) -> None:
        queue.add_track(make_track("Mazurka", "A"))
        queue.add_delay_marker()
        queue.add_track(make_track("Valse", "B"))
        orchestrator.play()
        _finish(backend, dispatcher)

        assert orchestrator.state is PlayerState.IN_DELAY
        assert orchestrator.display.total == 10.0

        clock.advance(0.25)
        dispatcher.run_pending()
        assert orchestrator.display.elapsed == 0.25
        assert orchestrator.state is PlayerState.IN_DELAY

        clock.advance(10)
        dispatcher.run_pending()
        assert orchestrator.state is PlayerState.PLAYING
        assert orchestrator.current_track.title == "B"

    def test_skip_during_delay(self, orchestrator, queue) -> None:
        queue.add_delay_marker(60)
        queue.add_track(make_track("Valse", "B"))
        orchestrator.play()
        assert orchestrator.state is PlayerState.IN_DELAY

        orchestrator.skip()

        assert orchestrator.current_track.title == "B"
        assert not orchestrator.countdown.active

    def test_message_without_delay_waits(self, orchestrator, queue) -> None:
        queue.add_message_marker("Workshop at eight")
        queue.add_track(make_track("Valse", "B"))

        orchestrator.play()

        assert orchestrator.state is PlayerState.IN_MESSAGE
        assert orchestrator.display.message == "Workshop at eight"
        assert not orchestrator.countdown.active
        assert len(queue) == 1

    def test_message_with_delay_continues(self, orchestrator, queue, dispatcher, clock) -> None:
        queue.add_message_marker("Raffle", 5)
        queue.add_track(make_track("Valse", "B"))

        orchestrator.play()
        assert orchestrator.state is PlayerState.IN_MESSAGE
        assert orchestrator.countdown.active

        clock.advance(5)
        dispatcher.run_pending()
        assert orchestrator.state is PlayerState.PLAYING


class TestAutoQueue:
    def test_fills_after_last_manual_track(self, make_orchestrator, queue) -> None:
        queue.allow_duplicates = False
        orchestrator = make_orchestrator(auto_queue=True)
        queue.add_track(STOCK[0])

        orchestrator.play()

        auto = queue.auto_item
        assert auto is not None
        assert auto.track != STOCK[0]
        assert len(queue) == 1

    def test_no_fill_while_manual_items_queued(self, make_orchestrator, queue) -> None:
        orchestrator = make_orchestrator(auto_queue=True)
        queue.add_track(STOCK[0])
        queue.add_track(STOCK[1])
        orchestrator.play()
        assert queue.auto_item is None

    def test_auto_track_plays_and_is_replaced(
        self, make_orchestrator, queue, backend, dispatcher
    ) -> None:
        queue.allow_duplicates = False
        orchestrator = make_orchestrator(auto_queue=True)
        queue.add_track(STOCK[0])
        orchestrator.play()
        suggested = queue.auto_item.track

        _finish(backend, dispatcher)

        assert orchestrator.current_track == suggested
        assert queue.auto_item is not None
        assert queue.auto_item.track not in (STOCK[0], suggested)

    def test_manual_add_replaces_suggestion(
        self, make_orchestrator, queue, dispatcher
    ) -> None:
        orchestrator = make_orchestrator(auto_queue=True)
        queue.add_track(STOCK[0])
        orchestrator.play()
        assert queue.auto_item is not None

        queue.add_track(STOCK[2])
        dispatcher.run_pending()

        assert queue.items == [STOCK[2]]

    def test_suggestion_refilled_after_removing_manual(
        self, make_orchestrator, queue, dispatcher
    ) -> None:
        orchestrator = make_orchestrator(auto_queue=True)
        queue.add_track(STOCK[0])
        queue.add_stop_marker()
        orchestrator.play()
        assert queue.auto_item is None

        queue.remove(queue.peek_front())
        dispatcher.run_pending()

        assert isinstance(queue.peek_front(), AutoQueuedTrack)

    def test_disabling_removes_suggestion(self, make_orchestrator, queue) -> None:
        orchestrator = make_orchestrator(auto_queue=True)
        queue.add_track(STOCK[0])
        orchestrator.play()

        orchestrator.set_auto_queue(False)

        assert not queue

    def test_enabling_while_playing_fills(self, orchestrator, queue) -> None:
        queue.add_track(STOCK[0])
        orchestrator.play()
        assert not queue

        orchestrator.set_auto_queue(True)

        assert queue.auto_item is not None

    def test_stop_marker_purges_suggestion(self, make_orchestrator, queue) -> None:
        orchestrator = make_orchestrator(auto_queue=True)
        queue.add_stop_marker()
        queue.add_auto(STOCK[1])

        orchestrator.play()

        assert orchestrator.state is PlayerState.STOPPED_AT_MARKER
        assert not queue

    def test_pin(self, make_orchestrator, queue) -> None:
        orchestrator = make_orchestrator(auto_queue=True)
        queue.add_track(STOCK[0])
        orchestrator.play()
        suggested = queue.auto_item.track

        assert orchestrator.pin_auto() == suggested
        assert queue.items == [suggested]
        assert queue.has_manual_items

    def test_refresh_picks_a_different_track(self, make_orchestrator, queue) -> None:
        orchestrator = make_orchestrator(auto_queue=True)
        queue.add_track(STOCK[0])
        orchestrator.play()
        before = queue.auto_item.track

        refreshed = orchestrator.refresh_auto()

        assert refreshed is not None
        assert refreshed.track != before
        assert queue.auto_item is refreshed

    def test_refresh_without_alternatives(
        self, make_orchestrator, queue, notifier, track_factory
    ) -> None:
        tree = DanceTree.from_dicts(
            [{"name": "Couple", "weight": 1, "dances": [{"name": "Polka", "weight": 1}]}]
        )
        only, other = track_factory("Polka", "Only"), track_factory("Polka", "Other")
        TrackAssignmentIndex(tree).assign([only, other])
        queue.allow_duplicates = False
        orchestrator = make_orchestrator(tree, auto_queue=True)
        queue.add_track(only)
        orchestrator.play()
        assert queue.auto_item.track == other

        assert orchestrator.refresh_auto() is None
        assert notifier.messages() == [MSG_NO_OTHER_TRACKS]
        assert queue.auto_item.track == other

    def test_refresh_without_suggestion(self, orchestrator) -> None:
        assert orchestrator.refresh_auto() is None


class TestShuffle:
    def test_adds_manual_track_from_branch(self, orchestrator, queue, stocked_tree) -> None:
        track = orchestrator.shuffle(stocked_tree.find("Chain"))
        assert track == STOCK[3]
        assert queue.items == [STOCK[3]]

    def test_empty_tree(self, make_orchestrator, notifier) -> None:
        orchestrator = make_orchestrator(DanceTree())
        assert orchestrator.shuffle() is None
        assert notifier.messages() == [MSG_TREE_NOT_LOADED]
