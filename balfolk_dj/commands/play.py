"""Play command: runs a queue of tracks and markers through the external player."""

from __future__ import annotations

import random
from pathlib import Path

import click

from balfolk_dj.cli import Context, pass_context
from balfolk_dj.commands import EXIT_ERROR, EXIT_MISSING_PLAYER
from balfolk_dj.commands._common import Library, open_library
from balfolk_dj.library.models import TrackRef
from balfolk_dj.library.scanner import read_duration, track_from_path
from balfolk_dj.library.session import SessionHistory
from balfolk_dj.notifications import Notifier, console_sink
from balfolk_dj.playback.backend import SubprocessPlaybackBackend, player_available
from balfolk_dj.playback.dispatcher import Dispatcher
from balfolk_dj.playback.orchestrator import PlaybackDisplay, PlayerState, QueueOrchestrator
from balfolk_dj.playback.queue import PlaybackQueue
from balfolk_dj.selection.weighted import WeightedSelector
from balfolk_dj.utils.output import console, error, info, print_track, success, warning

PROGRESS_INTERVAL = 1.0


def _resolve_track(item: str, library: Library) -> TrackRef:
    path = Path(item).expanduser()
    if not path.is_file():
        raise click.BadParameter(f"file not found: {item}", param_hint="ITEMS")
    path = path.resolve()
    for track in library.tracks:
        if Path(track.file_path) == path:
            return track
    track = track_from_path(path)
    if track is None:
        # Outside the naming scheme: playable, but never matched to a dance.
        track = TrackRef(
            dance="",
            artist="",
            title=path.stem,
            duration=read_duration(path),
            file_path=str(path),
        )
    return track


def _split_seconds(text: str) -> tuple[str, int | None]:
    """Split a trailing ":SECONDS" off ``text``."""
    head, sep, tail = text.rpartition(":")
    if sep and tail.strip().isdigit():
        return head, int(tail)
    return text, None


def enqueue(queue: PlaybackQueue, item: str, library: Library) -> bool:
    """Add one ITEMS entry to the queue.

    Accepted forms: a file path, ``stop``, ``delay`` or ``delay:SECONDS``,
    ``message:TEXT`` or ``message:TEXT:SECONDS``.
    """
    keyword, _, rest = item.partition(":")
    keyword = keyword.strip().lower()

    if keyword == "stop" and not rest:
        return queue.add_stop_marker()
    if keyword == "delay":
        if not rest:
            return queue.add_delay_marker()
        if not rest.strip().isdigit():
            raise click.BadParameter(f"delay needs whole seconds: {item}", param_hint="ITEMS")
        return queue.add_delay_marker(int(rest))
    if keyword == "message" and rest:
        text, seconds = _split_seconds(rest)
        if not text.strip():
            raise click.BadParameter(f"message text is empty: {item}", param_hint="ITEMS")
        return queue.add_message_marker(text.strip(), seconds)
    return queue.add_track(_resolve_track(item, library))


class _Printer:
    """Prints a line whenever the player moves to something new."""

    def __init__(self, queue: PlaybackQueue) -> None:
        self.queue = queue
        self._last: tuple | None = None

    def __call__(self, display: PlaybackDisplay) -> None:
        key = (display.state, display.title, id(display.track), display.message)
        if key == self._last:
            return
        self._last = key

        if display.state is PlayerState.PLAYING and display.track is not None:
            track = display.track
            print_track(
                track.dance, track.artist, track.title, prefix=f"▶ {track.duration_formatted:>6}"
            )
            info(self.queue.finish_estimate())
        elif display.state is PlayerState.IN_DELAY:
            console.print(f"[marker]Delay[/marker] {display.total:.0f} s")
        elif display.state is PlayerState.IN_MESSAGE:
            suffix = f" ({display.total:.0f} s)" if display.total else ""
            console.print(f"[marker]Message:[/marker] {display.message}{suffix}")
        elif display.state is PlayerState.STOPPED_AT_MARKER:
            console.print("[marker]Stop[/marker]")


@click.command("play")
@click.argument("items", nargs=-1)
@click.option(
    "--auto-queue/--no-auto-queue",
    default=None,
    help="Keep a weighted random suggestion queued while playing (default from config)",
)
@click.option(
    "--allow-duplicates/--no-duplicates",
    default=None,
    help="Allow tracks to be queued again (default from config)",
)
@click.option(
    "--random",
    "random_count",
    type=click.IntRange(min=0),
    default=0,
    help="Append this many weighted random picks to the queue",
)
@click.option("--seed", type=int, default=None, help="Seed for repeatable random picks")
@click.option(
    "--history-out",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the played tracks to this JSON file at the end",
)
@pass_context
def cli(
    ctx: Context,
    items: tuple[str, ...],
    auto_queue: bool | None,
    allow_duplicates: bool | None,
    random_count: int,
    seed: int | None,
    history_out: Path | None,
) -> None:
    """Play ITEMS in order through the configured player.

    Each item is a track file or a marker: "stop" halts playback,
    "delay" or "delay:SECONDS" pauses before the next track and
    "message:TEXT" (optionally ":SECONDS") shows an announcement.
    At a stop or an untimed message you are asked whether to go on.

    Examples:

    \b
      balfolk-dj play "Mazurka - Naragonia - Mazurka 1.mp3" delay:20 stop
      balfolk-dj play --auto-queue --random 1
    """
    library = open_library(ctx)
    config = ctx.config

    if not player_available(config.player_command):
        error(
            f"Player not found: {config.player_command[0]}",
            hint="Install ffplay (ffmpeg) or set player.command in the config",
        )
        raise SystemExit(EXIT_MISSING_PLAYER)

    notifier = Notifier(sink=console_sink)
    history = SessionHistory()
    queue = PlaybackQueue(
        max_items=max(config.max_queue_items, len(items) + random_count),
        delay_seconds=config.delay_seconds,
        allow_duplicates=config.allow_duplicates if allow_duplicates is None else allow_duplicates,
        history=history,
        notifier=notifier,
    )
    dispatcher = Dispatcher()
    backend = SubprocessPlaybackBackend(config.player_command)
    selector = WeightedSelector(library.store.tree, notifier=notifier, rng=random.Random(seed))
    orchestrator = QueueOrchestrator(
        queue,
        selector,
        backend,
        dispatcher,
        history=history,
        notifier=notifier,
        auto_queue=config.auto_queue if auto_queue is None else auto_queue,
    )

    for item in items:
        enqueue(queue, item, library)
    for _ in range(random_count):
        if orchestrator.shuffle() is None:
            break

    if not queue:
        error("Nothing to play", hint="Pass track files or use --random")
        orchestrator.close()
        raise SystemExit(EXIT_ERROR)

    orchestrator.display_changed.connect(_Printer(queue))

    def _progress() -> None:
        orchestrator.update_progress()
        dispatcher.call_later(PROGRESS_INTERVAL, _progress)

    def _waiting_for_dj() -> bool:
        state = orchestrator.state
        if state in (PlayerState.IDLE, PlayerState.STOPPED_AT_MARKER):
            return True
        return state is PlayerState.IN_MESSAGE and not orchestrator.countdown.active

    dispatcher.call_later(PROGRESS_INTERVAL, _progress)
    orchestrator.play()
    try:
        while True:
            dispatcher.run_until(_waiting_for_dj)
            if orchestrator.state is PlayerState.IDLE or not queue:
                break
            if not click.confirm("Continue with the queue?", default=True):
                break
            orchestrator.play()
    except (KeyboardInterrupt, click.Abort):
        warning("Interrupted")
    finally:
        orchestrator.clear_current()
        orchestrator.close()

    success(f"Played {len(history)} tracks ({history.total_duration_formatted})")
    if history_out is not None:
        try:
            history.export_json(history_out)
        except OSError as e:
            error(f"Failed to write history: {e}")
            raise SystemExit(EXIT_ERROR)
        info(f"History written to {history_out}")
