"""Shared pytest fixtures."""

from __future__ import annotations

import shutil
import tempfile
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from balfolk_dj.events import Signal
from balfolk_dj.exceptions import PlaybackError
from balfolk_dj.library.models import TrackRef
from balfolk_dj.notifications import Notifier
from balfolk_dj.tree.models import DanceTree

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


SAMPLE_TREE = [
    {
        "name": "Couple",
        "weight": 3,
        "dances": [
            {"name": "Mazurka", "weight": 2},
            {"name": "Valse", "weight": 1},
        ],
        "children": [
            {
                "name": "Uneven",
                "weight": 1,
                "dances": [{"name": "Valse à 5 temps", "weight": 1}],
            }
        ],
    },
    {
        "name": "Chain",
        "weight": 1,
        "recurring": True,
        "dances": [{"name": "Bourrée", "weight": 1}],
    },
    {
        "name": "Mixer",
        "weight": 0,
        "recurring": False,
        "dances": [{"name": "Chapelloise", "weight": 5}],
    },
]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_tree() -> DanceTree:
    return DanceTree.from_dicts(SAMPLE_TREE)


def make_track(
    dance: str, title: str = "Tune", artist: str = "Band", duration: float = 180.0
) -> TrackRef:
    return TrackRef(
        dance=dance,
        artist=artist,
        title=title,
        duration=duration,
        file_path=f"/music/{dance} - {artist} - {title}.mp3",
    )


@pytest.fixture
def track_factory() -> Callable[..., TrackRef]:
    return make_track


@pytest.fixture
def music_dir(temp_dir: Path) -> Path:
    """A music directory with a few correctly named (but silent) files."""
    root = temp_dir / "music"
    (root / "couple").mkdir(parents=True)
    (root / "chain").mkdir()
    for name in (
        "couple/Mazurka - Naragonia - Tuesday.mp3",
        "couple/Mazurka - Blowzabella - Mazurka Du Loup.mp3",
        "couple/Waltz - Duo Absynthe - Valse Lente.mp3",
        "chain/Bourree 2t - Shillelagh - Bourrée Droite.mp3",
        "chain/Tarantella - Unknown Band - Not In Tree.mp3",
        "chain/not a track.mp3",
        "chain/notes.txt",
    ):
        (root / name).write_bytes(b"\x00" * 16)
    return root


@pytest.fixture
def sample_config(temp_dir: Path, music_dir: Path) -> Path:
    """Create a sample config file pointing at the temp music and data dirs."""
    config_path = temp_dir / "config.toml"
    config_path.write_text(f"""[paths]
music_dir = "{music_dir}"
data_dir = "{temp_dir / "data"}"

[queue]
max_items = 4
delay_seconds = 20
allow_duplicates = false

[display]
colored_output = false
""")
    return config_path


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class FakeBackend:
    """In-memory playback backend recording what it was asked to do."""

    def __init__(self) -> None:
        self.end_reached = Signal("fake.end_reached")
        self.playing_changed = Signal("fake.playing_changed")
        self.failing: set[str] = set()
        self.played: list[TrackRef] = []
        self.stops = 0
        self.clears = 0
        self.current_position = 0.0
        self._current: TrackRef | None = None
        self._playing = False

    @property
    def current_track(self) -> TrackRef | None:
        return self._current

    @property
    def is_playing(self) -> bool:
        return self._playing

    def play(self, track: TrackRef) -> None:
        if track.file_path in self.failing:
            raise PlaybackError(track.file_path, "cannot decode")
        self._current = track
        self._playing = True
        self.played.append(track)

    def stop(self) -> None:
        self.stops += 1
        self._playing = False

    def clear(self) -> None:
        self.clears += 1
        self._playing = False
        self._current = None

    def position(self) -> float:
        return self.current_position

    def finish(self, ok: bool = True) -> None:
        """Simulate the player exiting, cleanly or with an error."""
        self._playing = False
        self.end_reached.emit(self._current, ok)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


@pytest.fixture
def inline_executor() -> InlineExecutor:
    return InlineExecutor()
