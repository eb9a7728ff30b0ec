"""Track value type shared by the library, selector and queue."""

from __future__ import annotations

from dataclasses import dataclass, field


def format_duration(seconds: float) -> str:
    """Format seconds as m:ss (or h:mm:ss from one hour up)."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@dataclass(frozen=True, eq=False)
class TrackRef:
    """A scanned music file.

    Two tracks are the same track when their file paths match, whatever
    the other fields say.
    """

    dance: str
    artist: str
    title: str
    duration: float = 0.0
    file_path: str = field(default="")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TrackRef):
            return NotImplemented
        return self.file_path == other.file_path

    def __hash__(self) -> int:
        return hash(self.file_path)

    @property
    def length_formatted(self) -> str:
        return format_duration(self.duration)

    @property
    def display_name(self) -> str:
        return f"{self.artist} - {self.title}"

    @property
    def duration_formatted(self) -> str:
        return self.length_formatted
