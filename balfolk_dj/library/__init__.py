"""Track library: scanning, synonyms, assignment and session history."""

from balfolk_dj.library.assignment import AssignmentResult, TrackAssignmentIndex
from balfolk_dj.library.models import TrackRef, format_duration
from balfolk_dj.library.scanner import parse_track_filename, scan_directory
from balfolk_dj.library.session import SessionHistory
from balfolk_dj.library.synonyms import DanceSynonym, SynonymTable

__all__ = [
    "AssignmentResult",
    "DanceSynonym",
    "SessionHistory",
    "SynonymTable",
    "TrackAssignmentIndex",
    "TrackRef",
    "format_duration",
    "parse_track_filename",
    "scan_directory",
]
