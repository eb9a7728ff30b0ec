"""Exception hierarchy for balfolk-dj."""

from pathlib import Path


class BalfolkDJError(Exception):
    """Base exception for all balfolk-dj errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all balfolk-dj errors with
    a single except clause.
    """

    pass


# Configuration Errors
class ConfigError(BalfolkDJError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# Dance Tree Errors
class TreeError(BalfolkDJError):
    """Dance tree related errors."""

    pass


class TreeLoadError(TreeError):
    """Stored dance tree could not be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load dance tree from {path}: {reason}")


class TreeImportError(TreeError):
    """Dance tree file failed strict import validation."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Import failed for {path}: {reason}")


class NodeNotFoundError(TreeError):
    """No node exists at the given tree path."""

    def __init__(self, node_path: str) -> None:
        self.node_path = node_path
        super().__init__(f"Dance tree node not found: {node_path}")


# Synonym Errors
class SynonymError(BalfolkDJError):
    """Dance synonym table errors."""

    pass


class SynonymImportError(SynonymError):
    """Synonym file failed strict import validation."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Import failed for {path}: {reason}")


# Library Errors
class LibraryError(BalfolkDJError):
    """Track library errors."""

    pass


class MusicDirectoryError(LibraryError):
    """Music directory is missing or not configured."""

    def __init__(self, path: Path | None) -> None:
        self.path = path
        if path is None:
            super().__init__("No music directory configured")
        else:
            super().__init__(f"Music directory does not exist: {path}")


# Playback Errors
class PlaybackError(BalfolkDJError):
    """The playback backend could not open or play a file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot play {path}: {reason}")

