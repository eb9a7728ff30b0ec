"""Utility modules for balfolk-dj."""

from balfolk_dj.utils.matching import normalize_dance_name
from balfolk_dj.utils.output import (
    console,
    error,
    info,
    success,
    warning,
)

__all__ = [
    "console",
    "error",
    "info",
    "normalize_dance_name",
    "success",
    "warning",
]
