"""Dance name normalization.

Track tags and tree entries are written by different people in different
spellings ("Bourrée 2 temps", "bourree  2 temps", "Bourree-2temps"). All
lookups between them go through ``normalize_dance_name``.
"""

from __future__ import annotations

import re
import unicodedata

# ---------------------------------------------------------------------------
# Pre-compiled patterns
# ---------------------------------------------------------------------------

_MULTI_SPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# String normalization
# ---------------------------------------------------------------------------


def strip_diacritics(s: str) -> str:
    """Remove combining marks after canonical decomposition (é -> e)."""
    decomposed = unicodedata.normalize("NFD", s)
    return "".join(c for c in decomposed if unicodedata.category(c) != "Mn")


def normalize_dance_name(s: str | None) -> str:
    """Full normalization pipeline for dance name comparison.

    Strips diacritics, drops everything that is not a letter, digit or
    whitespace, casefolds and collapses runs of whitespace. Blank input
    yields an empty string.
    """
    if not s or not s.strip():
        return ""
    kept = "".join(c for c in strip_diacritics(s) if c.isalnum() or c.isspace())
    return _MULTI_SPACE.sub(" ", kept.casefold()).strip()


def dance_names_equal(a: str | None, b: str | None) -> bool:
    """Compare two dance names after normalization."""
    return normalize_dance_name(a) == normalize_dance_name(b)
