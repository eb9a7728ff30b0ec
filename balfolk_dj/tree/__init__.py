"""Dance tree model, persistence and editing."""

from balfolk_dj.tree.models import ROOT, DanceCategory, DanceLeaf, DanceTree
from balfolk_dj.tree.store import TreeStore, validate_tree_data

__all__ = [
    "DanceCategory",
    "DanceLeaf",
    "DanceTree",
    "ROOT",
    "TreeStore",
    "validate_tree_data",
]
