"""Weighted random track selection."""

from balfolk_dj.selection.weighted import ExcludePredicate, WeightedSelector

__all__ = ["ExcludePredicate", "WeightedSelector"]
