"""Dance tree commands."""

from __future__ import annotations

import click

# Exit codes
EXIT_SUCCESS = 0
EXIT_TREE_ERROR = 1


@click.group("tree")
def cli() -> None:
    """Inspect and edit the weighted dance tree.

    The tree groups dances into categories. Weights decide how often a
    branch is chosen by the random suggestions; a weight of 0 disables
    a branch completely.
    """
    pass


# Import submodules to register their commands with the cli group
from balfolk_dj.commands.tree import edit as _edit  # noqa: E402, F401
from balfolk_dj.commands.tree import show as _show  # noqa: E402, F401
from balfolk_dj.commands.tree import transfer as _transfer  # noqa: E402, F401
