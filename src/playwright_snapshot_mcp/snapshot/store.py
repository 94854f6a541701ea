"""Per-tab holder of the committed snapshot."""

import logging

from .types import SnapshotEntry, StitchedTree

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Holds the latest committed snapshot of one tab.

    The entry is replaced by a single assignment, so a reader sees either the
    previous snapshot or the new one, never a mix. Generations start at 1 and
    only increase for the lifetime of the store.
    """

    def __init__(self):
        self._entry: SnapshotEntry | None = None
        self._next_generation = 1

    @property
    def next_generation(self) -> int:
        """Generation the next committed snapshot will carry."""
        return self._next_generation

    def commit(self, tree: StitchedTree, text: str) -> SnapshotEntry:
        """
        Publish a new snapshot, superseding every reference of the previous one.

        Args:
            tree: Tree allocated for next_generation
            text: Rendered outline of the tree

        Returns:
            The committed entry

        Raises:
            ValueError: If the tree was allocated for another generation
        """
        if tree.generation != self._next_generation:
            raise ValueError(
                f"Tree generation {tree.generation} does not match next generation {self._next_generation}"
            )

        entry = SnapshotEntry(generation=tree.generation, tree=tree, text=text)
        self._next_generation += 1
        self._entry = entry
        logger.debug(f"Committed snapshot generation {entry.generation} ({len(tree.index)} refs)")
        return entry

    def current(self) -> SnapshotEntry | None:
        """Latest committed snapshot, or None before the first capture."""
        return self._entry

    def clear(self) -> None:
        """Drop the committed snapshot. Generations keep counting."""
        self._entry = None
