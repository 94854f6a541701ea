"""Resolution of reference tokens back to live elements."""

import logging
from dataclasses import dataclass
from typing import Any

from .exceptions import DriverUnavailableError, FailureKind, SnapshotFailure
from .frames import resolve_node
from .refs import parse_ref
from .store import SnapshotStore
from .types import StitchedNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRef:
    """A reference that resolved to a live element."""

    ref: str
    locator: Any  # playwright Locator
    node: StitchedNode
    frame: Any  # playwright Frame

    @property
    def role(self) -> str:
        return self.node.role

    @property
    def name(self) -> str:
        return self.node.name


class ReferenceResolver:
    """
    Resolves tokens against the store's current snapshot.

    Every call reads the store afresh and queries the browser; nothing is
    cached between calls.
    """

    def __init__(self, store: SnapshotStore):
        self._store = store

    async def resolve(self, token: str) -> tuple[ResolvedRef | None, SnapshotFailure | None]:
        """
        Resolve a reference token.

        Args:
            token: Reference token from a snapshot, e.g. "s2e5" or "f1s2e3"

        Returns:
            Tuple of (resolved_ref, failure); exactly one of them is None
        """
        parsed = parse_ref(token)
        if parsed is None:
            return None, SnapshotFailure(
                FailureKind.MALFORMED_TOKEN,
                f"Invalid reference '{token}'. References look like 's2e5' or 'f1s2e3'.",
                ref=str(token),
            )

        entry = self._store.current()
        if entry is None:
            return None, SnapshotFailure(
                FailureKind.NO_SNAPSHOT,
                f"Reference {token} cannot be used: no snapshot has been captured for this page.",
                ref=token,
            )

        if parsed.generation != entry.generation:
            return None, SnapshotFailure(
                FailureKind.STALE_GENERATION,
                f"Reference {token} belongs to snapshot {parsed.generation}, "
                f"but the current snapshot is {entry.generation}.",
                ref=token,
            )

        record = entry.tree.frames.get(parsed.frame_ordinal)
        if record is None or record.frame.is_detached():
            return None, SnapshotFailure(
                FailureKind.UNKNOWN_FRAME,
                f"Reference {token} points to a frame that is no longer available.",
                ref=token,
            )

        node = entry.tree.find(parsed.frame_ordinal, parsed.element_ordinal)
        if node is None or not node.node.key:
            return None, SnapshotFailure(
                FailureKind.DANGLING_ELEMENT,
                f"Reference {token} was not found in the current snapshot.",
                ref=token,
            )

        try:
            locator = await resolve_node(record.frame, node.node.key)
        except DriverUnavailableError as e:
            logger.warning(f"Driver unavailable while resolving {token}: {e}")
            return None, SnapshotFailure(
                FailureKind.DRIVER_UNAVAILABLE,
                f"The browser could not be queried for reference {token}: {e.message}",
                ref=token,
            )

        if locator is None:
            return None, SnapshotFailure(
                FailureKind.DANGLING_ELEMENT,
                f"Element {token} ({node.role} {node.name!r}) no longer matches exactly one element on the page.",
                ref=token,
            )

        return ResolvedRef(ref=str(parsed), locator=locator, node=node, frame=record.frame), None
