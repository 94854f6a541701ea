"""
Accessibility snapshots with stable element references.

Captures the accessibility structure of a page and its visible nested frames,
allocates reference tokens over the stitched tree, renders it as a YAML
outline and resolves tokens back to live elements.
"""

from .allocator import ReferenceAllocator
from .capture import capture_page_snapshot
from .exceptions import DriverUnavailableError, FailureKind, SnapshotFailure
from .frames import FrameAccessor, resolve_node
from .refs import RefToken, format_ref, parse_ref
from .resolver import ReferenceResolver, ResolvedRef
from .serializer import SnapshotSerializer
from .store import SnapshotStore
from .types import (
    AccessibilityNode,
    FrameCapture,
    FrameRecord,
    SnapshotEntry,
    StitchedNode,
    StitchedTree,
)

__all__ = [
    "AccessibilityNode",
    "DriverUnavailableError",
    "FailureKind",
    "FrameAccessor",
    "FrameCapture",
    "FrameRecord",
    "RefToken",
    "ReferenceAllocator",
    "ReferenceResolver",
    "ResolvedRef",
    "SnapshotEntry",
    "SnapshotFailure",
    "SnapshotSerializer",
    "SnapshotStore",
    "StitchedNode",
    "StitchedTree",
    "capture_page_snapshot",
    "format_ref",
    "parse_ref",
    "resolve_node",
]
