"""Data models for accessibility snapshots."""

from dataclasses import dataclass, field
from typing import Any, Literal, Union

# Element ordinals restart here in every frame; e1 and e2 stand for the
# document and its body, which are never rendered.
ELEMENT_ORDINAL_BASE = 3

# Frame ordinal of the top-level frame. Its references carry no frame prefix.
TOP_LEVEL_FRAME = 0


@dataclass(frozen=True)
class AccessibilityNode:
    """
    One element as seen by the accessibility layer of a single frame.

    Text runs are not nodes: they appear as plain strings among the children.
    """

    role: str
    name: str = ""
    children: tuple[Union["AccessibilityNode", str], ...] = field(default_factory=tuple)

    # ARIA states
    checked: bool | Literal["mixed"] | None = None
    disabled: bool | None = None
    expanded: bool | None = None
    level: int | None = None
    pressed: bool | Literal["mixed"] | None = None
    selected: bool | None = None

    # DOM key written by the capture script, used to find the live element again
    key: str | None = None


@dataclass(frozen=True)
class FrameCapture:
    """Accessibility nodes of one visible frame, as produced by one capture."""

    frame: Any  # playwright Frame
    url: str
    nodes: tuple[AccessibilityNode | str, ...]
    parent_index: int | None = None  # index of the parent capture, None for the top-level frame
    host_key: str | None = None  # key of the iframe element hosting this frame


@dataclass(frozen=True)
class StitchedNode:
    """A referenced node of the stitched multi-frame tree."""

    node: AccessibilityNode
    ref: str
    frame_ordinal: int
    element_ordinal: int
    children: tuple[Union["StitchedNode", str], ...] = field(default_factory=tuple)

    @property
    def role(self) -> str:
        return self.node.role

    @property
    def name(self) -> str:
        return self.node.name


@dataclass(frozen=True)
class FrameRecord:
    """A frame that received an ordinal in one generation."""

    ordinal: int
    frame: Any  # playwright Frame, only meaningful for the generation that recorded it
    url: str


@dataclass(frozen=True)
class StitchedTree:
    """
    Output of the reference allocator.

    Immutable: a new capture produces a new tree, it never edits an old one.
    """

    generation: int
    roots: tuple[StitchedNode | str, ...]
    frames: dict[int, FrameRecord]
    index: dict[tuple[int, int], StitchedNode]

    def find(self, frame_ordinal: int, element_ordinal: int) -> StitchedNode | None:
        """Look up the node allocated at (frame ordinal, element ordinal)."""
        return self.index.get((frame_ordinal, element_ordinal))

    @property
    def refs(self) -> list[str]:
        """All reference tokens of this tree, in allocation order."""
        return [node.ref for node in self.index.values()]


@dataclass(frozen=True)
class SnapshotEntry:
    """Committed snapshot state of one tab."""

    generation: int
    tree: StitchedTree
    text: str
