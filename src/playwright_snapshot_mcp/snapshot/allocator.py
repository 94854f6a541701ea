"""
Reference allocation over the stitched multi-frame tree.

A single depth-first pre-order walk starts at the top-level frame. Every
element node receives the next element ordinal of its frame; element
ordinals restart at ELEMENT_ORDINAL_BASE in each frame. A nested frame
receives the next frame ordinal when its hosting iframe node is reached, and
its root nodes become the children of that iframe node.
"""

import itertools
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from .refs import format_ref
from .types import (
    ELEMENT_ORDINAL_BASE,
    TOP_LEVEL_FRAME,
    AccessibilityNode,
    FrameCapture,
    FrameRecord,
    StitchedNode,
    StitchedTree,
)

logger = logging.getLogger(__name__)


@dataclass
class _Allocation:
    """Mutable state of one allocation pass."""

    generation: int
    captures: list[FrameCapture]
    hosted: dict[tuple[int, str], int]
    frame_ordinals: Iterator[int] = field(default_factory=lambda: itertools.count(TOP_LEVEL_FRAME + 1))
    frames: dict[int, FrameRecord] = field(default_factory=dict)
    index: dict[tuple[int, int], StitchedNode] = field(default_factory=dict)
    stitched: set[int] = field(default_factory=set)


class ReferenceAllocator:
    """Assigns frame and element ordinals and builds the StitchedTree."""

    def allocate(self, captures: list[FrameCapture], generation: int) -> StitchedTree:
        """
        Stitch frame captures into one tree and allocate references.

        Args:
            captures: Frame captures; index 0 must be the top-level frame
            generation: Generation the references are issued for

        Returns:
            StitchedTree for the generation
        """
        if not captures:
            return StitchedTree(generation=generation, roots=(), frames={}, index={})

        hosted: dict[tuple[int, str], int] = {}
        for capture_index, capture in enumerate(captures[1:], start=1):
            if capture.parent_index is not None and capture.host_key:
                hosted[(capture.parent_index, capture.host_key)] = capture_index

        state = _Allocation(generation=generation, captures=captures, hosted=hosted)
        roots = self._stitch_frame(state, 0, TOP_LEVEL_FRAME)

        dropped = len(captures) - len(state.stitched)
        if dropped:
            logger.debug(f"{dropped} frame capture(s) had no host in the stitched tree")

        return StitchedTree(
            generation=generation,
            roots=roots,
            frames=state.frames,
            index=state.index,
        )

    def _stitch_frame(
        self, state: _Allocation, capture_index: int, frame_ordinal: int
    ) -> tuple[StitchedNode | str, ...]:
        capture = state.captures[capture_index]
        state.stitched.add(capture_index)
        state.frames[frame_ordinal] = FrameRecord(
            ordinal=frame_ordinal, frame=capture.frame, url=capture.url
        )
        element_ordinals = itertools.count(ELEMENT_ORDINAL_BASE)
        return tuple(
            self._stitch_node(state, node, capture_index, frame_ordinal, element_ordinals)
            for node in capture.nodes
        )

    def _stitch_node(
        self,
        state: _Allocation,
        node: AccessibilityNode | str,
        capture_index: int,
        frame_ordinal: int,
        element_ordinals: Iterator[int],
    ) -> StitchedNode | str:
        if isinstance(node, str):
            return node

        element_ordinal = next(element_ordinals)
        ref = format_ref(frame_ordinal, state.generation, element_ordinal)
        # Reserve the slot so the index stays in allocation order
        state.index[(frame_ordinal, element_ordinal)] = None  # type: ignore[assignment]

        nested_index = state.hosted.get((capture_index, node.key)) if node.key else None
        if nested_index is not None and nested_index not in state.stitched:
            children = self._stitch_frame(state, nested_index, next(state.frame_ordinals))
        else:
            children = tuple(
                self._stitch_node(state, child, capture_index, frame_ordinal, element_ordinals)
                for child in node.children
            )

        stitched = StitchedNode(
            node=node,
            ref=ref,
            frame_ordinal=frame_ordinal,
            element_ordinal=element_ordinal,
            children=children,
        )
        state.index[(frame_ordinal, element_ordinal)] = stitched
        return stitched
