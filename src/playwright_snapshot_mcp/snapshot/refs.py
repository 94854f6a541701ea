"""
Reference token grammar.

A token names one element of one snapshot generation:

    s<generation>e<element>            element of the top-level frame
    f<frame>s<generation>e<element>    element of a nested frame

All numbers are positive decimals without leading zeros, so every token
decodes to exactly one (frame, generation, element) triple.
"""

import re
from typing import NamedTuple

from .types import TOP_LEVEL_FRAME

_REF_PATTERN = re.compile(
    r"^(?:f(?P<frame>[1-9][0-9]*))?s(?P<generation>[1-9][0-9]*)e(?P<element>[1-9][0-9]*)$"
)


class RefToken(NamedTuple):
    """Decoded reference token."""

    frame_ordinal: int
    generation: int
    element_ordinal: int

    @property
    def is_top_level(self) -> bool:
        return self.frame_ordinal == TOP_LEVEL_FRAME

    def __str__(self) -> str:
        return format_ref(self.frame_ordinal, self.generation, self.element_ordinal)


def format_ref(frame_ordinal: int, generation: int, element_ordinal: int) -> str:
    """
    Render a reference token.

    Args:
        frame_ordinal: Frame ordinal (0 for the top-level frame)
        generation: Snapshot generation (>= 1)
        element_ordinal: Element ordinal within the frame (>= 1)

    Returns:
        Token string such as "s2e5" or "f1s2e3"

    Raises:
        ValueError: If any component is out of range
    """
    if frame_ordinal < 0:
        raise ValueError(f"Frame ordinal must be >= 0, got {frame_ordinal}")
    if generation < 1:
        raise ValueError(f"Generation must be >= 1, got {generation}")
    if element_ordinal < 1:
        raise ValueError(f"Element ordinal must be >= 1, got {element_ordinal}")

    token = f"s{generation}e{element_ordinal}"
    if frame_ordinal == TOP_LEVEL_FRAME:
        return token
    return f"f{frame_ordinal}{token}"


def parse_ref(token: str) -> RefToken | None:
    """
    Decode a reference token.

    Args:
        token: Token text as given by the caller

    Returns:
        RefToken, or None if the text does not follow the grammar
    """
    if not isinstance(token, str):
        return None

    match = _REF_PATTERN.match(token.strip())
    if not match:
        return None

    frame = match.group("frame")
    return RefToken(
        frame_ordinal=int(frame) if frame else TOP_LEVEL_FRAME,
        generation=int(match.group("generation")),
        element_ordinal=int(match.group("element")),
    )
