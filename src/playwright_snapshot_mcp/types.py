"""
Type Definitions

Define TypedDict classes for tab and console data returned by the tools.
"""

from typing import Any, TypedDict


class TabInfo(TypedDict):
    """One open browser tab."""

    index: int
    tab_id: str
    url: str
    title: str
    current: bool


class ConsoleMessage(TypedDict):
    """
    A message logged by a page.

    type is the console method (log, warning, error, ...) or "pageerror" for
    uncaught exceptions.
    """

    type: str
    text: str
    url: str


class SnapshotResponse(TypedDict, total=False):
    """
    Response for browser_snapshot with output_format="json".

    snapshot holds the tree (or the flattened/queried node list) for the page
    of results selected by offset and limit.
    """

    success: bool
    url: str
    title: str
    generation: int
    total_items: int
    offset: int
    limit: int
    has_more: bool
    snapshot: list[Any] | None
    error: str | None
