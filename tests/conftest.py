"""
Pytest Configuration and Fixtures

This module provides shared fixtures for all tests.
"""

from unittest.mock import MagicMock

import pytest

# Import browser fixtures to make them available to all tests
from tests.fixtures.browser_fixture import browser_setup  # noqa: F401
from tests.fixtures.frames import make_frame, make_page
from playwright_snapshot_mcp.snapshot.types import AccessibilityNode, FrameCapture


@pytest.fixture
def top_frame() -> MagicMock:
    return make_frame("https://example.com/")


@pytest.fixture
def nested_captures(top_frame) -> list[FrameCapture]:
    """
    Captures of a page with two levels of nested frames.

    Top-level frame: heading "Hello" and an iframe hosting frame A.
    Frame A: button "World" and a main region holding an iframe hosting frame B.
    Frame B: a paragraph reading "Nested".
    """
    frame_a = make_frame("https://a.example.com/", parent=top_frame)
    frame_b = make_frame("https://b.example.com/", parent=frame_a)

    top = FrameCapture(
        frame=top_frame,
        url=top_frame.url,
        nodes=(
            AccessibilityNode(role="heading", name="Hello", level=1, key="1.1-1"),
            AccessibilityNode(role="iframe", key="1.1-2"),
        ),
    )
    capture_a = FrameCapture(
        frame=frame_a,
        url=frame_a.url,
        nodes=(
            AccessibilityNode(role="button", name="World", key="1.1-1"),
            AccessibilityNode(
                role="main",
                key="1.1-2",
                children=(AccessibilityNode(role="iframe", key="1.1-3"),),
            ),
        ),
        parent_index=0,
        host_key="1.1-2",
    )
    capture_b = FrameCapture(
        frame=frame_b,
        url=frame_b.url,
        nodes=(AccessibilityNode(role="paragraph", key="1.1-1", children=("Nested",)),),
        parent_index=1,
        host_key="1.1-3",
    )
    return [top, capture_a, capture_b]


@pytest.fixture
def nested_snapshot_text() -> str:
    return "\n".join(
        [
            '- heading "Hello" [level=1] [ref=s1e3]',
            "- iframe [ref=s1e4]:",
            '  - button "World" [ref=f1s1e3]',
            "  - main [ref=f1s1e4]:",
            "    - iframe [ref=f1s1e5]:",
            "      - paragraph [ref=f2s1e3]: Nested",
        ]
    )


@pytest.fixture
def mock_page(top_frame) -> MagicMock:
    """Mock Playwright Page whose top-level frame is top_frame."""
    page = make_page(top_frame.url)
    page.main_frame = top_frame
    page.frames = [top_frame]
    return page
