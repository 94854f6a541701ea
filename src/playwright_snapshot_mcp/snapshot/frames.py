"""
Frame access for snapshot capture.

Reads the accessibility structure of a page's top-level frame and of every
visible nested frame. Frames are walked concurrently and joined before the
caller sees any result; a driver failure anywhere aborts the whole capture.
"""

import asyncio
import logging
from typing import Any

from playwright.async_api import Error as PlaywrightError

from .exceptions import DriverUnavailableError
from .scripts import ACCESSIBILITY_SCRIPT, NODE_KEY_ATTRIBUTE
from .types import AccessibilityNode, FrameCapture

logger = logging.getLogger(__name__)

_STATE_FIELDS = ("checked", "disabled", "expanded", "level", "pressed", "selected")


def node_from_dict(data: dict[str, Any] | str) -> AccessibilityNode | str:
    """
    Convert one node returned by the capture script into an AccessibilityNode.

    Args:
        data: Node dictionary, or a plain string for a text run

    Returns:
        AccessibilityNode, or the text run unchanged
    """
    if isinstance(data, str):
        return data

    states = {name: data[name] for name in _STATE_FIELDS if data.get(name) is not None}
    return AccessibilityNode(
        role=data["role"],
        name=data.get("name") or "",
        children=tuple(node_from_dict(child) for child in data.get("children", [])),
        key=data.get("key"),
        **states,
    )


def key_selector(key: str) -> str:
    """CSS selector matching the element tagged with a capture key."""
    return f'[{NODE_KEY_ATTRIBUTE}="{key}"]'


async def resolve_node(frame: Any, key: str) -> Any | None:
    """
    Find the live element tagged with a capture key.

    Args:
        frame: Playwright Frame the key was captured in
        key: Capture key written by the capture script

    Returns:
        Locator for the element, or None unless exactly one element carries the key

    Raises:
        DriverUnavailableError: If the frame cannot be queried
    """
    locator = frame.locator(key_selector(key))
    try:
        count = await locator.count()
    except PlaywrightError as e:
        raise DriverUnavailableError(f"Failed to query element: {e}", frame.url) from e

    if count == 0:
        return None
    if count > 1:
        # Cloned nodes copy the attribute, so the key no longer names one element
        logger.warning(f"Capture key {key} matches {count} elements in {frame.url}")
        return None
    return locator.first


class FrameAccessor:
    """Captures the accessibility nodes of all visible frames of one page."""

    def __init__(self, page: Any, capture_id: str):
        """
        Args:
            page: Playwright Page to capture
            capture_id: Identifier written into every capture key, so keys of
                different captures and capture attempts never collide
        """
        self._page = page
        self._capture_id = capture_id

    def _list_frames(self) -> list[Any]:
        main = self._page.main_frame
        return [frame for frame in self._page.frames if frame is not main]

    async def _probe_host(self, frame: Any) -> tuple[Any, bool]:
        """Return the frame's host element handle and whether it has a rendered box."""
        host = await frame.frame_element()
        try:
            box = await host.bounding_box()
        except PlaywrightError:
            await host.dispose()
            raise
        rendered = box is not None and box["width"] > 0 and box["height"] > 0
        return host, rendered

    async def _walk(self, frame: Any) -> dict[str, Any]:
        return await frame.evaluate(
            ACCESSIBILITY_SCRIPT,
            {"captureId": self._capture_id, "attribute": NODE_KEY_ATTRIBUTE},
        )

    async def _host_key(self, host: Any) -> str | None:
        key = await host.get_attribute(NODE_KEY_ATTRIBUTE)

        # Keys left over from an earlier capture mean the host was not emitted this time
        if key is None or not key.startswith(f"{self._capture_id}-"):
            return None
        return key

    @staticmethod
    async def _dispose(hosts: list[Any]) -> None:
        results = await asyncio.gather(*(host.dispose() for host in hosts), return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.debug(f"Failed to dispose frame host handle: {result}")

    async def capture(self) -> list[FrameCapture]:
        """
        Capture the top-level frame and every visible nested frame.

        Returns:
            List of FrameCapture; index 0 is the top-level frame, nested frames
            follow in page frame order with parent_index pointing into the list

        Raises:
            DriverUnavailableError: If any frame detaches or cannot be read
        """
        main = self._page.main_frame
        hosts: dict[int, Any] = {}
        try:
            nested = self._list_frames()
            probes = await asyncio.gather(
                *(self._probe_host(frame) for frame in nested), return_exceptions=True
            )
            rendered: dict[int, bool] = {}
            for frame, probe in zip(nested, probes):
                if not isinstance(probe, BaseException):
                    hosts[id(frame)], rendered[id(frame)] = probe
            for probe in probes:
                if isinstance(probe, BaseException):
                    raise probe

            visible_memo: dict[int, bool] = {}

            def is_visible(frame: Any) -> bool:
                if frame is main:
                    return True
                if id(frame) not in visible_memo:
                    parent = frame.parent_frame
                    visible_memo[id(frame)] = (
                        rendered.get(id(frame), False)
                        and parent is not None
                        and is_visible(parent)
                    )
                return visible_memo[id(frame)]

            visible = [frame for frame in nested if is_visible(frame)]
            for frame in nested:
                if not is_visible(frame):
                    logger.debug(f"Skipping hidden frame: {frame.url}")

            ordered = [main] + visible
            results = await asyncio.gather(*(self._walk(frame) for frame in ordered))
            host_keys = await asyncio.gather(*(self._host_key(hosts[id(frame)]) for frame in visible))
        except PlaywrightError as e:
            logger.warning(f"Frame capture aborted: {e}")
            raise DriverUnavailableError(f"Browser frame unavailable during capture: {e}") from e
        finally:
            await self._dispose(list(hosts.values()))

        position = {id(frame): index for index, frame in enumerate(ordered)}
        captures = [
            FrameCapture(
                frame=main,
                url=results[0].get("url", main.url),
                nodes=tuple(node_from_dict(node) for node in results[0].get("nodes", [])),
            )
        ]
        for frame, result, host_key in zip(visible, results[1:], host_keys):
            captures.append(
                FrameCapture(
                    frame=frame,
                    url=result.get("url", frame.url),
                    nodes=tuple(node_from_dict(node) for node in result.get("nodes", [])),
                    parent_index=position[id(frame.parent_frame)],
                    host_key=host_key,
                )
            )

        logger.debug(f"Captured {len(captures)} frame(s) for capture {self._capture_id}")
        return captures
