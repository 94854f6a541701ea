"""Tests for frame access during snapshot capture"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from playwright_snapshot_mcp.snapshot.exceptions import DriverUnavailableError
from playwright_snapshot_mcp.snapshot.frames import (
    FrameAccessor,
    key_selector,
    node_from_dict,
)
from playwright_snapshot_mcp.snapshot.types import AccessibilityNode
from tests.fixtures.frames import make_frame


def _host(key: str | None = None, width: int = 300, height: int = 150, box: bool = True) -> MagicMock:
    host = MagicMock()
    host.bounding_box = AsyncMock(
        return_value={"x": 0, "y": 0, "width": width, "height": height} if box else None
    )
    host.get_attribute = AsyncMock(return_value=key)
    host.dispose = AsyncMock()
    return host


def _walkable(frame: MagicMock, nodes: list, host: MagicMock | None = None) -> MagicMock:
    frame.evaluate = AsyncMock(return_value={"url": frame.url, "nodes": nodes})
    if host is not None:
        frame.frame_element = AsyncMock(return_value=host)
    return frame


def _page(main: MagicMock, *nested: MagicMock) -> MagicMock:
    page = MagicMock()
    page.main_frame = main
    page.frames = [main, *nested]
    return page


class TestNodeFromDict:
    """Tests for node_from_dict"""

    def test_text_run(self):
        assert node_from_dict("hello") == "hello"

    def test_element_with_states_and_children(self):
        node = node_from_dict(
            {
                "role": "checkbox",
                "name": "Accept",
                "checked": "mixed",
                "disabled": True,
                "key": "3-7",
                "children": ["label"],
            }
        )
        assert node == AccessibilityNode(
            role="checkbox",
            name="Accept",
            checked="mixed",
            disabled=True,
            key="3-7",
            children=("label",),
        )

    def test_missing_name_and_null_states(self):
        node = node_from_dict({"role": "list", "name": None, "level": None})
        assert node.name == ""
        assert node.level is None
        assert node.children == ()


class TestKeySelector:
    def test_selector(self):
        assert key_selector("2-5") == '[data-snapshot-key="2-5"]'


class TestFrameAccessor:
    """Tests for FrameAccessor.capture"""

    @pytest.mark.asyncio
    async def test_top_level_only(self, top_frame):
        _walkable(top_frame, [{"role": "button", "name": "OK", "key": "1.1-1"}])

        captures = await FrameAccessor(_page(top_frame), "1.1").capture()

        assert len(captures) == 1
        assert captures[0].frame is top_frame
        assert captures[0].parent_index is None
        assert captures[0].nodes == (AccessibilityNode(role="button", name="OK", key="1.1-1"),)

    @pytest.mark.asyncio
    async def test_walk_receives_capture_id(self, top_frame):
        _walkable(top_frame, [])

        await FrameAccessor(_page(top_frame), "7.1").capture()

        args = top_frame.evaluate.await_args.args
        assert args[1] == {"captureId": "7.1", "attribute": "data-snapshot-key"}

    @pytest.mark.asyncio
    async def test_nested_frames_link_to_parents(self, top_frame):
        _walkable(top_frame, [{"role": "iframe", "key": "4.1-1"}])
        frame_a = _walkable(
            make_frame("https://a.example.com/", parent=top_frame),
            [{"role": "iframe", "key": "4.1-1"}],
            _host("4.1-1"),
        )
        frame_b = _walkable(
            make_frame("https://b.example.com/", parent=frame_a),
            ["Nested"],
            _host("4.1-1"),
        )

        captures = await FrameAccessor(_page(top_frame, frame_a, frame_b), "4.1").capture()

        assert [c.frame for c in captures] == [top_frame, frame_a, frame_b]
        assert [c.parent_index for c in captures] == [None, 0, 1]
        assert [c.host_key for c in captures] == [None, "4.1-1", "4.1-1"]
        assert captures[2].nodes == ("Nested",)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "host",
        [_host("1.1-1", width=0), _host("1.1-1", height=0), _host("1.1-1", box=False)],
        ids=["zero-width", "zero-height", "no-box"],
    )
    async def test_unrendered_frame_is_skipped(self, top_frame, host):
        _walkable(top_frame, [])
        hidden = _walkable(make_frame("https://hidden.example.com/", parent=top_frame), [], host)

        captures = await FrameAccessor(_page(top_frame, hidden), "1.1").capture()

        assert [c.frame for c in captures] == [top_frame]
        hidden.evaluate.assert_not_awaited()
        host.dispose.assert_awaited()

    @pytest.mark.asyncio
    async def test_frame_inside_hidden_frame_is_skipped(self, top_frame):
        _walkable(top_frame, [])
        hidden = _walkable(
            make_frame("https://hidden.example.com/", parent=top_frame), [], _host("1.1-1", width=0)
        )
        inner = _walkable(make_frame("https://inner.example.com/", parent=hidden), [], _host("1.1-1"))

        captures = await FrameAccessor(_page(top_frame, hidden, inner), "1.1").capture()

        assert [c.frame for c in captures] == [top_frame]
        inner.evaluate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_host_key_from_earlier_capture_is_ignored(self, top_frame):
        _walkable(top_frame, [])
        frame_a = _walkable(
            make_frame("https://a.example.com/", parent=top_frame), [], _host("1.1-4")
        )

        captures = await FrameAccessor(_page(top_frame, frame_a), "2.1").capture()

        assert captures[1].host_key is None

    @pytest.mark.asyncio
    async def test_host_handles_are_disposed(self, top_frame):
        _walkable(top_frame, [])
        host = _host("1.1-1")
        frame_a = _walkable(make_frame("https://a.example.com/", parent=top_frame), [], host)

        await FrameAccessor(_page(top_frame, frame_a), "1.1").capture()

        host.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_walk_error_aborts_capture(self, top_frame):
        _walkable(top_frame, [])
        frame_a = make_frame("https://a.example.com/", parent=top_frame)
        frame_a.frame_element = AsyncMock(return_value=_host("1.1-1"))
        frame_a.evaluate = AsyncMock(side_effect=PlaywrightError("Frame was detached"))

        with pytest.raises(DriverUnavailableError, match="Frame was detached"):
            await FrameAccessor(_page(top_frame, frame_a), "1.1").capture()

    @pytest.mark.asyncio
    async def test_probe_error_aborts_capture(self, top_frame):
        _walkable(top_frame, [])
        frame_a = make_frame("https://a.example.com/", parent=top_frame)
        frame_a.frame_element = AsyncMock(side_effect=PlaywrightError("Frame has been detached"))

        with pytest.raises(DriverUnavailableError):
            await FrameAccessor(_page(top_frame, frame_a), "1.1").capture()

    @pytest.mark.asyncio
    async def test_host_key_from_failed_attempt_is_ignored(self, top_frame):
        # The first attempt tagged the host before a frame detached; the retry did not emit it
        _walkable(top_frame, [{"role": "iframe", "key": "2.2-1"}])
        frame_a = _walkable(
            make_frame("https://a.example.com/", parent=top_frame), [], _host("2.1-4")
        )

        captures = await FrameAccessor(_page(top_frame, frame_a), "2.2").capture()

        assert captures[1].host_key is None

    @pytest.mark.asyncio
    async def test_probe_error_disposes_other_hosts(self, top_frame):
        _walkable(top_frame, [])
        host_a = _host("1.1-1")
        frame_a = _walkable(make_frame("https://a.example.com/", parent=top_frame), [], host_a)
        frame_b = make_frame("https://b.example.com/", parent=top_frame)
        frame_b.frame_element = AsyncMock(side_effect=PlaywrightError("Frame has been detached"))

        with pytest.raises(DriverUnavailableError):
            await FrameAccessor(_page(top_frame, frame_a, frame_b), "1.1").capture()

        host_a.dispose.assert_awaited_once()
        frame_a.evaluate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bounding_box_error_disposes_host(self, top_frame):
        _walkable(top_frame, [])
        host = _host("1.1-1")
        host.bounding_box.side_effect = PlaywrightError("Element is not attached to the DOM")
        frame_a = _walkable(make_frame("https://a.example.com/", parent=top_frame), [], host)

        with pytest.raises(DriverUnavailableError):
            await FrameAccessor(_page(top_frame, frame_a), "1.1").capture()

        host.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_walk_error_disposes_hosts(self, top_frame):
        _walkable(top_frame, [])
        host = _host("1.1-1")
        frame_a = _walkable(make_frame("https://a.example.com/", parent=top_frame), [], host)
        frame_a.evaluate.side_effect = PlaywrightError("Frame was detached")

        with pytest.raises(DriverUnavailableError):
            await FrameAccessor(_page(top_frame, frame_a), "1.1").capture()

        host.dispose.assert_awaited_once()
