"""
Browser tab state

A Tab owns one Playwright page together with its snapshot store, its
reference resolver and the console messages the page has logged.
"""

import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any

from playwright.async_api import Error as PlaywrightError

from ..snapshot import (
    ReferenceResolver,
    ResolvedRef,
    SnapshotEntry,
    SnapshotFailure,
    SnapshotStore,
    capture_page_snapshot,
)
from ..types import ConsoleMessage

logger = logging.getLogger(__name__)

MAX_CONSOLE_MESSAGES = 1000


class Tab:
    """A browser page and the snapshot state bound to it."""

    def __init__(
        self,
        tab_id: str,
        page: Any,
        on_close: Callable[["Tab"], None] | None = None,
    ):
        """
        Args:
            tab_id: Session-unique tab identifier (never reused)
            page: Playwright Page
            on_close: Called once when the page closes
        """
        self.tab_id = tab_id
        self.page = page
        self.store = SnapshotStore()
        self.resolver = ReferenceResolver(self.store)
        self.console_messages: deque[ConsoleMessage] = deque(maxlen=MAX_CONSOLE_MESSAGES)
        self.closed = False
        self._on_close_callback = on_close

        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)
        page.on("close", self._on_close)

    def _on_console(self, message: Any) -> None:
        self.console_messages.append(
            {"type": message.type, "text": message.text, "url": self.page.url}
        )

    def _on_page_error(self, error: Any) -> None:
        self.console_messages.append(
            {"type": "pageerror", "text": str(error), "url": self.page.url}
        )

    def _on_close(self, _page: Any = None) -> None:
        if self.closed:
            return
        self.closed = True
        self.store.clear()
        logger.info(f"Tab {self.tab_id} closed")
        if self._on_close_callback:
            self._on_close_callback(self)

    async def navigate(self, url: str) -> None:
        """Navigate the page and wait for it to load."""
        logger.info(f"Tab {self.tab_id}: navigating to {url}")
        await self.page.goto(url, wait_until="domcontentloaded")
        await self._wait_for_load()

    async def capture_snapshot(self) -> tuple[SnapshotEntry | None, SnapshotFailure | None]:
        """Capture the page and commit it as this tab's current snapshot."""
        return await capture_page_snapshot(self.page, self.store)

    async def resolve(self, ref: str) -> tuple[ResolvedRef | None, SnapshotFailure | None]:
        """Resolve a reference against this tab's current snapshot."""
        return await self.resolver.resolve(ref)

    async def _wait_for_load(self) -> None:
        try:
            await self.page.wait_for_load_state("load")
        except PlaywrightError as e:
            # The page may have closed or navigated again; the next snapshot shows the result
            logger.debug(f"Tab {self.tab_id}: load state not reached: {e}")

    async def run_and_wait(self, action: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run a page action and let any navigation it triggers settle.

        Args:
            action: Coroutine function performing the action

        Returns:
            Whatever the action returned
        """
        result = await action()
        if not self.closed:
            await self._wait_for_load()
        return result

    def console_text(self) -> str:
        """Buffered console messages, one "[TYPE] text" line each."""
        return "\n".join(
            f"[{message['type'].upper()}] {message['text']}" for message in self.console_messages
        )

    async def response(
        self, status: str, include_snapshot: bool = True
    ) -> tuple[str | None, SnapshotFailure | None]:
        """
        Build the text returned to the agent after a tool ran.

        Args:
            status: First line describing what the tool did
            include_snapshot: Capture and append a fresh snapshot

        Returns:
            Tuple of (response_text, failure)
        """
        lines = [status, ""]
        if self.closed:
            lines.append("- Page closed")
            return "\n".join(lines), None

        lines.append(f"- Page URL: {self.page.url}")
        lines.append(f"- Page Title: {await self.page.title()}")

        if include_snapshot:
            entry, failure = await self.capture_snapshot()
            if failure:
                return None, failure
            lines.extend(["- Page Snapshot", "```yaml", entry.text, "```"])

        return "\n".join(lines), None
