"""
Browser session management

Launches the browser lazily on first use and keeps track of its tabs. Tabs
are leased through a LeasedKeyQueue keyed by tab id, so at most one tool
operates on a given tab at a time: a capture never interleaves with an
action on the same page.
"""

import asyncio
import itertools
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from leasedkeyq import LeasedKeyQueue
from playwright.async_api import async_playwright

from ..types import TabInfo
from .config import BrowserConfig, parse_viewport_size
from .tab import Tab

logger = logging.getLogger(__name__)

# Browsers launched through the chromium engine with a distribution channel
_CHROMIUM_CHANNELS = {"chrome": "chrome", "msedge": "msedge"}


class BrowserSession:
    """The controlled browser, its context and its tabs."""

    def __init__(self, config: BrowserConfig):
        self.config = config
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._launch_lock = asyncio.Lock()

        self.tabs: dict[str, Tab] = {}
        self._registered: dict[str, asyncio.Event] = {}
        self._tab_ids = itertools.count(1)
        self.current_tab_id: str | None = None
        self.lease_queue: LeasedKeyQueue[str, Tab] = LeasedKeyQueue[str, Tab]()

    @property
    def is_started(self) -> bool:
        return self._context is not None

    # -------------------------------------------------------------------------
    # Launch / shutdown
    # -------------------------------------------------------------------------

    def _context_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"ignore_https_errors": self.config.get("ignore_https_errors", False)}
        viewport = parse_viewport_size(self.config.get("viewport_size"))
        if viewport:
            options["viewport"] = viewport
        if self.config.get("user_agent"):
            options["user_agent"] = self.config["user_agent"]
        return options

    def _launch_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"headless": self.config.get("headless", False)}
        channel = _CHROMIUM_CHANNELS.get(self.config["browser"])
        if channel:
            options["channel"] = channel
        if self.config.get("executable_path"):
            options["executable_path"] = self.config["executable_path"]
        return options

    async def _launch(self) -> None:
        browser_name = self.config["browser"]
        engine_name = "chromium" if browser_name in _CHROMIUM_CHANNELS else browser_name

        self._playwright = await async_playwright().start()
        engine = getattr(self._playwright, engine_name)

        if self.config.get("cdp_endpoint"):
            logger.info(f"Connecting to browser over CDP: {self.config['cdp_endpoint']}")
            self._browser = await self._playwright.chromium.connect_over_cdp(self.config["cdp_endpoint"])
            if self._browser.contexts:
                self._context = self._browser.contexts[0]
            else:
                self._context = await self._browser.new_context(**self._context_options())
        elif self.config.get("user_data_dir"):
            logger.info(f"Launching {browser_name} with profile {self.config['user_data_dir']}")
            self._context = await engine.launch_persistent_context(
                self.config["user_data_dir"], **self._launch_options(), **self._context_options()
            )
        else:
            logger.info(f"Launching {browser_name} (headless={self.config.get('headless', False)})")
            self._browser = await engine.launch(**self._launch_options())
            self._context = await self._browser.new_context(**self._context_options())

        self._context.set_default_timeout(self.config["timeout_action"])
        self._context.set_default_navigation_timeout(self.config["timeout_navigation"])
        self._context.on("page", self._on_page)
        self._context.on("close", self._on_context_close)

        for page in self._context.pages:
            await self._add_tab(page)

    async def start(self) -> None:
        """Launch or connect to the browser unless already done."""
        async with self._launch_lock:
            if self._context is not None:
                return
            if self._playwright is not None:
                # The previous browser went away; release what is left of it
                await self._shutdown()
            try:
                await self._launch()
            except Exception:
                await self._shutdown()
                raise
            logger.info("Browser session started")

    async def _shutdown(self) -> None:
        for tab in list(self.tabs.values()):
            tab._on_close()
        self.tabs.clear()
        self.current_tab_id = None

        context, browser, playwright = self._context, self._browser, self._playwright
        self._context = self._browser = self._playwright = None

        if context is not None and not self.config.get("cdp_endpoint"):
            await context.close()
        if browser is not None:
            await browser.close()
        if playwright is not None:
            await playwright.stop()

    async def close(self) -> None:
        """Close the browser. The next tool call launches a fresh one."""
        async with self._launch_lock:
            if self._context is None and self._playwright is None:
                return
            logger.info("Closing browser session")
            await self._shutdown()

    def _on_context_close(self, _context: Any = None) -> None:
        logger.warning("Browser context closed")
        for tab in list(self.tabs.values()):
            tab._on_close()
        self._context = None

    # -------------------------------------------------------------------------
    # Tabs
    # -------------------------------------------------------------------------

    def _on_page(self, page: Any) -> None:
        logger.info(f"New page opened: {page.url}")
        asyncio.get_running_loop().create_task(self._add_tab(page))

    def _tab_for_page(self, page: Any) -> Tab | None:
        return next((tab for tab in self.tabs.values() if tab.page is page), None)

    async def _add_tab(self, page: Any) -> Tab:
        # Registration is checked and recorded before the first await so a page
        # reported both by new_page() and by the "page" event becomes one tab
        tab = self._tab_for_page(page)
        if tab is not None:
            await self._registered[tab.tab_id].wait()
            return tab

        tab = Tab(f"tab-{next(self._tab_ids)}", page, on_close=self._on_tab_closed)
        self.tabs[tab.tab_id] = tab
        self._registered[tab.tab_id] = asyncio.Event()
        if self.current_tab_id is None:
            self.current_tab_id = tab.tab_id

        await self.lease_queue.put(tab.tab_id, tab)
        self._registered[tab.tab_id].set()
        logger.debug(f"Registered {tab.tab_id}")
        return tab

    def _on_tab_closed(self, tab: Tab) -> None:
        self.tabs.pop(tab.tab_id, None)
        if self.current_tab_id == tab.tab_id:
            self.current_tab_id = next(reversed(self.tabs), None) if self.tabs else None

    def _tab_at(self, index: int) -> Tab:
        tabs = list(self.tabs.values())
        if index < 0 or index >= len(tabs):
            raise ValueError(f"Tab index {index} out of range (open tabs: {len(tabs)})")
        return tabs[index]

    async def ensure_tab(self) -> str:
        """
        Make sure the browser runs and a current tab exists.

        Returns:
            Id of the current tab
        """
        await self.start()
        if self.current_tab_id is None:
            await self.new_tab()
        return self.current_tab_id  # type: ignore[return-value]

    async def new_tab(self, url: str | None = None) -> Tab:
        """Open a new tab, make it current and optionally navigate it."""
        await self.start()
        page = await self._context.new_page()
        tab = await self._add_tab(page)
        self.current_tab_id = tab.tab_id
        if url:
            async with self.lease_tab(tab.tab_id) as leased:
                await leased.navigate(url)
        return tab

    def select_tab(self, index: int) -> Tab:
        """Make the tab at index current."""
        tab = self._tab_at(index)
        self.current_tab_id = tab.tab_id
        logger.info(f"Selected {tab.tab_id}")
        return tab

    async def close_tab(self, index: int | None = None) -> None:
        """Close the tab at index, or the current tab."""
        if index is None:
            if self.current_tab_id is None:
                raise ValueError("No open tab to close")
            tab_id = self.current_tab_id
        else:
            tab_id = self._tab_at(index).tab_id

        # Waits for any running operation on the tab to finish first
        async with self.lease_tab(tab_id) as tab:
            await tab.page.close()
            tab._on_close()

    async def list_tabs(self) -> list[TabInfo]:
        """Describe all open tabs in opening order."""
        result: list[TabInfo] = []
        for index, tab in enumerate(list(self.tabs.values())):
            result.append(
                {
                    "index": index,
                    "tab_id": tab.tab_id,
                    "url": tab.page.url,
                    "title": await tab.page.title(),
                    "current": tab.tab_id == self.current_tab_id,
                }
            )
        return result

    @asynccontextmanager
    async def lease_tab(self, tab_id: str | None = None) -> AsyncIterator[Tab]:
        """
        Lease a tab for exclusive use.

        The lease is released when leaving the context, even if an exception
        occurs.

        Args:
            tab_id: Tab to lease, or None for the current tab (opened on demand)

        Yields:
            The leased Tab

        Raises:
            ValueError: If the tab does not exist or was closed meanwhile
        """
        if tab_id is None:
            tab_id = await self.ensure_tab()

        registered = self._registered.get(tab_id)
        if registered is not None:
            await registered.wait()

        try:
            key, tab, lease = await self.lease_queue.take(tab_id)
        except KeyError:
            raise ValueError(f"Tab '{tab_id}' not found (open tabs: {list(self.tabs.keys())})")

        if tab.closed:
            await self.lease_queue.release(lease)
            raise ValueError(f"Tab '{tab_id}' has been closed")

        logger.debug(f"Leased {tab_id}")
        try:
            yield tab
        finally:
            await self.lease_queue.release(lease)
            logger.debug(f"Released {tab_id}")
