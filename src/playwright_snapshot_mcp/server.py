"""
Playwright Snapshot MCP Server

An MCP server that drives a Playwright browser through accessibility
snapshots. Every snapshot carries element references (e.g. "s2e5" or
"f1s2e3" for an element inside a nested frame) that interaction tools accept
to act on exactly the element the agent saw.

This server:
1. Launches (or connects to) a browser lazily on the first tool call
2. Captures the page and its visible nested frames as one YAML outline
3. Resolves references from the latest snapshot back to live elements
4. Re-captures the page after each action so the agent sees the result
"""

import asyncio
import sys
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from playwright.async_api import Error as PlaywrightError

from .browser import BrowserConfig, BrowserSession, Tab, load_browser_config
from .browser.scripts import DEFAULT_FILTER_TAGS, ELEMENT_HTML_SCRIPT, FORMAT_HTML_SCRIPT
from .middleware import MCPLoggingMiddleware
from .snapshot import ResolvedRef, SnapshotSerializer
from .types import SnapshotResponse
from .utils.logging_config import get_logger, log_tool_result, setup_file_logging
from .utils.snapshot_query import apply_jmespath_query, flatten_snapshot, paginate

# Configure logging using centralized utility
setup_file_logging(log_file="logs/playwright-snapshot-mcp.log")
logger = get_logger(__name__)

# Log Python interpreter information at startup

logger.info(f"Python interpreter: {sys.executable}")
logger.info(f"Python version: {sys.version}")

# Upper bound for browser_wait, in seconds
MAX_WAIT_SECONDS = 10.0

# Global components
browser_config: BrowserConfig | None = None
browser_session: BrowserSession | None = None


@asynccontextmanager
async def lifespan_context(server):
    """Lifespan context manager for startup and shutdown"""
    global browser_config, browser_session

    logger.info("Starting Playwright Snapshot MCP Server...")

    try:
        # Load configuration; the browser itself starts on first use
        browser_config = load_browser_config()
        browser_session = BrowserSession(browser_config)

        logger.info("Playwright Snapshot MCP Server started successfully")

        # Yield control to the server
        yield

    except Exception as e:
        logger.error(f"Failed to start Playwright Snapshot MCP Server: {e}", exc_info=True)
        raise

    finally:
        # Shutdown cleanup
        logger.info("Shutting down Playwright Snapshot MCP Server...")

        try:
            if browser_session:
                await browser_session.close()

            logger.info("Playwright Snapshot MCP Server shut down successfully")

        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)


# Initialize the MCP server
mcp = FastMCP(
    name="Playwright Snapshot MCP",
    instructions="""
    Browser automation through accessibility snapshots.

    Call browser_snapshot (or browser_navigate) to see the page as a YAML
    outline. Every element line ends with [ref=...]; pass that reference to
    browser_click, browser_type, browser_select_option and the other
    interaction tools.

    References are only valid for the latest snapshot of the tab. After any
    action the page is captured again and the response contains the new
    snapshot; always use references from the most recent one. If a tool
    reports a stale or unknown reference, capture a new snapshot.

    Elements inside nested frames carry an f<N> prefix (e.g. f1s3e4) and are
    used exactly like top-level references.
    """,
    lifespan=lifespan_context,
)

# Register MCP request/response logging middleware
# Logs all client MCP requests and responses with "CLIENT_MCP" prefix for easy filtering
mcp.add_middleware(
    MCPLoggingMiddleware(log_request_params=True, log_response_data=True, max_log_length=10000)
)


# =============================================================================
# HELPERS
# =============================================================================


def _get_session() -> BrowserSession:
    if browser_session is None:
        raise RuntimeError("Browser session not initialized")
    return browser_session


def _auto_snapshot() -> bool:
    return bool(browser_config.get("auto_snapshot", True)) if browser_config else True


async def _respond(tab: Tab, status: str, include_snapshot: bool | None = None) -> str:
    """Build the tool response for a tab, capturing a snapshot unless disabled."""
    if include_snapshot is None:
        include_snapshot = _auto_snapshot()

    text, failure = await tab.response(status, include_snapshot)
    if failure:
        logger.warning(f"Snapshot after '{status}' failed: {failure.kind.value}")
        raise ToolError(f"{status}, but the page could not be captured afterwards. {failure}")
    return text  # type: ignore[return-value]


async def _resolve(tab: Tab, element: str, ref: str) -> ResolvedRef:
    """Resolve a reference or raise a ToolError telling the agent how to recover."""
    resolved, failure = await tab.resolve(ref)
    if failure:
        logger.info(f"Could not resolve {ref} ({element}): {failure.kind.value}")
        raise ToolError(str(failure))
    logger.debug(f"Resolved {ref} to {resolved.role} {resolved.name!r}")  # type: ignore[union-attr]
    return resolved  # type: ignore[return-value]


def _action_error(action: str, element: str, error: PlaywrightError) -> ToolError:
    logger.warning(f"{action} on {element} failed: {error}")
    return ToolError(f"{action} on {element} failed: {error.message}")


# =============================================================================
# NAVIGATION TOOLS
# =============================================================================


@mcp.tool()
@log_tool_result(logger)
async def browser_navigate(url: str) -> str:
    """
    Navigate the current tab to a URL and return a snapshot of the page.

    Args:
        url: The URL to navigate to

    Returns:
        Page URL, title and accessibility snapshot with element references
    """
    async with _get_session().lease_tab() as tab:
        try:
            await tab.navigate(url)
        except PlaywrightError as e:
            raise ToolError(f"Navigation to {url} failed: {e.message}")
        return await _respond(tab, f"Navigated to {url}")


@mcp.tool()
@log_tool_result(logger)
async def browser_navigate_back() -> str:
    """
    Go back to the previous page.

    Returns:
        Page URL, title and accessibility snapshot
    """
    async with _get_session().lease_tab() as tab:
        try:
            await tab.run_and_wait(lambda: tab.page.go_back())
        except PlaywrightError as e:
            raise _action_error("Back navigation", "the current tab", e)
        return await _respond(tab, "Navigated back")


@mcp.tool()
@log_tool_result(logger)
async def browser_navigate_forward() -> str:
    """
    Go forward to the next page.

    Returns:
        Page URL, title and accessibility snapshot
    """
    async with _get_session().lease_tab() as tab:
        try:
            await tab.run_and_wait(lambda: tab.page.go_forward())
        except PlaywrightError as e:
            raise _action_error("Forward navigation", "the current tab", e)
        return await _respond(tab, "Navigated forward")


# =============================================================================
# SNAPSHOT
# =============================================================================


@mcp.tool()
@log_tool_result(logger)
async def browser_snapshot(
    output_format: str = "yaml",
    flatten: bool = False,
    jmespath_query: str | None = None,
    offset: int = 0,
    limit: int = 1000,
) -> Any:
    """
    Capture an accessibility snapshot of the current page.

    This is better than a screenshot for automation: every element line
    carries a reference ([ref=s2e5]) that interaction tools accept. A new
    snapshot invalidates the references of the previous one.

    Args:
        output_format: 'yaml' (default) returns the page outline as text.
            'json' returns the snapshot tree as data, which can be flattened,
            filtered with JMESPath and paginated.
        flatten: json only. Convert the tree to a depth-first node list where
            each node carries _depth, _parent_role and _index. Default: False
        jmespath_query: json only. JMESPath expression applied to the tree (or
            to the flattened list). Nodes have "role", "name", "ref", state
            fields and "children". Custom functions: nvl(value, default),
            int(value), str(value), regex_replace(pattern, replacement, value).

            Examples:
            - "[?role == 'button'].ref" with flatten=True: references of all buttons
            - "[?contains(nvl(name, ''), 'Submit')]" with flatten=True
        offset: json only. Starting index for pagination. Default: 0
        limit: json only. Maximum items returned (1-10000). Default: 1000

    Returns:
        yaml: Page URL, title and snapshot text.
        json: SnapshotResponse with the (paginated) snapshot data.
    """
    output_format = output_format.lower()
    if output_format not in ("yaml", "json"):
        raise ToolError(f"output_format must be 'yaml' or 'json', got '{output_format}'")
    if output_format == "yaml" and (flatten or jmespath_query):
        raise ToolError("flatten and jmespath_query require output_format='json'")
    if offset < 0:
        raise ToolError("offset must be non-negative")
    if not 1 <= limit <= 10000:
        raise ToolError("limit must be between 1 and 10000")

    async with _get_session().lease_tab() as tab:
        if output_format == "yaml":
            return await _respond(tab, "Captured page snapshot", include_snapshot=True)

        entry, failure = await tab.capture_snapshot()
        if failure:
            raise ToolError(str(failure))

        data: Any = SnapshotSerializer().to_dict(entry.tree)  # type: ignore[union-attr]
        if flatten:
            data = flatten_snapshot(data)
        if jmespath_query:
            data, query_error = apply_jmespath_query(data, jmespath_query)
            if query_error:
                raise ToolError(query_error)

        paginated, total, has_more = paginate(data, offset, limit)
        return SnapshotResponse(
            success=True,
            url=tab.page.url,
            title=await tab.page.title(),
            generation=entry.generation,  # type: ignore[union-attr]
            total_items=total,
            offset=offset,
            limit=limit,
            has_more=has_more,
            snapshot=paginated,
            error=None,
        )


# =============================================================================
# INTERACTION TOOLS
# =============================================================================


@mcp.tool()
@log_tool_result(logger)
async def browser_click(
    element: str,
    ref: str,
    double_click: bool = False,
    button: str = "left",
) -> str:
    """
    Perform click on a web page.

    Args:
        element: Human-readable element description used to obtain permission to interact with the element
        ref: Exact target element reference from the page snapshot
        double_click: Whether to perform a double click instead of a single click
        button: Button to click, must be 'left', 'right', or 'middle'. Defaults to 'left'.

    Returns:
        Page URL, title and accessibility snapshot after the click
    """
    if button not in ("left", "right", "middle"):
        raise ToolError(f"button must be 'left', 'right' or 'middle', got '{button}'")

    async with _get_session().lease_tab() as tab:
        resolved = await _resolve(tab, element, ref)
        try:
            if double_click:
                await tab.run_and_wait(lambda: resolved.locator.dblclick(button=button))
            else:
                await tab.run_and_wait(lambda: resolved.locator.click(button=button))
        except PlaywrightError as e:
            raise _action_error("Click", element, e)
        return await _respond(tab, f"{'Double-clicked' if double_click else 'Clicked'} {element}")


@mcp.tool()
@log_tool_result(logger)
async def browser_hover(element: str, ref: str) -> str:
    """
    Hover over an element on the page.

    Args:
        element: Human-readable element description used to obtain permission to interact with the element
        ref: Exact target element reference from the page snapshot

    Returns:
        Page URL, title and accessibility snapshot after hovering
    """
    async with _get_session().lease_tab() as tab:
        resolved = await _resolve(tab, element, ref)
        try:
            await tab.run_and_wait(lambda: resolved.locator.hover())
        except PlaywrightError as e:
            raise _action_error("Hover", element, e)
        return await _respond(tab, f"Hovered over {element}")


@mcp.tool()
@log_tool_result(logger)
async def browser_drag(
    start_element: str,
    start_ref: str,
    end_element: str,
    end_ref: str,
) -> str:
    """
    Perform drag and drop between two elements.

    Args:
        start_element: Human-readable source element description used to obtain permission to interact with the element
        start_ref: Exact source element reference from the page snapshot
        end_element: Human-readable target element description used to obtain permission to interact with the element
        end_ref: Exact target element reference from the page snapshot

    Returns:
        Page URL, title and accessibility snapshot after the drop
    """
    async with _get_session().lease_tab() as tab:
        start = await _resolve(tab, start_element, start_ref)
        end = await _resolve(tab, end_element, end_ref)
        try:
            await tab.run_and_wait(lambda: start.locator.drag_to(end.locator))
        except PlaywrightError as e:
            raise _action_error("Drag", start_element, e)
        return await _respond(tab, f"Dragged {start_element} to {end_element}")


@mcp.tool()
@log_tool_result(logger)
async def browser_type(
    element: str,
    ref: str,
    text: str,
    submit: bool = False,
    slowly: bool = False,
) -> str:
    """
    Type text into an editable element.

    Args:
        element: Human-readable element description used to obtain permission to interact with the element
        ref: Exact target element reference from the page snapshot
        text: Text to type into the element
        submit: Whether to submit entered text (press Enter after)
        slowly: Whether to type one character at a time. Useful for triggering key handlers in the page.
            By default entire text is filled in at once.

    Returns:
        Page URL, title and accessibility snapshot after typing
    """
    async with _get_session().lease_tab() as tab:
        resolved = await _resolve(tab, element, ref)

        async def type_text() -> None:
            if slowly:
                await resolved.locator.press_sequentially(text)
            else:
                await resolved.locator.fill(text)
            if submit:
                await resolved.locator.press("Enter")

        try:
            await tab.run_and_wait(type_text)
        except PlaywrightError as e:
            raise _action_error("Typing", element, e)
        return await _respond(tab, f"Typed into {element}" + (" and submitted" if submit else ""))


@mcp.tool()
@log_tool_result(logger)
async def browser_select_option(element: str, ref: str, values: list[str]) -> str:
    """
    Select an option in a dropdown.

    Args:
        element: Human-readable element description used to obtain permission to interact with the element
        ref: Exact target element reference from the page snapshot
        values: Array of values to select in the dropdown. This can be a single value or multiple values.

    Returns:
        Page URL, title and accessibility snapshot after selecting
    """
    async with _get_session().lease_tab() as tab:
        resolved = await _resolve(tab, element, ref)
        try:
            await tab.run_and_wait(lambda: resolved.locator.select_option(values))
        except PlaywrightError as e:
            raise _action_error("Select option", element, e)
        return await _respond(tab, f"Selected {', '.join(values)} in {element}")


@mcp.tool()
@log_tool_result(logger)
async def browser_highlight(element: str, ref: str) -> str:
    """
    Highlight an element on the page so a human watching the browser can see it.

    Args:
        element: Human-readable element description used to obtain permission to interact with the element
        ref: Exact target element reference from the page snapshot

    Returns:
        Confirmation with page URL and title
    """
    async with _get_session().lease_tab() as tab:
        resolved = await _resolve(tab, element, ref)
        try:
            await resolved.locator.highlight()
        except PlaywrightError as e:
            raise _action_error("Highlight", element, e)
        return await _respond(tab, f"Highlighted {element}", include_snapshot=False)


@mcp.tool()
@log_tool_result(logger)
async def browser_take_html_snippet(
    element: str | None = None,
    ref: str | None = None,
    include_outer: bool = True,
    filter_tags: list[str] | None = None,
) -> str:
    """
    Return the HTML of the page or of one element, formatted one node per line.

    Args:
        element: Human-readable element description. Required together with ref.
        ref: Element reference from the page snapshot. Omit for the whole page.
        include_outer: Include the element's own tag (outerHTML) instead of only its content. Default: True
        filter_tags: Tags removed before formatting. Default: meta, script, style, link

    Returns:
        Formatted HTML
    """
    if (element is None) != (ref is None):
        raise ToolError("element and ref must be provided together")
    tags = DEFAULT_FILTER_TAGS if filter_tags is None else filter_tags

    async with _get_session().lease_tab() as tab:
        try:
            if ref is not None:
                resolved = await _resolve(tab, element, ref)  # type: ignore[arg-type]
                html = await resolved.locator.evaluate(ELEMENT_HTML_SCRIPT, include_outer)
            else:
                html = await tab.page.content()
            return await tab.page.evaluate(FORMAT_HTML_SCRIPT, {"htmlContent": html, "tags": tags})
        except PlaywrightError as e:
            raise _action_error("HTML snippet", element or "page", e)


@mcp.tool()
@log_tool_result(logger)
async def browser_press_key(key: str) -> str:
    """
    Press a key on the keyboard.

    Args:
        key: Name of the key to press or a character to generate, such as `ArrowLeft` or `a`

    Returns:
        Page URL, title and accessibility snapshot after the key press
    """
    async with _get_session().lease_tab() as tab:
        try:
            await tab.run_and_wait(lambda: tab.page.keyboard.press(key))
        except PlaywrightError as e:
            raise _action_error("Key press", key, e)
        return await _respond(tab, f"Pressed {key}")


@mcp.tool()
@log_tool_result(logger)
async def browser_wait(time: float) -> str:
    """
    Wait for a number of seconds (at most 10).

    Args:
        time: The time to wait in seconds

    Returns:
        Page URL, title and accessibility snapshot after waiting
    """
    seconds = min(max(time, 0.0), MAX_WAIT_SECONDS)
    await asyncio.sleep(seconds)
    async with _get_session().lease_tab() as tab:
        return await _respond(tab, f"Waited for {seconds:g} seconds")


# =============================================================================
# TAB TOOLS
# =============================================================================


async def _render_tabs(session: BrowserSession) -> str:
    tabs = await session.list_tabs()
    if not tabs:
        return "No open tabs. Use browser_navigate or browser_tab_new to open one."
    lines = ["### Open tabs"]
    for info in tabs:
        current = " (current)" if info["current"] else ""
        lines.append(f"- {info['index']}:{current} [{info['title']}] ({info['url']})")
    return "\n".join(lines)


@mcp.tool()
@log_tool_result(logger)
async def browser_tab_list() -> str:
    """
    List browser tabs.

    Returns:
        One line per tab with its index, title and URL
    """
    return await _render_tabs(_get_session())


@mcp.tool()
@log_tool_result(logger)
async def browser_tab_new(url: str | None = None) -> str:
    """
    Open a new tab and make it current.

    Args:
        url: The URL to navigate to in the new tab. If not provided, the new tab will be blank.

    Returns:
        Tab list followed by the new tab's snapshot
    """
    session = _get_session()
    try:
        tab = await session.new_tab(url)
    except PlaywrightError as e:
        raise ToolError(f"Opening new tab failed: {e.message}")
    async with session.lease_tab(tab.tab_id) as leased:
        return await _respond(leased, await _render_tabs(session))


@mcp.tool()
@log_tool_result(logger)
async def browser_tab_select(index: int) -> str:
    """
    Select a tab by index and make it current.

    Args:
        index: The index of the tab to select

    Returns:
        Tab list followed by the selected tab's snapshot
    """
    session = _get_session()
    try:
        tab = session.select_tab(index)
    except ValueError as e:
        raise ToolError(str(e))
    async with session.lease_tab(tab.tab_id) as leased:
        return await _respond(leased, await _render_tabs(session))


@mcp.tool()
@log_tool_result(logger)
async def browser_tab_close(index: int | None = None) -> str:
    """
    Close a tab.

    Args:
        index: The index of the tab to close. Closes current tab if not provided.

    Returns:
        Remaining tabs
    """
    session = _get_session()
    try:
        await session.close_tab(index)
    except ValueError as e:
        raise ToolError(str(e))
    return await _render_tabs(session)


@mcp.tool()
@log_tool_result(logger)
async def browser_close() -> str:
    """
    Close the browser. The next browser tool call starts a new one.

    Returns:
        Confirmation message
    """
    await _get_session().close()
    return "Browser closed"


# =============================================================================
# RESOURCES
# =============================================================================


@mcp.resource("browser://console")
async def get_console_messages() -> str:
    """Console messages logged by the current tab, one "[TYPE] text" line each"""
    if browser_session is None or browser_session.current_tab_id is None:
        return ""
    tab = browser_session.tabs.get(browser_session.current_tab_id)
    return tab.console_text() if tab else ""


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    """Run the MCP server"""
    logger.info("Initializing Playwright Snapshot MCP Server...")
    mcp.run()


if __name__ == "__main__":
    main()
