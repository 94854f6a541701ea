"""FastMCP middleware for the Playwright Snapshot MCP Server."""

from .mcp_logging import MCPLoggingMiddleware

__all__ = ["MCPLoggingMiddleware"]
