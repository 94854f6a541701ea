"""
MCP request/response logging middleware

Logs every client MCP request and its outcome with a "CLIENT_MCP" prefix so
the client conversation can be filtered out of the log file.
"""

import json
import logging
import time
from typing import Any

from fastmcp.server.middleware import Middleware, MiddlewareContext

logger = logging.getLogger(__name__)

PREFIX = "CLIENT_MCP"


class MCPLoggingMiddleware(Middleware):
    """FastMCP middleware logging client requests, responses, timing and errors."""

    def __init__(
        self,
        log_request_params: bool = True,
        log_response_data: bool = False,
        max_log_length: int = 5000,
    ):
        """
        Args:
            log_request_params: Log tool and prompt arguments
            log_response_data: Log tool and resource results
            max_log_length: Characters of logged data kept before truncation
        """
        self.log_request_params = log_request_params
        self.log_response_data = log_response_data
        self.max_log_length = max_log_length

    def _truncate_data(self, data: Any, max_length: int) -> str:
        """Render data as JSON (or str) and cut it to max_length characters."""
        try:
            text = json.dumps(data, default=str)
        except (TypeError, ValueError):
            text = str(data)

        if len(text) <= max_length:
            return text
        return f"{text[:max_length]}... ({len(text)} chars total)"

    def _log_arguments(self, name: str, arguments: dict[str, Any] | None) -> None:
        if not arguments:
            logger.info(f"{PREFIX}   Tool '{name}' arguments: (none)")
            return
        logger.info(f"{PREFIX}   Tool '{name}' arguments: {self._truncate_data(arguments, self.max_log_length)}")

    def _log_result(self, name: str, result: Any) -> None:
        logger.info(f"{PREFIX}   Tool '{name}' result: {self._truncate_data(result, self.max_log_length)}")

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return (time.perf_counter() - start) * 1000

    async def on_call_tool(self, context: MiddlewareContext, call_next: Any) -> Any:
        name = getattr(context.message, "name", "unknown")
        logger.info(f"{PREFIX} → Tool call: {name}")
        if self.log_request_params:
            self._log_arguments(name, getattr(context.message, "arguments", None))

        start = time.perf_counter()
        try:
            result = await call_next(context)
        except Exception as e:
            logger.error(
                f"{PREFIX} ✗ Tool error: {name} ({self._elapsed_ms(start):.1f}ms) "
                f"{type(e).__name__}: {e}"
            )
            raise

        logger.info(f"{PREFIX} ← Tool result: {name} ({self._elapsed_ms(start):.1f}ms)")
        if self.log_response_data:
            self._log_result(name, result)
        return result

    async def on_read_resource(self, context: MiddlewareContext, call_next: Any) -> Any:
        uri = getattr(context.message, "uri", "unknown")
        logger.info(f"{PREFIX} → Resource read: {uri}")

        start = time.perf_counter()
        try:
            result = await call_next(context)
        except Exception as e:
            logger.error(f"{PREFIX} ✗ Resource error: {uri} {type(e).__name__}: {e}")
            raise

        logger.info(f"{PREFIX} ← Resource result: {uri} ({self._elapsed_ms(start):.1f}ms)")
        if self.log_response_data:
            logger.info(f"{PREFIX}   Resource '{uri}' data: {self._truncate_data(result, self.max_log_length)}")
        return result

    async def on_get_prompt(self, context: MiddlewareContext, call_next: Any) -> Any:
        name = getattr(context.message, "name", "unknown")
        logger.info(f"{PREFIX} → Prompt request: {name}")
        arguments = getattr(context.message, "arguments", None)
        if self.log_request_params and arguments:
            logger.info(f"{PREFIX}   Prompt arguments: {self._truncate_data(arguments, self.max_log_length)}")

        try:
            return await call_next(context)
        except Exception as e:
            logger.error(f"{PREFIX} ✗ Prompt error: {name} {type(e).__name__}: {e}")
            raise

    async def on_initialize(self, context: MiddlewareContext, call_next: Any) -> Any:
        params = getattr(context.message, "params", None)
        client_info = getattr(params, "clientInfo", None) if params else None
        client_name = getattr(client_info, "name", "unknown") if client_info else "unknown"
        client_version = getattr(client_info, "version", "unknown") if client_info else "unknown"
        protocol = getattr(params, "protocolVersion", "unknown") if params else "unknown"
        logger.info(f"{PREFIX} → Initialize: {client_name} v{client_version} (protocol: {protocol})")

        try:
            result = await call_next(context)
        except Exception as e:
            logger.error(f"{PREFIX} ✗ Initialize error: {type(e).__name__}: {e}")
            raise

        logger.info(f"{PREFIX} ← Initialize complete")
        return result

    async def _log_listing(self, kind: str, context: MiddlewareContext, call_next: Any) -> Any:
        logger.info(f"{PREFIX} → List {kind}")
        try:
            result = await call_next(context)
        except Exception as e:
            logger.error(f"{PREFIX} ✗ List {kind} error: {type(e).__name__}: {e}")
            raise

        logger.info(f"{PREFIX} ← List {kind} result: {len(result) if result else 0} {kind}")
        return result

    async def on_list_tools(self, context: MiddlewareContext, call_next: Any) -> Any:
        return await self._log_listing("tools", context, call_next)

    async def on_list_resources(self, context: MiddlewareContext, call_next: Any) -> Any:
        return await self._log_listing("resources", context, call_next)

    async def on_list_prompts(self, context: MiddlewareContext, call_next: Any) -> Any:
        return await self._log_listing("prompts", context, call_next)
