"""
Custom JMESPath functions for snapshot queries

Adds helpers that make querying accessibility snapshots easier:
- nvl(value, default): default when value is null
- int(value): integer conversion, null when not convertible
- str(value): string conversion, null stays null
- regex_replace(pattern, replacement, value): regular expression substitution
"""

import logging
import re
from typing import Any

import jmespath
from jmespath import functions

logger = logging.getLogger(__name__)


class CustomFunctions(functions.Functions):
    """JMESPath function table with snapshot helpers."""

    @functions.signature({"types": []}, {"types": []})
    def _func_nvl(self, value: Any, default: Any) -> Any:
        return default if value is None else value

    @functions.signature({"types": []})
    def _func_int(self, value: Any) -> int | None:
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @functions.signature({"types": []})
    def _func_str(self, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)

    @functions.signature({"types": ["string"]}, {"types": ["string"]}, {"types": []})
    def _func_regex_replace(self, pattern: str, replacement: str, value: Any) -> Any:
        if value is None:
            return None
        try:
            return re.sub(pattern, replacement, str(value))
        except re.error as e:
            logger.debug(f"Invalid regex pattern '{pattern}': {e}")
            return value


_OPTIONS = jmespath.Options(custom_functions=CustomFunctions())


def search_with_custom_functions(expression: str, data: Any) -> Any:
    """
    Evaluate a JMESPath expression with the custom functions available.

    Args:
        expression: JMESPath expression
        data: Data to search

    Returns:
        Query result

    Raises:
        jmespath.exceptions.JMESPathError: If the expression is invalid
    """
    return jmespath.search(expression, data, options=_OPTIONS)
