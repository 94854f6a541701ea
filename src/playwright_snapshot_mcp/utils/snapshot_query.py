"""
Post-processing of snapshot data for the json output format

Flattens the snapshot tree into a node list and applies JMESPath queries.
"""

import logging
from typing import Any

from jmespath.exceptions import JMESPathError

from .jmespath_extensions import search_with_custom_functions

logger = logging.getLogger(__name__)


def flatten_snapshot(nodes: list[Any]) -> list[dict[str, Any]]:
    """
    Flatten a snapshot tree into a depth-first node list.

    Each node is copied without its children and annotated with:
    - _depth: Nesting level (0 = root)
    - _parent_role: Role of parent node (None for root)
    - _index: Position in flattened list

    Text runs become {"role": "text", "name": <text>} nodes.

    Args:
        nodes: Root nodes as produced by SnapshotSerializer.to_dict

    Returns:
        Flat list of nodes in document order
    """
    flat: list[dict[str, Any]] = []

    def visit(node: Any, depth: int, parent_role: str | None) -> None:
        if isinstance(node, str):
            item: dict[str, Any] = {"role": "text", "name": node}
            children: list[Any] = []
        else:
            item = {key: value for key, value in node.items() if key != "children"}
            children = node.get("children", [])

        item["_depth"] = depth
        item["_parent_role"] = parent_role
        item["_index"] = len(flat)
        flat.append(item)

        for child in children:
            visit(child, depth + 1, item["role"])

    for root in nodes:
        visit(root, 0, None)
    return flat


def apply_jmespath_query(data: Any, query: str) -> tuple[Any, str | None]:
    """
    Apply a JMESPath query to snapshot data.

    Args:
        data: Snapshot data (tree or flattened list)
        query: JMESPath expression

    Returns:
        Tuple of (result, error_message)
    """
    try:
        return search_with_custom_functions(query, data), None
    except JMESPathError as e:
        logger.info(f"JMESPath query failed: {query}: {e}")
        return None, f"Invalid JMESPath query: {e}"


def paginate(data: Any, offset: int, limit: int) -> tuple[list[Any], int, bool]:
    """
    Apply pagination to result data.

    Args:
        data: Data to paginate (list or single item)
        offset: Starting index
        limit: Maximum items

    Returns:
        Tuple of (paginated_data, total_items, has_more)
    """
    if isinstance(data, list):
        total = len(data)
        paginated = data[offset : offset + limit]
        has_more = offset + limit < total
    else:
        total = 1
        paginated = [data] if offset == 0 else []
        has_more = False

    return paginated, total, has_more
