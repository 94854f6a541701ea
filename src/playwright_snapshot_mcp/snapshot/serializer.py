"""Text and JSON rendering of stitched snapshot trees."""

import json
import re
from typing import Any

from .types import StitchedNode, StitchedTree

_INDENT = "  "

_NUMERIC_PATTERN = re.compile(
    r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$|^0[xX][0-9a-fA-F]+$|^0[bB][01]+$|^0[oO][0-7]+$|^[+-]?Infinity$"
)
_RESERVED_WORDS = {"y", "n", "yes", "no", "true", "false", "on", "off", "null"}
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_VALUE_ESCAPES = re.compile(r'[\\"\x00-\x1f\x7f-\x9f]')
_NAMED_ESCAPES = {"\\": "\\\\", '"': '\\"', "\b": "\\b", "\f": "\\f", "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def yaml_needs_quotes(text: str) -> bool:
    """True when a scalar would not read back as the same plain YAML string."""
    if not text:
        return True
    if text[0].isspace() or text[-1].isspace():
        return True
    if _CONTROL_CHARS.search(text):
        return True
    if text.startswith("-") or text.startswith("["):
        return True
    if re.search(r"[\n:](\s|$)", text) or re.search(r"\s#", text) or re.search(r"[\n\r]", text):
        return True
    if text[0] in "&*],?!>|@\"'#%":
        return True
    if re.search(r"[{}`]", text):
        return True
    return bool(_NUMERIC_PATTERN.match(text)) or text.lower() in _RESERVED_WORDS


def yaml_escape_key(text: str) -> str:
    if not yaml_needs_quotes(text):
        return text
    return "'" + text.replace("'", "''") + "'"


def yaml_escape_value(text: str) -> str:
    if not yaml_needs_quotes(text):
        return text

    def escape(match: re.Match) -> str:
        char = match.group(0)
        return _NAMED_ESCAPES.get(char, f"\\x{ord(char):02x}")

    return '"' + _VALUE_ESCAPES.sub(escape, text) + '"'


class SnapshotSerializer:
    """
    Render a StitchedTree as a YAML outline or as JSON-ready data.

    Output depends on the tree alone, so the same tree always renders to the
    same bytes.
    """

    def render(self, tree: StitchedTree) -> str:
        """
        Render the tree as an indented outline, one line per node.

        Args:
            tree: Tree to render

        Returns:
            Outline text, without a trailing newline
        """
        lines: list[str] = []
        for root in tree.roots:
            self._render_node(root, "", lines)
        return "\n".join(lines)

    def node_key(self, node: StitchedNode) -> str:
        """Role, quoted name, state flags and reference of one node."""
        key = node.role
        if node.name:
            key += " " + json.dumps(node.name, ensure_ascii=False)

        state = node.node
        if state.checked == "mixed":
            key += " [checked=mixed]"
        elif state.checked:
            key += " [checked]"
        if state.disabled:
            key += " [disabled]"
        if state.expanded:
            key += " [expanded]"
        if state.level:
            key += f" [level={state.level}]"
        if state.pressed == "mixed":
            key += " [pressed=mixed]"
        elif state.pressed:
            key += " [pressed]"
        if state.selected:
            key += " [selected]"

        return f"{key} [ref={node.ref}]"

    def _render_node(self, node: StitchedNode | str, indent: str, lines: list[str]) -> None:
        if isinstance(node, str):
            lines.append(f"{indent}- text: {yaml_escape_value(node)}")
            return

        key = yaml_escape_key(self.node_key(node))
        if not node.children:
            lines.append(f"{indent}- {key}")
        elif len(node.children) == 1 and isinstance(node.children[0], str):
            lines.append(f"{indent}- {key}: {yaml_escape_value(node.children[0])}")
        else:
            lines.append(f"{indent}- {key}:")
            for child in node.children:
                self._render_node(child, indent + _INDENT, lines)

    def to_dict(self, node: StitchedTree | StitchedNode | str) -> list[Any] | dict[str, Any] | str:
        """
        Convert a tree or node to JSON-ready data (recursive).

        Args:
            node: Tree, node or text run to convert

        Returns:
            List of root dictionaries for a tree, a dictionary for a node,
            or the text unchanged
        """
        if isinstance(node, StitchedTree):
            return [self.to_dict(root) for root in node.roots]

        if isinstance(node, str):
            return node

        result: dict[str, Any] = {"role": node.role}
        if node.name:
            result["name"] = node.name

        for prop in ["checked", "disabled", "expanded", "level", "pressed", "selected"]:
            val = getattr(node.node, prop, None)
            if val is not None:
                result[prop] = val

        result["ref"] = node.ref

        if node.children:
            result["children"] = [self.to_dict(child) for child in node.children]

        return result

    def to_json(self, tree: StitchedTree, indent: int = 2, **kwargs: Any) -> str:
        """
        Convert a tree to a JSON string.

        Args:
            tree: Tree to convert
            indent: Number of spaces for indentation
            **kwargs: Additional arguments for json.dumps
        """
        return json.dumps(self.to_dict(tree), indent=indent, **kwargs)
