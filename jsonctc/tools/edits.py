"""Text splices + the general (path-based) JSONCTC editor.

An edit never rewrites the document: it is expressed as ``TextSplice``
objects (offset, length, replacement) against the current text, computed from
the concrete syntax tree. Everything outside the spliced ranges, comments and
trailing commas included, is left byte-for-byte intact.

This module knows how to edit object members:

- set an existing property   -> replace the value's span
- add a missing property     -> insert after the last member, on its own line
- add under missing parents  -> insert a nested object at the deepest parent
                                that exists
- delete a property          -> remove it with its separating comma
- set the root               -> replace the whole value

Array elements are handled by :mod:`jsonctc.tools.surgery`, which wraps this
module and falls back to it for everything else.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence

from jsonctc.tools.jsonpos import SyntaxNode, find_node_at_location, find_property, parse_tree
from jsonctc.tools.pointer import Segment, as_index, format_path

INDENT = "  "


@dataclass(frozen=True)
class TextSplice:
    offset: int
    length: int
    content: str

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass
class EditError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


def apply_edits(text: str, edits: Iterable[TextSplice]) -> str:
    """Apply non-overlapping splices to ``text``.

    Splices are applied from the highest offset down so earlier offsets stay
    valid.
    """
    out = text
    limit = len(text)
    for e in sorted(edits, key=lambda e: e.offset, reverse=True):
        if e.offset < 0 or e.end > limit:
            raise EditError(f"Overlapping or out-of-range edit at offset {e.offset}")
        out = out[: e.offset] + e.content + out[e.end :]
        limit = e.offset
    return out


# ---- Formatting helpers ----


def detect_eol(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def line_start(text: str, offset: int) -> int:
    return text.rfind("\n", 0, offset) + 1


def line_indent(text: str, offset: int) -> str:
    """Leading whitespace of the line containing ``offset``."""
    start = line_start(text, offset)
    end = start
    while end < len(text) and text[end] in " \t":
        end += 1
    return text[start:end]


def starts_line(text: str, offset: int) -> bool:
    return text[line_start(text, offset) : offset].strip(" \t") == ""


def dumps_value(value: Any, indent: str = "", eol: str = "\n") -> str:
    """Serialize ``value`` as JSON, 2-space indented, continuation lines
    prefixed with ``indent`` so it sits naturally at its position."""
    raw = json.dumps(value, indent=2, ensure_ascii=False)
    if "\n" not in raw:
        return raw
    return raw.replace("\n", eol + indent)


def _member(key: str, value: Any, indent: str, eol: str) -> str:
    return f"{json.dumps(key, ensure_ascii=False)}: {dumps_value(value, indent, eol)}"


def skip_horizontal(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in " \t":
        pos += 1
    return pos


def skip_trivia(text: str, pos: int) -> int:
    """Index of the next significant character at or after ``pos``."""
    while pos < len(text):
        if text[pos] in " \t\r\n":
            pos += 1
        elif text.startswith("//", pos):
            nl = text.find("\n", pos)
            pos = len(text) if nl == -1 else nl + 1
        elif text.startswith("/*", pos):
            close = text.find("*/", pos + 2)
            pos = len(text) if close == -1 else close + 2
        else:
            break
    return pos


def comma_after(text: str, pos: int) -> Optional[int]:
    """Index of the separator following ``pos``, past blanks, line breaks and
    comments; None when the next significant character is not a comma."""
    pos = skip_trivia(text, pos)
    if pos < len(text) and text[pos] == ",":
        return pos
    return None


def remove_member(text: str, node: SyntaxNode, prev: Optional[SyntaxNode]) -> TextSplice:
    """Splice removing one array element or object property.

    The comma after ``node`` goes with it (with any comments before that
    comma), then trailing blanks and one line terminator, and the indentation
    when ``node`` starts its line. Without a following comma the separator
    before it, after ``prev``, is taken instead.
    """
    start = node.offset
    comma = comma_after(text, node.end)
    if comma is None:
        if prev is not None:
            return TextSplice(prev.end, node.end - prev.end, "")
        end = node.end
    else:
        end = comma + 1
    end = skip_horizontal(text, end)
    took_line = False
    if text.startswith("\r\n", end):
        end += 2
        took_line = True
    elif end < len(text) and text[end] in "\r\n":
        end += 1
        took_line = True
    if took_line and starts_line(text, start):
        start = line_start(text, start)
    return TextSplice(start, end - start, "")


# ---- Editor ----


def edit_for_set(text: str, path: Sequence[Segment], value: Any) -> List[TextSplice]:
    """Splices that set ``path`` to ``value``."""
    root = parse_tree(text)
    eol = detect_eol(text)
    path = tuple(path)
    if not path:
        return [TextSplice(root.offset, root.length, dumps_value(value, line_indent(text, root.offset), eol))]

    parent_path, last = path[:-1], path[-1]
    parent = find_node_at_location(root, parent_path)
    # Missing ancestors become one nested value set at the deepest existing one.
    while parent is None:
        value = {str(last): value}
        parent_path, last = parent_path[:-1], parent_path[-1]
        parent = find_node_at_location(root, parent_path)

    if parent.kind == "object":
        prop = find_property(parent, str(last))
        if prop is not None and prop.value_node is not None:
            node = prop.value_node
            return [TextSplice(node.offset, node.length, dumps_value(value, line_indent(text, node.offset), eol))]
        return _insert_property(text, parent, str(last), value, eol)

    if parent.kind == "array":
        idx = as_index(last)
        if idx is not None and idx < len(parent.children):
            node = parent.children[idx]
            return [TextSplice(node.offset, node.length, dumps_value(value, line_indent(text, node.offset), eol))]

    raise EditError(f"Cannot set {format_path(path)}: parent is not an object (found {parent.kind})")


def edit_for_delete(text: str, path: Sequence[Segment]) -> List[TextSplice]:
    """Splices that remove the property at ``path`` (none when it is absent)."""
    path = tuple(path)
    if not path:
        raise EditError("Cannot delete the document root")
    root = parse_tree(text)
    parent = find_node_at_location(root, path[:-1])
    if parent is None:
        return []
    if parent.kind != "object":
        raise EditError(f"Cannot delete {format_path(path)}: parent is not an object (found {parent.kind})")
    prop = find_property(parent, str(path[-1]))
    if prop is None:
        return []
    return [_remove_property(text, parent, prop)]


def _insert_property(text: str, obj: SyntaxNode, key: str, value: Any, eol: str) -> List[TextSplice]:
    if obj.children:
        prev = obj.children[-1]
        if "\n" not in text[obj.offset : prev.offset]:
            # single-line object stays single-line
            return [TextSplice(prev.end, 0, ", " + _member(key, value, "", eol))]
        indent = line_indent(text, prev.offset)
        return [TextSplice(prev.end, 0, "," + eol + indent + _member(key, value, indent, eol))]

    base = line_indent(text, obj.offset)
    inner = base + INDENT
    interior = text[obj.offset + 1 : obj.end - 1]
    if interior.strip() == "":
        return [TextSplice(obj.offset + 1, len(interior), eol + inner + _member(key, value, inner, eol) + eol + base)]
    # keep comments living inside an otherwise empty object
    return [TextSplice(obj.offset + 1, 0, eol + inner + _member(key, value, inner, eol))]


def _remove_property(text: str, obj: SyntaxNode, prop: SyntaxNode) -> TextSplice:
    idx = obj.children.index(prop)
    return remove_member(text, prop, obj.children[idx - 1] if idx > 0 else None)
