"""Array-aware text surgery.

The general editor (:mod:`jsonctc.tools.edits`) only understands object
members. ``modify`` intercepts paths that address an array element and splices
the element directly, so comments between elements survive:

    ["a", /* keep */ "b", "c"]   -- set [0] = "z" -->   ["z", /* keep */ "b", "c"]

Rules (path split at the first array element into prefix / index / suffix):

- no array element on the path      -> general editor
- suffix not empty                  -> rewrite the whole array at prefix with
                                       the nested edit applied (comments inside
                                       that array are lost for this edit)
- index in range, replace           -> element span only; the following comma
                                       is untouched so trailing-comma state holds
- index in range, delete            -> element, at most one following comma,
                                       following blanks and one line terminator
                                       (plus the indentation before the element
                                       when it sat on its own line); a last
                                       element without trailing comma takes the
                                       separator before it instead
- index out of range, set           -> whole-array rewrite, gaps padded with null
- index out of range, delete        -> nothing to do
- array not locatable               -> no edits (logged)
"""

from __future__ import annotations

import copy
import logging
from typing import Any, List, Optional, Sequence, Tuple

from jsonctc.tools.edits import (
    EditError,
    TextSplice,
    detect_eol,
    dumps_value,
    edit_for_delete,
    edit_for_set,
    line_indent,
    remove_member,
)
from jsonctc.tools.jsonpos import SyntaxNode, node_value, parse_tree
from jsonctc.tools.pointer import Path, Segment, as_index, format_path

logger = logging.getLogger(__name__)


class _Delete:
    def __repr__(self) -> str:  # pragma: no cover
        return "DELETE"


DELETE: Any = _Delete()

_Split = Tuple[SyntaxNode, Path, int, Path]


def modify(text: str, path: Sequence[Segment], value: Any = DELETE) -> List[TextSplice]:
    """Splices that set (or, with ``DELETE``, remove) ``path`` in ``text``."""
    path = tuple(path)
    root = parse_tree(text)

    split, located = _split_at_array(root, path)
    if split is None:
        if not located:
            logger.warning("Skipping edit of %s: array not found in document", format_path(path))
            return []
        if value is DELETE:
            return edit_for_delete(text, path)
        return edit_for_set(text, path, value)

    array, prefix, index, suffix = split
    if suffix:
        logger.debug("Rewriting array %s for nested edit at %s", format_path(prefix), format_path(path))
        updated = _apply_nested(node_value(array), (index,) + suffix, value)
        return edit_for_set(text, prefix, updated)

    if index < len(array.children):
        element = array.children[index]
        if value is DELETE:
            return [_remove_element(text, array, index)]
        content = dumps_value(value, line_indent(text, element.offset), detect_eol(text))
        return [TextSplice(element.offset, element.length, content)]

    if value is DELETE:
        return []
    current = node_value(array)
    current.extend([None] * (index + 1 - len(current)))
    current[index] = value
    return edit_for_set(text, prefix, current)


def _split_at_array(root: SyntaxNode, path: Path) -> Tuple[Optional[_Split], bool]:
    """Locate the first array element on ``path``.

    Returns ``(split, located)``: ``split`` is None when the path never enters
    an array; ``located`` is False when an int segment (which always means an
    array element) cannot be matched to an array in the text.
    """
    node: Optional[SyntaxNode] = root
    for i, seg in enumerate(path):
        wants_array = isinstance(seg, int) and not isinstance(seg, bool)
        if node is None:
            return None, not any(isinstance(s, int) and not isinstance(s, bool) for s in path[i:])
        if node.kind == "array":
            idx = as_index(seg)
            if idx is None:
                return None, False
            return (node, path[:i], idx, path[i + 1 :]), True
        if wants_array:
            return None, False
        if node.kind != "object":
            # scalar in the way: the general editor reports it
            return None, True
        found: Optional[SyntaxNode] = None
        for prop in node.children:
            if prop.key == str(seg):
                found = prop.value_node
        node = found
    return None, True


def _remove_element(text: str, array: SyntaxNode, index: int) -> TextSplice:
    prev = array.children[index - 1] if index > 0 else None
    return remove_member(text, array.children[index], prev)


def _apply_nested(container: Any, rel: Path, value: Any) -> Any:
    """Apply a set/delete at ``rel`` inside a copy of ``container``."""
    out = copy.deepcopy(container)
    cur = out
    for seg in rel[:-1]:
        if isinstance(cur, list):
            idx = as_index(seg)
            if idx is None or idx >= len(cur):
                raise EditError(f"Cannot descend into {seg!r}: index out of range")
            cur = cur[idx]
        elif isinstance(cur, dict):
            key = str(seg)
            if not isinstance(cur.get(key), (dict, list)):
                cur[key] = {}
            cur = cur[key]
        else:
            raise EditError(f"Cannot descend into {seg!r}: not a container")

    last = rel[-1]
    if isinstance(cur, list):
        idx = as_index(last)
        if idx is None:
            raise EditError(f"Invalid array index {last!r}")
        if value is DELETE:
            if idx < len(cur):
                del cur[idx]
            return out
        cur.extend([None] * (idx + 1 - len(cur)))
        cur[idx] = copy.deepcopy(value)
    elif isinstance(cur, dict):
        if value is DELETE:
            cur.pop(str(last), None)
        else:
            cur[str(last)] = copy.deepcopy(value)
    else:
        raise EditError(f"Cannot edit {last!r}: not a container")
    return out
