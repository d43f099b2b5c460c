"""JSONCTC documents: edit values, keep the comments.

Typical usage:

    from jsonctc import JSONCTCDocument

    doc = JSONCTCDocument(text)
    doc["name"] = "Bob"                     # plain item access
    doc.update("server.port", 8080)         # dotted path, parents created
    port = doc.extract("server.port", 80)   # default when missing / mistyped
    new_text = doc.to_string()              # only the edited values change

Serialization re-parses the running text once per collected edit, so batch
edits before calling ``to_string()`` when it has to be fast.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Iterator, Optional

from jsonctc.tools import jsonpos, surgery
from jsonctc.tools.edits import EditError, apply_edits, detect_eol
from jsonctc.tools.pointer import Path, PathLike, format_path, split_path
from jsonctc.tracked import Diff, Key, TrackedNode, same_value

logger = logging.getLogger(__name__)

_MISSING: Any = object()


class PathError(ValueError):
    pass


def json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, TrackedNode)) and getattr(value, "is_array", True):
        return "array"
    if isinstance(value, (dict, TrackedNode)):
        return "object"
    return type(value).__name__


def deep_merge(defaults: Dict[str, Any], found: Dict[str, Any]) -> Dict[str, Any]:
    """``found`` over ``defaults``, recursively for nested objects."""
    out = copy.deepcopy(defaults)
    for k, v in found.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def dumps_document(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False) + "\n"


class JSONCTCDocument:
    """A parsed JSONCTC document that tracks edits.

    ``source`` is either JSONCTC text (parsed now; :class:`JsonPosError`
    propagates) or an already-parsed value, optionally with the text it came
    from.
    """

    def __init__(self, source: Any, original_text: Optional[str] = None) -> None:
        if isinstance(source, str):
            self.original_text: Optional[str] = source
            value = jsonpos.parse(source)
        else:
            self.original_text = original_text
            value = source.materialize() if isinstance(source, TrackedNode) else copy.deepcopy(source)
        self._value = value
        self._value_replaced = False
        self.root: Optional[TrackedNode] = TrackedNode(value) if isinstance(value, (dict, list)) else None

    # ---- access ----

    @property
    def data(self) -> Any:
        """Root node for objects/arrays, the plain value otherwise."""
        return self.root if self.root is not None else self._value

    def _node(self) -> TrackedNode:
        if self.root is None:
            raise TypeError(f"Document root is a {json_type(self._value)}, not an object or array")
        return self.root

    def __getitem__(self, key: Key) -> Any:
        return self._node()[key]

    def __setitem__(self, key: Key, value: Any) -> None:
        self._node()[key] = value

    def __delitem__(self, key: Key) -> None:
        del self._node()[key]

    def __contains__(self, key: Any) -> bool:
        return self.root is not None and key in self.root

    def __iter__(self) -> Iterator[Key]:
        return iter(self._node())

    def __len__(self) -> int:
        return len(self._node())

    def get(self, key: Key, default: Any = None) -> Any:
        return self._node().get(key, default)

    def keys(self) -> list:
        return self._node().keys()

    def replace(self, value: Any) -> None:
        """Replace the whole document value."""
        if isinstance(value, TrackedNode):
            value = value.materialize()
        if self.root is not None and self.root.is_array and isinstance(value, list):
            self.root.reconcile(value)
            return
        self._value = copy.deepcopy(value)
        self._value_replaced = True
        self.root = TrackedNode(self._value, replaced=True) if isinstance(value, (dict, list)) else None

    def is_dirty(self) -> bool:
        if self._value_replaced:
            return True
        return self.root is not None and self.root.is_dirty()

    def materialize(self) -> Any:
        if self.root is not None:
            return self.root.materialize()
        return copy.deepcopy(self._value)

    def diff(self) -> Diff:
        if self.root is not None:
            return self.root.collect(())
        out = Diff()
        if self._value_replaced:
            out.changes.append(((), self._value))
        return out

    # ---- typed path accessors ----

    def _walk(self, segments: Path) -> Any:
        cur = self.data
        for seg in segments:
            if not isinstance(cur, TrackedNode):
                return _MISSING
            cur = cur.get(seg, _MISSING)
            if cur is _MISSING:
                return _MISSING
        return cur

    def extract(self, path: PathLike, default: Any) -> Any:
        """Value at ``path``, or ``default`` when missing or of another type.

        Objects are deep-merged over ``default`` so missing keys keep their
        default values; arrays and scalars come back as stored.
        """
        found = self._walk(split_path(path))
        if found is _MISSING:
            return copy.deepcopy(default)
        if isinstance(found, TrackedNode):
            found = found.materialize()
        if json_type(found) != json_type(default):
            return copy.deepcopy(default)
        if isinstance(found, dict) and isinstance(default, dict):
            return deep_merge(default, found)
        return found

    def update(self, path: PathLike, value: Any) -> None:
        """Set ``path`` to ``value``, creating missing parent objects."""
        segments = split_path(path)
        if not segments:
            raise PathError("Cannot update root")
        if self.root is None:
            raise PathError(f"Cannot update {format_path(segments)}: parent is not an object")

        cur = self.root
        for i, seg in enumerate(segments[:-1]):
            here = format_path(segments[: i + 1])
            nxt = cur.get(seg)
            if nxt is None:
                try:
                    cur.set(seg, {})
                except TypeError as e:
                    raise PathError(f"Cannot update {format_path(segments)}: {e}") from e
                nxt = cur.get(seg)
            if not isinstance(nxt, TrackedNode):
                raise PathError(f"Cannot update {format_path(segments)}: parent is not an object ({here})")
            cur = nxt
        try:
            cur.set(segments[-1], value)
        except TypeError as e:
            raise PathError(f"Cannot update {format_path(segments)}: {e}") from e

    # ---- serialization ----

    def to_string(self) -> str:
        """Document text with every tracked edit applied.

        With original text, only the edited values are rewritten. The result is
        parsed back and compared with the current value; should any surgical
        step fail or the check disagree, the document is re-serialized from its
        current value instead (comments are lost, values are not).
        """
        if self.original_text is None:
            return dumps_document(self.materialize())
        try:
            text = self._apply(self.original_text, self.diff())
            if not same_value(jsonpos.parse(text), self.materialize()):
                raise EditError("Spliced text does not match the document value")
        except Exception:
            logger.warning("Surgical edit failed, re-serializing the whole document", exc_info=True)
            return dumps_document(self.materialize())
        return text.rstrip("\r\n") + detect_eol(text)

    def _apply(self, text: str, diff: Diff) -> str:
        for path in diff.deletions:
            logger.debug("delete %s", format_path(path))
            text = apply_edits(text, surgery.modify(text, path))
        for path, value in diff.changes:
            logger.debug("set %s", format_path(path))
            text = apply_edits(text, surgery.modify(text, path, value))
        return text

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"JSONCTCDocument({self.materialize()!r})"
