"""Change-tracking view over a parsed JSONCTC value.

One ``TrackedNode`` wraps each object/array of a document. Reads fall through
to the parsed value (the *baseline*, never mutated); writes are recorded
locally instead:

- ``children``  key -> TrackedNode, one per nested object/array
- ``changes``   key -> new primitive value
- ``deletions`` keys removed from the baseline

A key lives in at most one of the three; the latest operation wins. Nested
edits live in the nested node, so the diff of a document is the union of the
nodes' local state, each entry addressed by its full path.

Array nodes use ``int`` keys (numeral strings are accepted) and keep baseline
indices stable: deleting ``[0]`` does not renumber ``[1]`` until the value is
materialized.

Not thread-safe: callers serialize their own access to one document.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from jsonctc.tools.pointer import Path, Segment, as_index, format_path

Key = Union[str, int]

_MISSING: Any = object()


@dataclass
class Diff:
    """Changes and deletions collected from a node tree, by full path."""

    changes: List[Tuple[Path, Any]] = field(default_factory=list)
    deletions: List[Path] = field(default_factory=list)

    def extend(self, other: "Diff") -> None:
        self.changes.extend(other.changes)
        self.deletions.extend(other.deletions)

    def __bool__(self) -> bool:
        return bool(self.changes or self.deletions)


def same_value(a: Any, b: Any) -> bool:
    """JSON equality that does not confuse ``True`` with ``1``."""
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(same_value(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(same_value(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b


class TrackedNode:
    def __init__(self, value: Union[Dict[str, Any], List[Any]], path: Tuple[Segment, ...] = (), *, replaced: bool = False) -> None:
        if not isinstance(value, (dict, list)):
            raise TypeError(f"TrackedNode wraps objects and arrays, not {type(value).__name__}")
        self.path: Path = tuple(path)
        self.baseline = value
        # A replaced node stands for a whole new value: it reports itself as
        # one change instead of per-key edits.
        self.replaced = replaced
        self.children: Dict[Key, TrackedNode] = {}
        self.changes: Dict[Key, Any] = {}
        self.deletions: Dict[Key, None] = {}
        self._wrap_children()

    def _wrap_children(self) -> None:
        items = enumerate(self.baseline) if isinstance(self.baseline, list) else self.baseline.items()
        for key, value in items:
            if isinstance(value, (dict, list)):
                self.children[key] = TrackedNode(value, self.path + (key,), replaced=self.replaced)

    @property
    def is_array(self) -> bool:
        return isinstance(self.baseline, list)

    # ---- key handling ----

    def _key(self, key: Any) -> Optional[Key]:
        """Normalize ``key`` for this node; None when it cannot address it."""
        if self.is_array:
            return as_index(key)
        if isinstance(key, bool) or not isinstance(key, (str, int)):
            return None
        return str(key)

    def _key_or_raise(self, key: Any) -> Key:
        k = self._key(key)
        if k is None:
            kind = "array index" if self.is_array else "object key"
            raise TypeError(f"Invalid {kind} {key!r} at {format_path(self.path)}")
        return k

    def _in_baseline(self, k: Key) -> bool:
        if isinstance(self.baseline, list):
            return isinstance(k, int) and k < len(self.baseline)
        return k in self.baseline

    # ---- accessor interface ----

    def get(self, key: Any, default: Any = None) -> Any:
        k = self._key(key)
        if k is None:
            return default
        if k in self.children:
            return self.children[k]
        if k in self.changes:
            return self.changes[k]
        if k in self.deletions:
            return default
        if self._in_baseline(k):
            return self.baseline[k]  # type: ignore[index]
        return default

    def set(self, key: Any, value: Any) -> None:
        k = self._key_or_raise(key)
        if isinstance(value, TrackedNode):
            value = value.materialize()
        existing = self.children.get(k)
        self.deletions.pop(k, None)

        if isinstance(value, list) and existing is not None and existing.is_array:
            # element-wise, so comments on untouched elements survive
            existing.reconcile(value)
            return

        if isinstance(value, (dict, list)):
            if existing is not None and not existing.is_dirty() and same_value(existing.baseline, value):
                return
            self.changes.pop(k, None)
            self.children[k] = TrackedNode(copy.deepcopy(value), self.path + (k,), replaced=True)
            return

        self.children.pop(k, None)
        if self._in_baseline(k) and same_value(self.baseline[k], value):  # type: ignore[index]
            self.changes.pop(k, None)
        else:
            self.changes[k] = value

    def delete(self, key: Any) -> None:
        k = self._key(key)
        if k is None:
            return
        self.children.pop(k, None)
        self.changes.pop(k, None)
        if self._in_baseline(k):
            self.deletions[k] = None

    def has(self, key: Any) -> bool:
        k = self._key(key)
        if k is None or k in self.deletions:
            return False
        return k in self.children or k in self.changes or self._in_baseline(k)

    def keys(self) -> List[Key]:
        if isinstance(self.baseline, list):
            indices = set(range(len(self.baseline))) | set(self.children) | set(self.changes)
            return sorted(i for i in indices if i not in self.deletions)  # type: ignore[type-var]
        out: List[Key] = [k for k in self.baseline if k not in self.deletions]
        seen = set(out)
        for k in list(self.children) + list(self.changes):
            if k not in seen and k not in self.deletions:
                out.append(k)
                seen.add(k)
        return out

    def values(self) -> List[Any]:
        return [self.get(k) for k in self.keys()]

    def items(self) -> List[Tuple[Key, Any]]:
        return [(k, self.get(k)) for k in self.keys()]

    def reconcile(self, new: List[Any]) -> None:
        """Make this array equal to ``new`` one element at a time."""
        if not self.is_array:
            raise TypeError(f"reconcile() needs an array node, {format_path(self.path)} is an object")
        tracked = [k for k in self.keys() if isinstance(k, int)]
        length = max([len(new), len(self.baseline)] + [k + 1 for k in tracked])
        for i in range(len(new)):
            self.set(i, new[i])
        for i in reversed(range(len(new), length)):
            self.delete(i)

    # ---- Python protocol ----

    def __getitem__(self, key: Any) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __setitem__(self, key: Any, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: Any) -> None:
        if not self.has(key):
            raise KeyError(key)
        self.delete(key)

    def __contains__(self, key: Any) -> bool:
        return self.has(key)

    def __iter__(self) -> Iterator[Key]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def __repr__(self) -> str:
        return f"TrackedNode({format_path(self.path)}, {self.materialize()!r})"

    # ---- state ----

    def is_dirty(self) -> bool:
        if self.replaced or self.changes or self.deletions:
            return True
        return any(child.is_dirty() for child in self.children.values())

    def materialize(self) -> Any:
        """Plain value: baseline + children + changes - deletions."""
        if isinstance(self.baseline, list):
            size = max([len(self.baseline)] + [k + 1 for k in self.children] + [k + 1 for k in self.changes])  # type: ignore[operator]
            result: List[Any] = []
            for i in range(size):
                if i in self.deletions:
                    continue
                if i in self.children:
                    result.append(self.children[i].materialize())
                elif i in self.changes:
                    result.append(copy.deepcopy(self.changes[i]))
                elif i < len(self.baseline):
                    result.append(copy.deepcopy(self.baseline[i]))
                else:
                    result.append(None)
            return result

        obj: Dict[str, Any] = {}
        for k in self.keys():
            if k in self.children:
                obj[k] = self.children[k].materialize()  # type: ignore[index]
            elif k in self.changes:
                obj[k] = copy.deepcopy(self.changes[k])  # type: ignore[index]
            else:
                obj[k] = copy.deepcopy(self.baseline[k])  # type: ignore[index]
        return obj

    def to_string(self) -> str:
        # nodes know nothing of the source text; only a document can splice it
        raise ValueError(f"Cannot serialize {format_path(self.path)} on its own, serialize the JSONCTCDocument")

    def _shift(self, k: Key) -> Key:
        """Index of ``k`` once this array's deletions have been applied."""
        if not isinstance(k, int) or not self.deletions:
            return k
        return k - sum(1 for d in self.deletions if isinstance(d, int) and d < k)

    def collect(self, path: Optional[Path] = None) -> Diff:
        """Diff of this subtree, paths rooted at the document.

        Deletions are meant to be applied before changes; array indices in the
        paths below an array already account for its deletions, and an
        array's own deletions come out highest index first.
        """
        path = self.path if path is None else path
        diff = Diff()
        if self.replaced:
            diff.changes.append((path, self.materialize()))
            return diff

        for k, v in self.changes.items():
            diff.changes.append((path + (self._shift(k),), v))
        deleted = sorted(self.deletions, reverse=True) if self.is_array else list(self.deletions)  # type: ignore[type-var]
        for k in deleted:
            diff.deletions.append(path + (k,))
        for k, child in self.children.items():
            diff.extend(child.collect(path + (self._shift(k),)))
        return diff
