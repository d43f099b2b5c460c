"""Document paths + JSON Pointer helpers.

A path addresses one location in a JSONCTC document. It is a tuple of
segments, each either an object key (``str``) or an array index (``int``).

Callers may hand us paths in three shapes:
- a dotted string (``"servers.0.host"``), empty segments dropped
- a list/tuple of segments
- a JSON Pointer (RFC 6901), used by the CLI and in messages

Notes:
- A numeral string (``"0"``) is an array index only when the container it is
  applied to is an array. Against an object it is an ordinary key.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

Segment = Union[str, int]
Path = Tuple[Segment, ...]
PathLike = Union[str, Sequence[Segment]]

ROOT: Path = ()


def is_index(seg: Any) -> bool:
    """True for ints and numeral strings (non-negative, decimal)."""
    if isinstance(seg, bool):
        return False
    if isinstance(seg, int):
        return seg >= 0
    return isinstance(seg, str) and seg.isdigit() and seg.isascii()


def as_index(seg: Any) -> Optional[int]:
    if not is_index(seg):
        return None
    return int(seg)


def split_path(path: PathLike) -> Path:
    if isinstance(path, str):
        return tuple(p for p in path.split(".") if p != "")
    return tuple(path)


def is_prefix(prefix: Sequence[Segment], path: Sequence[Segment]) -> bool:
    """True when ``path`` lies at or below ``prefix``; ``"0"`` and ``0`` match."""
    if len(prefix) > len(path):
        return False
    return all(_same_segment(a, b) for a, b in zip(prefix, path))


def _same_segment(a: Segment, b: Segment) -> bool:
    if is_index(a) and is_index(b):
        return int(a) == int(b)
    return a == b


def escape_segment(seg: str) -> str:
    return seg.replace("~", "~0").replace("/", "~1")


def unescape_segment(seg: str) -> str:
    return seg.replace("~1", "/").replace("~0", "~")


def split_pointer(pointer: str) -> Path:
    if pointer in ("", "/"):
        return ROOT
    if not pointer.startswith("/"):
        raise ValueError(f"Invalid JSON pointer (must start with '/'): {pointer}")
    return tuple(unescape_segment(p) for p in pointer[1:].split("/"))


def join_pointer(segments: Iterable[Segment]) -> str:
    out: List[str] = [escape_segment(str(s)) for s in segments]
    if not out:
        return ""
    return "/" + "/".join(out)


def format_path(path: Sequence[Segment]) -> str:
    """Render a path for humans, e.g. ``servers[0].host``."""
    if not path:
        return "<root>"
    out = ""
    for seg in path:
        if isinstance(seg, int) and not isinstance(seg, bool):
            out += f"[{seg}]"
        else:
            out += f".{seg}" if out else str(seg)
    return out


def parse_path_arg(raw: str) -> Path:
    """CLI path syntax: JSON Pointer when it starts with '/', dotted otherwise.

    Numeral segments are left as strings; navigation decides whether they
    index an array.
    """
    if raw.startswith("/"):
        return split_pointer(raw)
    return split_path(raw)
