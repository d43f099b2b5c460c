"""Position-aware JSONCTC parser.

JSONCTC is JSON plus ``//`` line comments, ``/* */`` block comments and
trailing commas before ``]`` / ``}``. Editing such text surgically requires
knowing exactly where every value lives, and Python's built-in ``json``
module neither accepts the extensions nor exposes positions, so we implement
a small parser that:

1) Parses the text into Python objects (dict/list/scalars)
2) Builds a concrete syntax tree recording (offset, length) for every node
3) Lets callers look nodes up by document path

Node kinds: ``object``, ``array``, ``property``, ``string``, ``number``,
``boolean``, ``null``. A ``property`` node has exactly two children, the key
(a ``string`` node) and the value, and spans from the key's opening quote to
the value's last character.

Limitations / notes:
- Offsets are Python string indices (codepoints), not UTF-8 bytes. Every
  consumer in this package slices ``str`` objects, so that is what we want.
- Comments are trivia: they never appear in the tree. Callers that need them
  (the formatter) use :func:`iter_tokens`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from jsonctc.tools.pointer import Segment, as_index


@dataclass
class JsonPosError(ValueError):
    """Parse error with a stable character offset."""

    message: str
    index: int
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.line:
            return f"{self.message} at line {self.line} column {self.column}"
        return f"{self.message} at index {self.index}"


@dataclass(eq=False)
class SyntaxNode:
    kind: str
    offset: int
    length: int = 0
    value: Any = None
    parent: Optional["SyntaxNode"] = field(default=None, repr=False)
    children: List["SyntaxNode"] = field(default_factory=list, repr=False)

    @property
    def end(self) -> int:
        return self.offset + self.length

    @property
    def key(self) -> Optional[str]:
        """Key of a ``property`` node (None for every other kind)."""
        if self.kind != "property" or not self.children:
            return None
        return self.children[0].value

    @property
    def value_node(self) -> Optional["SyntaxNode"]:
        if self.kind != "property" or len(self.children) < 2:
            return None
        return self.children[1]


class _Parser:
    def __init__(self, text: str, *, allow_comments: bool = True, allow_trailing_comma: bool = True) -> None:
        self.text = text
        self.n = len(text)
        self.i = 0
        self.allow_comments = allow_comments
        self.allow_trailing_comma = allow_trailing_comma

    def _peek(self) -> str:
        return self.text[self.i] if self.i < self.n else ""

    def _consume(self, ch: str) -> None:
        if self._peek() != ch:
            raise JsonPosError(f"Expected {ch!r}", self.i)
        self.i += 1

    def _skip_ws(self) -> None:
        while self.i < self.n:
            ch = self.text[self.i]
            if ch in " \t\r\n\ufeff":
                self.i += 1
                continue
            if ch == "/" and self.i + 1 < self.n and self.text[self.i + 1] in "/*":
                if not self.allow_comments:
                    raise JsonPosError("Comments are not allowed", self.i)
                self._skip_comment()
                continue
            break

    def _skip_comment(self) -> None:
        start = self.i
        if self.text[self.i + 1] == "/":
            nl = self.text.find("\n", self.i)
            self.i = self.n if nl == -1 else nl
            return
        close = self.text.find("*/", self.i + 2)
        if close == -1:
            raise JsonPosError("Unterminated block comment", start)
        self.i = close + 2

    def parse(self) -> Tuple[Any, SyntaxNode]:
        self._skip_ws()
        if self.i >= self.n:
            raise JsonPosError("Expected a value", self.i)
        val, node = self._parse_value(None)
        self._skip_ws()
        if self.i != self.n:
            raise JsonPosError("Trailing characters", self.i)
        return val, node

    def _leaf(self, kind: str, start: int, value: Any, parent: Optional[SyntaxNode]) -> SyntaxNode:
        return SyntaxNode(kind, start, self.i - start, value, parent)

    def _parse_value(self, parent: Optional[SyntaxNode]) -> Tuple[Any, SyntaxNode]:
        self._skip_ws()
        start = self.i
        ch = self._peek()
        if ch == "{":
            return self._parse_object(parent, start)
        if ch == "[":
            return self._parse_array(parent, start)
        if ch == '"':
            s = self._parse_string()
            return s, self._leaf("string", start, s, parent)
        if ch != "" and ch in "-0123456789":
            num = self._parse_number()
            return num, self._leaf("number", start, num, parent)
        # literals
        for word, val, kind in (("true", True, "boolean"), ("false", False, "boolean"), ("null", None, "null")):
            if self.text.startswith(word, self.i):
                self.i += len(word)
                return val, self._leaf(kind, start, val, parent)
        if ch == "":
            raise JsonPosError("Unexpected end of input", self.i)
        raise JsonPosError("Invalid value", self.i)

    def _parse_object(self, parent: Optional[SyntaxNode], start: int) -> Tuple[Dict[str, Any], SyntaxNode]:
        self._consume("{")
        node = SyntaxNode("object", start, parent=parent)
        obj: Dict[str, Any] = {}
        self._skip_ws()
        if self._peek() == "}":
            self.i += 1
            node.length = self.i - start
            return obj, node

        while True:
            self._skip_ws()
            if self._peek() != '"':
                raise JsonPosError("Expected string key", self.i)
            key_start = self.i
            key = self._parse_string()
            prop = SyntaxNode("property", key_start, parent=node)
            prop.children.append(self._leaf("string", key_start, key, prop))
            self._skip_ws()
            self._consume(":")
            val, child = self._parse_value(prop)
            prop.children.append(child)
            prop.length = child.end - key_start
            node.children.append(prop)
            obj[key] = val

            self._skip_ws()
            if self._peek() == "}":
                self.i += 1
                break
            self._consume(",")
            self._skip_ws()
            if self._peek() == "}":
                if not self.allow_trailing_comma:
                    raise JsonPosError("Trailing comma", self.i - 1)
                self.i += 1
                break

        node.length = self.i - start
        return obj, node

    def _parse_array(self, parent: Optional[SyntaxNode], start: int) -> Tuple[List[Any], SyntaxNode]:
        self._consume("[")
        node = SyntaxNode("array", start, parent=parent)
        arr: List[Any] = []
        self._skip_ws()
        if self._peek() == "]":
            self.i += 1
            node.length = self.i - start
            return arr, node

        while True:
            val, child = self._parse_value(node)
            arr.append(val)
            node.children.append(child)
            self._skip_ws()
            if self._peek() == "]":
                self.i += 1
                break
            self._consume(",")
            self._skip_ws()
            if self._peek() == "]":
                if not self.allow_trailing_comma:
                    raise JsonPosError("Trailing comma", self.i - 1)
                self.i += 1
                break

        node.length = self.i - start
        return arr, node

    def _parse_string(self) -> str:
        self._consume('"')
        out_chars: List[str] = []
        while True:
            if self.i >= self.n:
                raise JsonPosError("Unterminated string", self.i)
            ch = self.text[self.i]
            self.i += 1
            if ch == '"':
                break
            if ch == "\\":
                if self.i >= self.n:
                    raise JsonPosError("Unterminated escape", self.i)
                esc = self.text[self.i]
                self.i += 1
                if esc in '"\\/':
                    out_chars.append(esc)
                elif esc in _SIMPLE_ESCAPES:
                    out_chars.append(_SIMPLE_ESCAPES[esc])
                elif esc == "u":
                    out_chars.append(self._parse_unicode_escape())
                else:
                    raise JsonPosError("Invalid escape", self.i - 1)
            else:
                out_chars.append(ch)
        return "".join(out_chars)

    def _read_hex4(self) -> int:
        hexs = self.text[self.i : self.i + 4]
        if len(hexs) != 4 or any(c not in "0123456789abcdefABCDEF" for c in hexs):
            raise JsonPosError("Invalid unicode escape", self.i)
        self.i += 4
        return int(hexs, 16)

    def _parse_unicode_escape(self) -> str:
        code = self._read_hex4()
        # combine UTF-16 surrogate pairs
        if 0xD800 <= code <= 0xDBFF and self.text.startswith("\\u", self.i):
            save = self.i
            self.i += 2
            low = self._read_hex4()
            if 0xDC00 <= low <= 0xDFFF:
                return chr(0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00))
            self.i = save
        return chr(code)

    def _parse_number(self) -> Any:
        start = self.i
        if self._peek() == "-":
            self.i += 1
        if self.i >= self.n:
            raise JsonPosError("Invalid number", self.i)
        if self._peek() == "0":
            self.i += 1
        else:
            if not _is_digit(self._peek()):
                raise JsonPosError("Invalid number", self.i)
            while self.i < self.n and _is_digit(self._peek()):
                self.i += 1
        # fractional
        if self._peek() == ".":
            self.i += 1
            if not _is_digit(self._peek()):
                raise JsonPosError("Invalid number", self.i)
            while self.i < self.n and _is_digit(self._peek()):
                self.i += 1
        # exponent
        if self._peek() != "" and self._peek() in "eE":
            self.i += 1
            if self._peek() != "" and self._peek() in "+-":
                self.i += 1
            if not _is_digit(self._peek()):
                raise JsonPosError("Invalid number", self.i)
            while self.i < self.n and _is_digit(self._peek()):
                self.i += 1
        raw = self.text[start : self.i]
        if any(c in raw for c in ".eE"):
            return float(raw)
        return int(raw)


_SIMPLE_ESCAPES = {"b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t"}


def _is_digit(ch: str) -> bool:
    return ch != "" and ch in "0123456789"


def parse_with_tree(
    text: str, *, allow_comments: bool = True, allow_trailing_comma: bool = True
) -> Tuple[Any, SyntaxNode]:
    """Parse JSONCTC and return ``(value, tree)``.

    Raises :class:`JsonPosError` (with line/column filled in) on malformed input.
    """
    p = _Parser(text, allow_comments=allow_comments, allow_trailing_comma=allow_trailing_comma)
    try:
        return p.parse()
    except JsonPosError as e:
        e.line, e.column = TextIndex(text).position(e.index)
        raise


def parse(text: str, **kwargs: bool) -> Any:
    value, _tree = parse_with_tree(text, **kwargs)
    return value


def parse_tree(text: str, **kwargs: bool) -> SyntaxNode:
    _value, tree = parse_with_tree(text, **kwargs)
    return tree


def find_node_at_location(root: Optional[SyntaxNode], path: Sequence[Segment]) -> Optional[SyntaxNode]:
    """Return the value node addressed by ``path`` (None when missing)."""
    node = root
    for seg in path:
        if node is None:
            return None
        if node.kind == "object":
            key = str(seg)
            found: Optional[SyntaxNode] = None
            # duplicate keys: the last one is the effective value
            for prop in node.children:
                if prop.key == key:
                    found = prop.value_node
            node = found
        elif node.kind == "array":
            idx = as_index(seg)
            if idx is None or idx >= len(node.children):
                return None
            node = node.children[idx]
        else:
            return None
    return node


def find_property(obj: SyntaxNode, key: str) -> Optional[SyntaxNode]:
    found: Optional[SyntaxNode] = None
    for prop in obj.children:
        if prop.key == key:
            found = prop
    return found


def node_value(node: SyntaxNode) -> Any:
    if node.kind == "object":
        return {prop.key: node_value(prop.children[1]) for prop in node.children}
    if node.kind == "array":
        return [node_value(c) for c in node.children]
    return node.value


# ---- Token stream (comments included) ----

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>[ \t\r\n\ufeff]+)
    |(?P<line_comment>//[^\n]*)
    |(?P<block_comment>/\*.*?\*/)
    |(?P<string>"(?:[^"\\]|\\.)*")
    |(?P<number>-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?)
    |(?P<literal>true|false|null)
    |(?P<punct>[{}\[\],:])
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass(frozen=True)
class Token:
    kind: str
    offset: int
    text: str


def iter_tokens(text: str) -> Iterator[Token]:
    """Lex ``text`` into tokens, keeping whitespace and comments."""
    i = 0
    n = len(text)
    while i < n:
        m = _TOKEN_RE.match(text, i)
        if m is None:
            raise JsonPosError("Unexpected character", i, *TextIndex(text).position(i))
        kind = m.lastgroup or ""
        yield Token(kind, i, m.group())
        i = m.end()


class TextIndex:
    """Convert absolute string offsets to 1-based (line, column)."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.starts: List[int] = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self.starts.append(i + 1)

    def _find_line(self, index: int) -> int:
        # Binary search over starts
        lo, hi = 0, len(self.starts)
        while lo + 1 < hi:
            mid = (lo + hi) // 2
            if self.starts[mid] <= index:
                lo = mid
            else:
                hi = mid
        return lo

    def position(self, index: int) -> Tuple[int, int]:
        index = max(0, min(index, len(self.text)))
        line = self._find_line(index)
        return line + 1, index - self.starts[line] + 1
