"""Parse JSONCTC and print plain JSON (or the syntax tree).

CLI:
  jsonctc parse FILE|- [--strict] [--tree]

``--strict`` rejects comments and trailing commas (i.e. plain JSON).
``--tree`` prints one line per syntax node: ``offset length kind path``.

Exit codes:
  0 OK
  3 IO/parse error
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Iterator, List, Tuple

from jsonctc.tools.fileio import DocumentReadError, read_text
from jsonctc.tools.jsonpos import JsonPosError, SyntaxNode, parse_with_tree
from jsonctc.tools.pointer import Path, join_pointer


def walk_tree(node: SyntaxNode, path: Path = ()) -> Iterator[Tuple[Path, SyntaxNode]]:
    """Yield ``(path, node)`` for every value node, parents first."""
    yield path, node
    if node.kind == "object":
        for prop in node.children:
            value = prop.value_node
            if value is not None:
                yield from walk_tree(value, path + (prop.key or "",))
    elif node.kind == "array":
        for i, child in enumerate(node.children):
            yield from walk_tree(child, path + (i,))


def read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return read_text(source)


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="jsonctc parse")
    ap.add_argument("path", help="Path to JSONCTC file ('-' for stdin)")
    ap.add_argument("--strict", action="store_true", help="Reject comments and trailing commas")
    ap.add_argument("--tree", action="store_true", help="Print node offsets instead of the value")
    args = ap.parse_args(argv)

    try:
        text = read_input(args.path)
    except DocumentReadError as e:
        print(f"Failed to read: {e}", file=sys.stderr)
        return 3

    strict = {"allow_comments": False, "allow_trailing_comma": False} if args.strict else {}
    try:
        value, tree = parse_with_tree(text, **strict)
    except JsonPosError as e:
        print(f"Failed to parse JSONCTC: {e}", file=sys.stderr)
        return 3

    if args.tree:
        for path, node in walk_tree(tree):
            sys.stdout.write(f"{node.offset}\t{node.length}\t{node.kind}\t{join_pointer(path) or '/'}\n")
        return 0

    sys.stdout.write(json.dumps(value, indent=2, ensure_ascii=False) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
