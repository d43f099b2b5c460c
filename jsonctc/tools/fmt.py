"""Comment-preserving formatter for JSONCTC.

Why:
- Hand-edited config files drift (mixed indentation, everything on one line).
- A formatter that drops comments is useless for them, so this one works on
  the token stream and keeps every comment and trailing comma.

Rules:
- one member / element per line, ``indent`` spaces per level
- ``"key": value`` with a single space after the colon
- empty containers stay ``{}`` / ``[]``
- a comment that followed code on the same line stays on that line; a comment
  that started its own line keeps its own line
- blank lines are dropped

CLI:
  jsonctc format FILE|- [--in-place] [--check] [--out FILE] [--indent N]

Exit codes:
  0 OK
  1 --check diff
  3 IO/JSONCTC parse error
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Tuple

from jsonctc.tools.fileio import DocumentReadError, DocumentWriteError, read_text, write_text
from jsonctc.tools.jsonpos import JsonPosError, Token, iter_tokens, parse

_OPENERS = ("{", "[")
_CLOSERS = ("}", "]")
_COMMENTS = ("line_comment", "block_comment")


def _significant(text: str) -> List[Tuple[Token, bool]]:
    """Non-whitespace tokens, each flagged with whether a line break precedes it."""
    out: List[Tuple[Token, bool]] = []
    newline = True
    for tok in iter_tokens(text):
        if tok.kind == "ws":
            newline = newline or "\n" in tok.text
            continue
        out.append((tok, newline))
        newline = False
    return out


def format_text(text: str, indent: int = 2, final_newline: bool = True) -> str:
    """Re-indent ``text``; raises :class:`JsonPosError` if it is not JSONCTC."""
    parse(text)
    tokens = _significant(text)
    pad = " " * indent

    lines: List[str] = []
    cur = ""
    last = ""
    depth = 0
    fresh = True  # the next piece starts a new line
    after_block = False

    def put(piece: str, is_comment: bool = False) -> None:
        nonlocal cur, last, fresh
        if fresh:
            if cur:
                lines.append(cur)
            cur = pad * depth + piece
            fresh = False
        else:
            glue = is_comment or not (piece in (",", ":") or (last in _OPENERS and piece in _CLOSERS))
            cur += (" " if glue else "") + piece
        last = piece

    for i, (tok, newline_before) in enumerate(tokens):
        t = tok.text
        if tok.kind in _COMMENTS:
            was_fresh = fresh
            if newline_before:
                fresh = True
            elif cur:
                fresh = False
            put(t, is_comment=True)
            if tok.kind == "line_comment":
                fresh = True
            else:
                fresh = was_fresh and not newline_before
            after_block = tok.kind == "block_comment"
            continue

        if after_block and newline_before:
            fresh = True
        after_block = False

        if t in _OPENERS:
            put(t)
            depth += 1
            nxt = tokens[i + 1][0].text if i + 1 < len(tokens) else ""
            if nxt not in _CLOSERS:
                fresh = True
        elif t in _CLOSERS:
            depth -= 1
            if last not in _OPENERS:
                fresh = True
            put(t)
        elif t == ",":
            put(t)
            fresh = True
        else:
            put(t)

    if cur:
        lines.append(cur)
    return "\n".join(lines) + ("\n" if final_newline else "")


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="jsonctc format")
    ap.add_argument("path", help="Path to JSONCTC file ('-' for stdin)")
    ap.add_argument("--in-place", action="store_true", help="Overwrite input file")
    ap.add_argument("--out", help="Write formatted text to this file")
    ap.add_argument("--check", action="store_true", help="Exit 1 if formatting differs")
    ap.add_argument("--indent", type=int, default=2, help="Spaces per indentation level (default: 2)")
    args = ap.parse_args(argv)

    try:
        original = sys.stdin.read() if args.path == "-" else read_text(args.path)
    except DocumentReadError as e:
        print(f"Failed to read: {e}", file=sys.stderr)
        return 3

    try:
        formatted = format_text(original, indent=args.indent)
    except JsonPosError as e:
        print(f"Failed to parse JSONCTC: {e}", file=sys.stderr)
        return 3

    if args.check:
        return 0 if original == formatted else 1

    try:
        if args.in_place and args.path != "-":
            write_text(Path(args.path), formatted)
            return 0
        if args.out:
            write_text(Path(args.out), formatted)
            return 0
    except DocumentWriteError as e:
        print(f"Failed to write: {e}", file=sys.stderr)
        return 3

    sys.stdout.write(formatted)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
