"""Edit a JSONCTC file from the command line.

CLI:
  jsonctc modify FILE PATH VALUE [--in-place | --out FILE]
  jsonctc modify FILE PATH --delete [--in-place | --out FILE]
  jsonctc get FILE PATH
  jsonctc set FILE PATH VALUE [--in-place | --out FILE]

PATH is dotted (``servers.0.host``) or a JSON Pointer (``/servers/0/host``).
VALUE is parsed as JSON; anything that does not parse is taken as a string, so
``jsonctc set cfg.jsonctc name Bob`` works without quoting.

``modify`` splices the text directly; ``set`` goes through a document and so
also creates missing parent objects along the way.

Exit codes:
  0 OK
  1 path not found (get)
  2 invalid edit
  3 IO/parse error
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List

from jsonctc.document import JSONCTCDocument, PathError
from jsonctc.tools import surgery
from jsonctc.tools.edits import EditError, apply_edits
from jsonctc.tools.fileio import DocumentReadError, DocumentWriteError, read_document, read_text, write_text
from jsonctc.tools.jsonpos import JsonPosError
from jsonctc.tools.pointer import Segment, parse_path_arg
from jsonctc.tracked import TrackedNode

_MISSING: Any = object()


def parse_value_arg(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def modify_text(text: str, path: List[Segment], value: Any = surgery.DELETE) -> str:
    """``text`` with ``path`` set to ``value`` (or removed, for ``DELETE``)."""
    return apply_edits(text, surgery.modify(text, path, value))


def _emit(path: Path, args: argparse.Namespace, content: str) -> int:
    try:
        if args.in_place:
            write_text(path, content)
        elif args.out:
            write_text(args.out, content)
        else:
            sys.stdout.write(content)
    except DocumentWriteError as e:
        print(f"Failed to write: {e}", file=sys.stderr)
        return 3
    return 0


def _add_output_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--in-place", action="store_true", help="Overwrite input file")
    ap.add_argument("--out", help="Write the result to this file")


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="jsonctc modify")
    ap.add_argument("path", help="Path to JSONCTC file")
    ap.add_argument("target", help="Dotted path or JSON Pointer of the value to change")
    ap.add_argument("value", nargs="?", help="New value (JSON, else a string)")
    ap.add_argument("--delete", action="store_true", help="Remove the value instead of setting it")
    _add_output_args(ap)
    args = ap.parse_args(argv)

    if args.delete == (args.value is not None):
        print("Give either VALUE or --delete", file=sys.stderr)
        return 2

    path = Path(args.path)
    try:
        text = read_text(path)
    except DocumentReadError as e:
        print(f"Failed to read: {e}", file=sys.stderr)
        return 3

    value = surgery.DELETE if args.delete else parse_value_arg(args.value)
    try:
        modified = modify_text(text, list(parse_path_arg(args.target)), value)
    except JsonPosError as e:
        print(f"Failed to parse JSONCTC: {e}", file=sys.stderr)
        return 3
    except EditError as e:
        print(f"Cannot modify {args.target}: {e}", file=sys.stderr)
        return 2
    return _emit(path, args, modified)


def main_get(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="jsonctc get")
    ap.add_argument("path", help="Path to JSONCTC file")
    ap.add_argument("target", help="Dotted path or JSON Pointer")
    args = ap.parse_args(argv)

    try:
        doc = read_document(args.path)
    except DocumentReadError as e:
        print(f"Failed to read: {e}", file=sys.stderr)
        return 3

    value = doc.data
    for seg in parse_path_arg(args.target):
        if not isinstance(value, TrackedNode):
            value = _MISSING
            break
        value = value.get(seg, _MISSING)
        if value is _MISSING:
            break
    if value is _MISSING:
        print(f"Not found: {args.target}", file=sys.stderr)
        return 1
    if isinstance(value, TrackedNode):
        value = value.materialize()
    sys.stdout.write(json.dumps(value, indent=2, ensure_ascii=False) + "\n")
    return 0


def main_set(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="jsonctc set")
    ap.add_argument("path", help="Path to JSONCTC file")
    ap.add_argument("target", help="Dotted path or JSON Pointer")
    ap.add_argument("value", help="New value (JSON, else a string)")
    _add_output_args(ap)
    args = ap.parse_args(argv)

    path = Path(args.path)
    try:
        doc: JSONCTCDocument = read_document(path)
    except DocumentReadError as e:
        print(f"Failed to read: {e}", file=sys.stderr)
        return 3

    try:
        doc.update(parse_path_arg(args.target), parse_value_arg(args.value))
    except PathError as e:
        print(str(e), file=sys.stderr)
        return 2
    return _emit(path, args, doc.to_string())


if __name__ == "__main__":
    raise SystemExit(main())
