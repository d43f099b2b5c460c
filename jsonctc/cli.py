#!/usr/bin/env python3
"""JSONCTC unified CLI.

This CLI delegates argument parsing to the individual tool modules, so each
tool is usable both as:
- `jsonctc <tool> ...`
- `python -m jsonctc.tools.<tool> ...`

Commands:
- parse         Parse JSONCTC, print plain JSON (or node offsets)
- format        Re-indent, keeping comments and trailing commas
- modify        Splice one value into a file (set or --delete)
- get           Print the value at a path
- set           Set a path, creating missing parent objects
- read-config   Read .config/<namespace>/<key>.jsonctc
- write-config  Write a config value, keeping the file's comments

Example:
  jsonctc set settings.jsonctc editor.tabSize 4 --in-place
"""

from __future__ import annotations

import logging
import sys
from typing import List, Optional

from jsonctc.tools import config, fmt, modify, parse


def _help() -> str:
    return (
        "JSONCTC CLI\n\n"
        "Usage:\n"
        "  jsonctc [--verbose] <command> [args...]\n\n"
        "Commands:\n"
        "  parse         Parse and print as JSON\n"
        "  format        Format, keeping comments\n"
        "  modify        Set or delete one value (text splice)\n"
        "  get           Print the value at a path\n"
        "  set           Set a path, creating parents\n"
        "  read-config   Read a config value\n"
        "  write-config  Write a config value\n"
        "  version       Show current version\n"
    )


def _version() -> str:
    try:
        from importlib.metadata import version

        return version("jsonctc")
    except Exception:
        return "unknown"


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    # global flags
    verbose = 0
    while argv and argv[0] in {"-v", "--verbose"}:
        verbose += 1
        argv = argv[1:]
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )

    if not argv or argv[0] in {"-h", "--help", "help"}:
        sys.stdout.write(_help())
        return 0

    cmd, rest = argv[0], argv[1:]
    if cmd in {"version", "--version", "-V"}:
        print(_version())
        return 0
    if cmd == "parse":
        return parse.main(rest)
    if cmd == "format":
        return fmt.main(rest)
    if cmd == "modify":
        return modify.main(rest)
    if cmd == "get":
        return modify.main_get(rest)
    if cmd == "set":
        return modify.main_set(rest)
    if cmd == "read-config":
        return config.main_read(rest)
    if cmd == "write-config":
        return config.main_write(rest)

    sys.stderr.write(f"Unknown command: {cmd}\n\n")
    sys.stderr.write(_help())
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
