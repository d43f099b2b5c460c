"""Per-application config values stored as JSONCTC files.

A value for ``key`` lives in ``.config/<namespace>/<key>.jsonctc``. Reading
walks up from the working directory looking for that file, then falls back to
the home directory. Writing updates the file it would read (or creates it under
the home directory), merging into an existing file so its comments survive:

    set_config_namespace("my-app")          # once, at startup
    write_config("settings", {"theme": "dark", "fontSize": 14})
    read_config("settings")                 # {'theme': 'dark', 'fontSize': 14}
    read_config("ui-language", default="en-US")

CLI:
  jsonctc read-config KEY [--namespace NS] [--default JSON]
  jsonctc write-config KEY VALUE [--namespace NS] [--compact]

Exit codes:
  0 OK
  1 config not found
  3 IO/parse error
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonctc.document import JSONCTCDocument
from jsonctc.tools.fileio import DocumentReadError, DocumentWriteError, read_document, read_text, write_text
from jsonctc.tools.jsonpos import JsonPosError, parse
from jsonctc.tools.modify import parse_value_arg
from jsonctc.tracked import TrackedNode

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "com.axhxrx.ops"
CONFIG_DIR = ".config"
CONFIG_SUFFIX = ".jsonctc"

MISSING: Any = object()

_namespace = DEFAULT_NAMESPACE


@dataclass
class ConfigError(Exception):
    kind: str  # notFound | parseError | fileNotFound | accessDenied | readError | writeError
    message: str

    def __str__(self) -> str:
        return self.message


# ---- Namespace context ----


def sanitize_namespace(namespace: str) -> str:
    # dots allowed for reverse-domain names (com.example.app)
    return re.sub(r"[^A-Za-z0-9.-]", "-", namespace)


def sanitize_key(key: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "-", key)


def set_config_namespace(namespace: str) -> None:
    global _namespace
    _namespace = sanitize_namespace(namespace)


def get_config_namespace() -> str:
    return _namespace


def reset_config_context() -> None:
    global _namespace
    _namespace = DEFAULT_NAMESPACE


def _resolve_namespace(namespace: Optional[str]) -> str:
    return sanitize_namespace(namespace) if namespace else get_config_namespace()


# ---- Lookup ----


def _relative_config_path(namespace: str, key: str) -> Path:
    return Path(CONFIG_DIR, sanitize_namespace(namespace), sanitize_key(key) + CONFIG_SUFFIX)


def _walk_up(rel: Path, cwd: Optional[Path]) -> Optional[Path]:
    current = Path.cwd() if cwd is None else Path(cwd)
    current = current.resolve()
    anchor = current.anchor
    while True:
        candidate = current / rel
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current or parent.anchor != anchor:
            return None
        current = parent


def find_config_file(
    namespace: str, key: str, cwd: Optional[Path] = None, home: Optional[Path] = None
) -> Optional[Path]:
    """Nearest ``.config/<namespace>/<key>.jsonctc`` above ``cwd``, else the
    one in ``home``; None when neither exists."""
    rel = _relative_config_path(namespace, key)
    found = _walk_up(rel, cwd)
    if found is not None:
        return found
    home_path = (Path.home() if home is None else Path(home)) / rel
    if home_path.is_file():
        return home_path
    return None


def config_write_path(
    namespace: str, key: str, cwd: Optional[Path] = None, home: Optional[Path] = None
) -> Path:
    rel = _relative_config_path(namespace, key)
    found = _walk_up(rel, cwd)
    if found is not None:
        return found
    return (Path.home() if home is None else Path(home)) / rel


# ---- Read / write ----


def read_config(
    key: str,
    default: Any = MISSING,
    namespace: Optional[str] = None,
    *,
    cwd: Optional[Path] = None,
    home: Optional[Path] = None,
) -> Any:
    ns = _resolve_namespace(namespace)
    path = find_config_file(ns, key, cwd=cwd, home=home)
    if path is None:
        if default is not MISSING:
            return default
        raise ConfigError("notFound", f"Config not found: {ns}/{sanitize_key(key)}{CONFIG_SUFFIX}")

    try:
        text = read_text(path)
    except DocumentReadError as e:
        raise ConfigError(e.kind, str(e)) from e
    try:
        return parse(text)
    except JsonPosError as e:
        raise ConfigError("parseError", f"{e}: {path}") from e


def _merge_object(target: TrackedNode, source: Dict[str, Any]) -> None:
    """Make ``target`` equal to ``source`` key by key, recursing into objects
    present on both sides so comments inside them are kept."""
    for k, v in source.items():
        current = target.get(k)
        if isinstance(v, dict) and isinstance(current, TrackedNode) and not current.is_array:
            _merge_object(current, v)
        else:
            target.set(k, v)
    for k in target.keys():
        if k not in source:
            target.delete(k)


def _fresh_document(value: Any, pretty: bool) -> JSONCTCDocument:
    text = json.dumps(value, indent=2, ensure_ascii=False) + "\n" if pretty else json.dumps(value, ensure_ascii=False)
    return JSONCTCDocument(text)


def write_config(
    key: str,
    value: Any,
    namespace: Optional[str] = None,
    pretty: bool = True,
    *,
    cwd: Optional[Path] = None,
    home: Optional[Path] = None,
) -> Path:
    """Store ``value`` under ``key``; returns the file written.

    An existing file is edited in place: objects are merged key by key, arrays
    element by element, scalars replaced. A value of a different shape than
    the stored one replaces the file contents.
    """
    ns = _resolve_namespace(namespace)
    target = config_write_path(ns, key, cwd=cwd, home=home)

    try:
        doc: Optional[JSONCTCDocument] = read_document(target)
    except DocumentReadError as e:
        if e.kind != "fileNotFound":
            raise ConfigError(e.kind, str(e)) from e
        doc = None

    if doc is None:
        logger.info("creating config %s", target)
        doc = _fresh_document(value, pretty)
    else:
        data = doc.data
        if isinstance(value, dict) and isinstance(data, TrackedNode) and not data.is_array:
            _merge_object(data, value)
        elif isinstance(value, list) and isinstance(data, TrackedNode) and data.is_array:
            data.reconcile(value)
        elif not isinstance(value, (dict, list)) and not isinstance(data, TrackedNode):
            doc.replace(value)
        else:
            logger.info("config %s changes shape, rewriting it", target)
            doc = _fresh_document(value, pretty)

    try:
        written = write_text(target, doc)
    except DocumentWriteError as e:
        raise ConfigError(e.kind, str(e)) from e
    logger.info("wrote config %s", written)
    return written


# ---- CLI ----


def main_read(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="jsonctc read-config")
    ap.add_argument("key", help="Config key (file name without .jsonctc)")
    ap.add_argument("--namespace", help=f"Config namespace (default: {DEFAULT_NAMESPACE})")
    ap.add_argument("--default", help="Value (JSON) printed when the config does not exist")
    args = ap.parse_args(argv)

    default = MISSING if args.default is None else parse_value_arg(args.default)
    try:
        value = read_config(args.key, default=default, namespace=args.namespace)
    except ConfigError as e:
        print(f"Error: {e.kind}: {e}", file=sys.stderr)
        return 1 if e.kind == "notFound" else 3

    sys.stdout.write(json.dumps(value, indent=2, ensure_ascii=False) + "\n")
    return 0


def main_write(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="jsonctc write-config")
    ap.add_argument("key", help="Config key (file name without .jsonctc)")
    ap.add_argument("value", help="New value (JSON; anything else is stored as a string)")
    ap.add_argument("--namespace", help=f"Config namespace (default: {DEFAULT_NAMESPACE})")
    ap.add_argument("--compact", action="store_true", help="Write new files without indentation")
    args = ap.parse_args(argv)

    try:
        path = write_config(args.key, parse_value_arg(args.value), namespace=args.namespace, pretty=not args.compact)
    except ConfigError as e:
        print(f"Error: {e.kind}: {e}", file=sys.stderr)
        return 3

    print(path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main_read())
